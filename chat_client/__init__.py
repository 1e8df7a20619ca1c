"""
Chat Session Client - async client for a chat service with account-scoped
and session-scoped tokens.
"""

from .client import ChatClient
from .config import ClientSettings
from .chat import StreamState
from .models import ChatSession, Identity, Message

__all__ = ['ChatClient', 'ClientSettings', 'StreamState', 'ChatSession', 'Identity', 'Message']
