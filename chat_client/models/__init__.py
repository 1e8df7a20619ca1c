"""Models module."""

from .token import AccountToken, SessionToken, TokenResponse, ensure_aware, utcnow
from .identity import Identity, RegisteredAccount
from .session import ChatSession, DEFAULT_SESSION_NAME, sanitize_session_name
from .message import Message, ChatHistory, StreamFrame

__all__ = [
    'AccountToken', 'SessionToken', 'TokenResponse', 'ensure_aware', 'utcnow',
    'Identity', 'RegisteredAccount',
    'ChatSession', 'DEFAULT_SESSION_NAME', 'sanitize_session_name',
    'Message', 'ChatHistory', 'StreamFrame',
]
