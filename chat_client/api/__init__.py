"""API module - endpoint table and request routing."""

from .endpoints import Credential, Endpoint
from .router import RequestRouter

__all__ = ['Credential', 'Endpoint', 'RequestRouter']
