"""Auth module - account token and identity state."""

from .token_store import TokenStore
from .identity import IdentitySession, INVALID_CREDENTIALS_MESSAGE

__all__ = ['TokenStore', 'IdentitySession', 'INVALID_CREDENTIALS_MESSAGE']
