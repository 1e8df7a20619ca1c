"""Storage module - persistence backends and the client preference store."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .preferences import (
    PreferenceStore,
    AUTH_TOKEN_KEY,
    AUTH_TOKEN_EXPIRY_KEY,
    ACTIVE_SESSION_ID_KEY,
    ACTIVE_SESSION_INFO_KEY,
)

__all__ = [
    'StorageInterface', 'LocalStorage', 'PreferenceStore',
    'AUTH_TOKEN_KEY', 'AUTH_TOKEN_EXPIRY_KEY', 'ACTIVE_SESSION_ID_KEY', 'ACTIVE_SESSION_INFO_KEY',
]
