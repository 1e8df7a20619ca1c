"""
Token Store - Holds the account token and its expiry.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError

from ..models import AccountToken, utcnow
from ..storage import AUTH_TOKEN_EXPIRY_KEY, AUTH_TOKEN_KEY, PreferenceStore

logger = logging.getLogger(__name__)


class TokenStore:
    """
    Owns the account token.

    An expired token is reported as absent by every accessor, so it is never
    handed to the router.
    """

    def __init__(self, preferences: PreferenceStore, clock: Callable[[], datetime] = utcnow):
        self.preferences = preferences
        self.clock = clock
        self._token: Optional[AccountToken] = None

    @property
    def token(self) -> Optional[AccountToken]:
        if self._token is None or self._token.is_expired(self.clock()):
            return None
        return self._token

    @property
    def value(self) -> Optional[str]:
        token = self.token
        return token.value if token else None

    def is_valid(self) -> bool:
        return self.token is not None

    def store(self, value: str, expires_at: datetime | str) -> AccountToken:
        """Keep a new token and persist it."""
        token = AccountToken(value=value, expires_at=expires_at)
        self._token = token
        self.preferences.set(AUTH_TOKEN_KEY, token.value)
        self.preferences.set(AUTH_TOKEN_EXPIRY_KEY, token.expires_at.isoformat())
        return token

    def clear(self) -> None:
        """Forget the token and purge the persisted pair."""
        self._token = None
        self.preferences.remove(AUTH_TOKEN_KEY, AUTH_TOKEN_EXPIRY_KEY)

    def restore(self) -> Optional[AccountToken]:
        """
        Adopt the persisted token if its expiry is strictly in the future.

        A missing, unreadable or expired pair leaves the store empty and is purged.
        """
        value = self.preferences.get(AUTH_TOKEN_KEY)
        expiry = self.preferences.get(AUTH_TOKEN_EXPIRY_KEY)

        if not value or not expiry:
            logger.debug("No persisted account token")
            self._token = None
            return None

        try:
            token = AccountToken(value=value, expires_at=expiry)
        except ValidationError:
            logger.warning(f"Persisted token expiry is unreadable: {expiry!r}")
            self.clear()
            return None

        if token.is_expired(self.clock()):
            logger.info("Persisted account token expired")
            self.clear()
            return None

        self._token = token
        return token
