"""
Token Models - Account and session credentials.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, field_validator


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive timestamps from the server as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _ExpiringToken(BaseModel):
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _aware_expiry(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A token whose expiry is not strictly in the future is expired."""
        return self.expires_at <= (now or utcnow())


class AccountToken(_ExpiringToken):
    """Identity-level credential. Owned by the identity session."""
    value: str


class SessionToken(_ExpiringToken):
    """Credential scoped to a single chat session."""
    access_token: str
    token_type: str = "bearer"


class TokenResponse(BaseModel):
    """Auth endpoint response."""
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
