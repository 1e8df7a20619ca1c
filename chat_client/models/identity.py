"""
Identity Models - The authenticated account as reported by the server.
"""

from typing import Optional, Union
from pydantic import BaseModel

from .token import TokenResponse


class Identity(BaseModel):
    """Identity profile returned by the identity endpoint."""
    id: Union[int, str]
    email: Optional[str] = None


class RegisteredAccount(Identity):
    """Register endpoint response: the new identity plus its first account token."""
    token: TokenResponse
