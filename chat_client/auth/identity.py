"""
Identity Session - Derives the authenticated state from the account token
and the identity profile fetched with it.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from .token_store import TokenStore
from ..api import endpoints
from ..api.router import RequestRouter
from ..errors import AuthenticationError, ChatClientError, describe_error
from ..models import Identity, RegisteredAccount, TokenResponse

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


class IdentitySession:
    """
    Owns the token store and the identity profile.

    Failures never propagate: callers observe them through `is_authenticated`
    or through the error text returned by `sign_in` / `register`.
    """

    def __init__(self, token_store: TokenStore, router: RequestRouter):
        self.token_store = token_store
        self.router = router
        self.identity: Optional[Identity] = None
        self.is_loading = False

    @property
    def is_authenticated(self) -> bool:
        """True only with a non-expired token and a verified identity."""
        return self.token_store.is_valid() and self.identity is not None

    @property
    def account_token(self) -> Optional[str]:
        return self.token_store.value

    async def login(self, token: str, expires_at: datetime | str) -> bool:
        """
        Adopt a new account token and verify it by fetching the identity.

        Returns:
            bool: True if the identity was fetched
        """
        logger.info("Logging in")
        try:
            self.token_store.store(token, expires_at)
        except ValidationError as e:
            logger.error(f"Rejected account token with unreadable expiry {expires_at!r}: {e}")
            return False
        self.identity = None
        return await self.fetch_identity()

    def logout(self) -> None:
        """Clear token and identity."""
        logger.info("Logging out")
        self.token_store.clear()
        self.identity = None

    async def check_auth(self) -> bool:
        """
        Restore a persisted token at startup and verify it.

        Returns:
            bool: True if the session is authenticated afterwards
        """
        self.is_loading = True
        try:
            if self.token_store.restore() is None:
                self.identity = None
                return False
            logger.info("Valid account token found in storage")
            return await self.fetch_identity()
        finally:
            self.is_loading = False

    async def fetch_identity(self) -> bool:
        """
        Fetch the identity profile with the current account token.

        A 401 clears the token; any other failure keeps it for a later retry.
        """
        if not self.token_store.is_valid():
            self.identity = None
            return False

        try:
            response = await self.router.request(endpoints.IDENTITY)
            self.identity = Identity.model_validate(response.json())
        except AuthenticationError:
            logger.warning("Account token rejected by server, clearing it")
            self.token_store.clear()
            self.identity = None
            return False
        except (ChatClientError, ValidationError, ValueError) as e:
            logger.error(f"Failed to fetch identity: {e}")
            self.identity = None
            return False

        logger.info(f"Identity fetched: {self.identity.email}")
        return True

    async def sign_in(self, email: str, password: str) -> Optional[str]:
        """
        Exchange email and password for an account token, then log in.

        Returns:
            Optional[str]: None on success, otherwise a message for the user
        """
        form = {"username": email, "password": password, "grant_type": "password"}
        try:
            response = await self.router.request(endpoints.LOGIN, data=form)
            token = TokenResponse.model_validate(response.json())
        except AuthenticationError:
            return INVALID_CREDENTIALS_MESSAGE
        except ChatClientError as e:
            logger.error(f"Login failed: {e}")
            return describe_error(e)
        except (ValidationError, ValueError) as e:
            logger.error(f"Login response unreadable: {e}")
            return describe_error(e)

        await self.login(token.access_token, token.expires_at)
        return None

    async def register(self, email: str, password: str) -> Optional[str]:
        """
        Create an account and log in with the token it comes with.

        Returns:
            Optional[str]: None on success, otherwise a message for the user
        """
        try:
            response = await self.router.request(
                endpoints.REGISTER, json={"email": email, "password": password}
            )
            account = RegisteredAccount.model_validate(response.json())
        except ChatClientError as e:
            logger.error(f"Registration failed: {e}")
            return describe_error(e)
        except (ValidationError, ValueError) as e:
            logger.error(f"Registration response unreadable: {e}")
            return describe_error(e)

        await self.login(account.token.access_token, account.token.expires_at)
        return None
