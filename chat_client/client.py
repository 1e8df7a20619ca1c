"""
Chat Client - Composes the token store, identity session, session registry,
request router and conversation into the object a UI drives.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

import httpx

from .api.router import RequestRouter
from .auth import IdentitySession, TokenStore
from .chat import Conversation, StreamState
from .config import ClientSettings, settings as default_settings
from .models import ChatSession, Message, utcnow
from .sessions import SessionRegistry
from .storage import LocalStorage, PreferenceStore, StorageInterface

logger = logging.getLogger(__name__)


class ChatClient:
    """
    Entry point for UI code.

    Each component owns its own state; collaborators read it through the
    owner's accessors, wired here by constructor injection.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        storage: Optional[StorageInterface] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = utcnow,
        on_change: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            settings: Client settings (defaults to the environment-driven settings)
            storage: Persistence backend for client state (defaults to LocalStorage)
            transport: Optional httpx transport, e.g. a MockTransport in tests
            clock: Source of the current time for token expiry checks
            on_change: Called whenever the visible conversation changes
        """
        self.settings = settings or default_settings
        self.storage = storage or LocalStorage(self.settings.storage_path)
        self.preferences = PreferenceStore(self.storage, self.settings.state_file)
        self.token_store = TokenStore(self.preferences, clock)
        self.router = RequestRouter(
            self.settings.api_url,
            account_token=lambda: self.token_store.value,
            session_token=lambda: self.sessions.active_token(),
            timeout=self.settings.request_timeout,
            stream_timeout=self.settings.stream_timeout,
            transport=transport,
            log_requests=self.settings.log_api_requests,
        )
        self.identity = IdentitySession(self.token_store, self.router)
        self.sessions = SessionRegistry(
            self.router, self.identity, self.preferences, self.settings.untitled_session_name
        )
        self.conversation = Conversation(self.router, self.sessions, on_change)

    async def __aenter__(self) -> "ChatClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.identity.is_authenticated

    @property
    def active_session(self) -> Optional[ChatSession]:
        return self.sessions.active

    @property
    def messages(self) -> List[Message]:
        return self.conversation.messages

    async def start(self) -> bool:
        """
        Restore persisted state and, when authenticated, the sessions.

        Returns:
            bool: True if the client is authenticated
        """
        logger.info(f"Starting {self.settings.app_name} v{self.settings.app_version}")
        await self.preferences.load()
        if await self.identity.check_auth():
            await self._load_sessions()
        return self.is_authenticated

    async def _load_sessions(self) -> None:
        if not self.token_store.is_valid():
            return
        await self.sessions.fetch_sessions()
        await self.conversation.activate()

    async def login(self, token: str, expires_at: datetime | str) -> bool:
        """Adopt an account token obtained elsewhere and load its sessions."""
        await self.identity.login(token, expires_at)
        await self._load_sessions()
        return self.is_authenticated

    async def sign_in(self, email: str, password: str) -> Optional[str]:
        """
        Log in with email and password.

        Returns:
            Optional[str]: None on success, otherwise a message for the user
        """
        error = await self.identity.sign_in(email, password)
        if error is None:
            await self._load_sessions()
        return error

    async def register(self, email: str, password: str) -> Optional[str]:
        """
        Create an account and log straight into it.

        Returns:
            Optional[str]: None on success, otherwise a message for the user
        """
        error = await self.identity.register(email, password)
        if error is None:
            await self._load_sessions()
        return error

    async def logout(self) -> None:
        """Stop any stream and forget the account, its sessions and messages."""
        await self.conversation.cancel()
        self.identity.logout()
        self.sessions.reset()
        await self.conversation.activate()

    async def create_session(self) -> Optional[ChatSession]:
        session = await self.sessions.create_new_session()
        if session is not None:
            await self.conversation.activate()
        return session

    async def switch_session(self, session: Optional[ChatSession]) -> None:
        self.sessions.switch_active_session(session)
        await self.conversation.activate()

    async def rename_session(self, session_id: str, new_name: str) -> Optional[ChatSession]:
        # A reply streaming for this session keeps going
        return await self.sessions.rename_session(session_id, new_name)

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session; a reply still streaming for it is cancelled first."""
        if self.conversation.streaming_session_id == session_id:
            await self.conversation.cancel()

        previous = self.sessions.active
        deleted = await self.sessions.delete_session(session_id)
        current = self.sessions.active
        if deleted and (current is None or previous is None or current.session_id != previous.session_id):
            await self.conversation.activate()
        return deleted

    async def send_message(self, text: str) -> Optional[StreamState]:
        return await self.conversation.send(text)

    async def cancel_stream(self) -> None:
        await self.conversation.cancel()

    async def clear_history(self) -> bool:
        return await self.conversation.clear_history()

    async def aclose(self) -> None:
        """Stop streaming, persist pending state and close connections."""
        await self.conversation.cancel()
        await self.preferences.flush()
        await self.router.aclose()
