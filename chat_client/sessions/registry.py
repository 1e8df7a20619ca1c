"""
Session Registry - The list of chat sessions and the active-session pointer.

While an account token is valid the registry never settles with zero
sessions: every operation that can empty the list ends with
`_ensure_not_empty()`, which creates a replacement session.
"""

import logging
from typing import List, Optional, Set

from pydantic import ValidationError

from ..api import endpoints
from ..api.router import RequestRouter
from ..auth.identity import IdentitySession
from ..errors import ChatClientError
from ..models import ChatSession, DEFAULT_SESSION_NAME, sanitize_session_name
from ..storage import ACTIVE_SESSION_ID_KEY, ACTIVE_SESSION_INFO_KEY, PreferenceStore

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Owns the ordered session list (creation order, newest last) and the
    active session. Network failures are logged and reported through return
    values; they never raise.
    """

    def __init__(
        self,
        router: RequestRouter,
        identity: IdentitySession,
        preferences: PreferenceStore,
        placeholder_name: str = DEFAULT_SESSION_NAME,
    ):
        self.router = router
        self.identity = identity
        self.preferences = preferences
        self.placeholder_name = placeholder_name
        self.sessions: List[ChatSession] = []
        self.active: Optional[ChatSession] = None
        self.is_loading = False
        self._busy: Set[str] = set()

    def get(self, session_id: str) -> Optional[ChatSession]:
        for session in self.sessions:
            if session.session_id == session_id:
                return session
        return None

    def active_token(self) -> Optional[str]:
        """The active session's token, read by the router for session-scoped calls."""
        if self.active is None:
            return None
        return self.active.token.access_token

    def is_busy(self, session_id: str) -> bool:
        """True while a rename or delete for this session is in flight."""
        return session_id in self._busy

    def _with_default_name(self, session: ChatSession) -> ChatSession:
        name = sanitize_session_name(session.name, self.placeholder_name)
        return session if name == session.name else session.with_name(name)

    def switch_active_session(self, session: Optional[ChatSession]) -> None:
        """
        Point the registry at another session (or none) and remember the choice.

        Raises:
            ValueError: If the session is not in the list
        """
        if session is None:
            logger.info("Clearing active session")
            self.active = None
            self.preferences.remove(ACTIVE_SESSION_ID_KEY, ACTIVE_SESSION_INFO_KEY)
            return

        current = self.get(session.session_id)
        if current is None:
            raise ValueError(f"Session {session.session_id} is not in the registry")

        logger.info(f"Setting active session to {current.session_id}")
        self.active = current
        self.preferences.set(ACTIVE_SESSION_ID_KEY, current.session_id)
        self.preferences.set(ACTIVE_SESSION_INFO_KEY, current.model_dump_json())

    def reset(self) -> None:
        """Drop all sessions, e.g. after logout."""
        self.sessions = []
        self._busy.clear()
        self.switch_active_session(None)

    async def fetch_sessions(self) -> List[ChatSession]:
        """
        Replace the list with the server's and restore the active session.

        The remembered session id wins if it is still listed, otherwise the
        newest session becomes active. An empty result triggers creation.
        """
        if not self.identity.account_token:
            self.reset()
            return []

        self.is_loading = True
        try:
            logger.info("Fetching sessions")
            response = await self.router.request(endpoints.SESSION_LIST)
            fetched = [self._with_default_name(ChatSession.model_validate(item)) for item in response.json()]
        except (ChatClientError, ValidationError, ValueError, TypeError) as e:
            logger.error(f"Failed to fetch sessions: {e}")
            self.sessions = []
            self.switch_active_session(None)
        else:
            unique: List[ChatSession] = []
            for session in fetched:
                if any(s.session_id == session.session_id for s in unique):
                    logger.warning(f"Duplicate session {session.session_id} in listing, keeping the first")
                    continue
                unique.append(session)
            self.sessions = unique
            logger.info(f"Fetched {len(unique)} sessions")
            self._restore_active()
        finally:
            self.is_loading = False

        await self._ensure_not_empty()
        return list(self.sessions)

    def _restore_active(self) -> None:
        remembered_id = self.preferences.get(ACTIVE_SESSION_ID_KEY)
        session = self.get(remembered_id) if remembered_id else None
        if session is None and self.sessions:
            session = self.sessions[-1]
        self.switch_active_session(session)

    async def create_new_session(self) -> Optional[ChatSession]:
        """
        Create a session on the server, append it and make it active.

        Returns:
            Optional[ChatSession]: The new session, or None on failure
        """
        if not self.identity.account_token:
            logger.error("Cannot create session, user not authenticated")
            return None

        logger.info("Creating new session")
        self.is_loading = True
        try:
            response = await self.router.request(endpoints.SESSION_CREATE)
            session = self._with_default_name(ChatSession.model_validate(response.json()))
        except (ChatClientError, ValidationError, ValueError) as e:
            logger.error(f"Failed to create new session: {e}")
            return None
        finally:
            self.is_loading = False

        if self.get(session.session_id) is None:
            self.sessions.append(session)
        else:
            self.sessions = [session if s.session_id == session.session_id else s for s in self.sessions]
        self.switch_active_session(session)
        logger.info(f"New session created: {session.session_id}")
        return session

    async def rename_session(self, session_id: str, new_name: str) -> Optional[ChatSession]:
        """
        Rename a session using that session's own token.

        The stored name is the sanitized requested name, whatever the server echoes.

        Returns:
            Optional[ChatSession]: The renamed session, or None on failure
        """
        session = self.get(session_id)
        if session is None:
            logger.error(f"Cannot rename session, token not found for {session_id}")
            return None
        if self.is_busy(session_id):
            logger.warning(f"Session {session_id} already has a request in flight, ignoring rename")
            return None

        sanitized = sanitize_session_name(new_name, self.placeholder_name)
        logger.info(f"Renaming session {session_id} to '{sanitized}'")

        self._busy.add(session_id)
        try:
            response = await self.router.request(
                endpoints.SESSION_RENAME,
                path_params={"session_id": session_id},
                token=session.token.access_token,
                data={"name": sanitized},
            )
        except ChatClientError as e:
            logger.error(f"Failed to rename session {session_id}: {e}")
            return None
        finally:
            self._busy.discard(session_id)

        try:
            updated = ChatSession.model_validate(response.json()).with_name(sanitized)
        except (ValidationError, ValueError):
            updated = session.with_name(sanitized)

        if self.get(session_id) is None:
            # Deleted while the rename was in flight
            return updated
        self.sessions = [updated if s.session_id == session_id else s for s in self.sessions]
        if self.active is not None and self.active.session_id == session_id:
            self.switch_active_session(updated)
        return updated

    async def delete_session(self, session_id: str) -> bool:
        """
        Delete a session using that session's own token.

        Deleting the active session activates the newest remaining one.

        Returns:
            bool: True if the server confirmed the delete
        """
        session = self.get(session_id)
        if session is None:
            logger.error(f"Cannot delete session, token not found for {session_id}")
            return False
        if self.is_busy(session_id):
            logger.warning(f"Session {session_id} already has a request in flight, ignoring delete")
            return False

        logger.info(f"Deleting session {session_id}")
        self._busy.add(session_id)
        try:
            await self.router.request(
                endpoints.SESSION_DELETE,
                path_params={"session_id": session_id},
                token=session.token.access_token,
            )
        except ChatClientError as e:
            logger.error(f"Failed to delete session {session_id}: {e}")
            return False
        finally:
            self._busy.discard(session_id)

        self.sessions = [s for s in self.sessions if s.session_id != session_id]
        if self.active is not None and self.active.session_id == session_id:
            self.switch_active_session(self.sessions[-1] if self.sessions else None)

        await self._ensure_not_empty()
        return True

    async def _ensure_not_empty(self) -> None:
        if self.sessions or not self.identity.account_token:
            return
        logger.info("No sessions left, creating a new one")
        await self.create_new_session()
