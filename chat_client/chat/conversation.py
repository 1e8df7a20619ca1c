"""
Conversation - The active session's message list and the streaming reply consumer.

Stream states: IDLE -> SENDING -> STREAMING -> COMPLETED | CANCELLED | FAILED,
after which the conversation is IDLE again and accepts the next submission.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .frames import FrameDecoder
from ..api import endpoints
from ..api.router import RequestRouter
from ..errors import ChatClientError, NotFoundError, TransportError, describe_error
from ..models import ChatHistory, Message, StreamFrame
from ..sessions.registry import SessionRegistry

logger = logging.getLogger(__name__)

ERROR_REPLY_PREFIX = "Sorry, an error occurred: "
INTERRUPTED_SUFFIX = "\n\n[Response interrupted: {error}]"


class StreamState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class Conversation:
    """
    Holds the messages of the active session and runs at most one reply stream.

    Frames are applied to the turn's own assistant placeholder in arrival
    order. Errors end up as text in the message list, never as exceptions.
    """

    def __init__(
        self,
        router: RequestRouter,
        registry: SessionRegistry,
        on_change: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            router: Request router used for history and chat calls
            registry: Source of the active session
            on_change: Called after every change to `messages` or `state`
        """
        self.router = router
        self.registry = registry
        self.on_change = on_change
        self.messages: List[Message] = []
        self.session_id: Optional[str] = None
        self.state = StreamState.IDLE
        self.is_loading_messages = False
        self.last_error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._streaming_session_id: Optional[str] = None

    @property
    def can_submit(self) -> bool:
        return self.state == StreamState.IDLE and self.registry.active is not None

    @property
    def streaming_session_id(self) -> Optional[str]:
        """Session whose reply is currently streaming, if any."""
        if self._task is None or self._task.done():
            return None
        return self._streaming_session_id

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _set_state(self, state: StreamState) -> None:
        if state != self.state:
            logger.debug(f"Stream state {self.state.value} -> {state.value}")
            self.state = state
            self._notify()

    async def activate(self) -> None:
        """Load the active session's history into a fresh message list."""
        await self.cancel()
        active = self.registry.active
        self.session_id = active.session_id if active else None
        self.messages = []
        self.last_error = None
        self._notify()
        await self.fetch_messages()

    async def fetch_messages(self) -> None:
        """
        Replace the message list with the server history.

        A 404 means the session has no history yet.
        """
        session = self.registry.active
        if session is None:
            self.messages = []
            self._notify()
            return

        logger.info(f"Fetching messages for session {session.session_id}")
        self.is_loading_messages = True
        try:
            response = await self.router.request(endpoints.MESSAGES_FETCH)
            history = ChatHistory.model_validate(response.json())
        except NotFoundError:
            logger.info(f"No message history found for session {session.session_id}")
            history = ChatHistory()
        except (ChatClientError, ValidationError, ValueError) as e:
            logger.error(f"Failed to fetch messages for session {session.session_id}: {e}")
            self.last_error = describe_error(e)
            return
        finally:
            self.is_loading_messages = False

        active = self.registry.active
        if active is None or active.session_id != session.session_id or self.streaming_session_id is not None:
            logger.debug(f"Discarding stale history for session {session.session_id}")
            return
        self.messages = history.messages
        self._notify()
        logger.info(f"Fetched {len(history.messages)} messages for session {session.session_id}")

    async def clear_history(self) -> bool:
        """Delete the active session's history on the server and locally."""
        session = self.registry.active
        if session is None:
            logger.error("Cannot clear chat history, no active session")
            return False

        await self.cancel()
        logger.info(f"Clearing chat history for session {session.session_id}")
        try:
            await self.router.request(endpoints.MESSAGES_CLEAR)
        except ChatClientError as e:
            logger.error(f"Failed to clear chat history for session {session.session_id}: {e}")
            self.last_error = describe_error(e)
            return False

        self.messages = []
        self._notify()
        return True

    async def send(self, text: str) -> Optional[StreamState]:
        """
        Submit a user message and stream the reply into an assistant placeholder.

        Starting a send cancels any reply still streaming and waits for it to stop.

        Returns:
            Optional[StreamState]: The terminal state of this turn, or None if
            nothing was submitted (blank input or no active session)
        """
        session = self.registry.active
        if not text.strip() or session is None:
            return None

        await self.cancel()

        user_message = Message(role="user", content=text)
        placeholder = Message(role="assistant", content="")
        history = [*self.messages, user_message]
        self.messages = [*history, placeholder]
        self.last_error = None
        self._set_state(StreamState.SENDING)

        payload = {"messages": [m.model_dump() for m in history]}
        task = asyncio.create_task(self._consume(payload, placeholder))
        self._task = task
        self._streaming_session_id = session.session_id

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled():
            self._release(task, StreamState.CANCELLED)
            return StreamState.CANCELLED
        return task.result()

    async def cancel(self) -> None:
        """Abort the in-flight reply, if any, and wait until it has stopped."""
        task = self._task
        if task is None:
            return
        if not task.done():
            logger.info(f"Cancelling stream for session {self._streaming_session_id}")
            task.cancel()
            await asyncio.wait({task})
        # A task cancelled before its first step never reaches its own cleanup
        self._release(task, StreamState.CANCELLED)

    async def _consume(self, payload: Dict[str, Any], placeholder: Message) -> StreamState:
        outcome = StreamState.FAILED
        decoder = FrameDecoder()
        try:
            async with self.router.stream(
                endpoints.CHAT_STREAM,
                json=payload,
                headers={"Accept": "text/event-stream"},
            ) as response:
                self._set_state(StreamState.STREAMING)
                async for chunk in response.aiter_bytes():
                    self._apply(placeholder, decoder.feed(chunk))
                self._apply(placeholder, decoder.close())
            outcome = StreamState.COMPLETED
            logger.info(
                "Stream finished",
                extra={"extra_fields": {
                    "content_length": len(placeholder.content),
                    "dropped_records": decoder.dropped,
                }}
            )
        except asyncio.CancelledError:
            outcome = StreamState.CANCELLED
            logger.info("Stream aborted")
            raise
        except Exception as e:
            logger.error(f"Error during chat stream: {e!r}")
            self._report_failure(placeholder, e)
        finally:
            self._release(asyncio.current_task(), outcome)
        return outcome

    def _apply(self, placeholder: Message, frames: List[StreamFrame]) -> None:
        for frame in frames:
            if frame.done:
                # End of stream is signalled by the body closing, not by this flag
                logger.debug("Stream marked as done by server")
                continue
            if frame.content:
                placeholder.content += frame.content
                self._notify()

    def _report_failure(self, placeholder: Message, error: Exception) -> None:
        if isinstance(error, httpx.HTTPError):
            error = TransportError(str(error) or type(error).__name__)
        text = describe_error(error, fallback=str(error) or "An unexpected error occurred.")
        self.last_error = text

        if not any(m is placeholder for m in self.messages):
            # History was replaced while streaming; the turn is no longer shown
            return
        if placeholder.content == "":
            placeholder.content = f"{ERROR_REPLY_PREFIX}{text}"
        else:
            placeholder.content += INTERRUPTED_SUFFIX.format(error=text)
        self._notify()

    def _release(self, task: Optional[asyncio.Task], outcome: StreamState) -> None:
        """Record the terminal state of `task` and accept submissions again."""
        if task is None or task is not self._task:
            return
        self._task = None
        self._streaming_session_id = None
        self._set_state(outcome)
        self._set_state(StreamState.IDLE)
