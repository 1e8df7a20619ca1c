"""
Shared test fixtures and configuration.
"""

import asyncio
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

# Set test environment variables before importing client modules
os.environ.setdefault("CHAT_CLIENT_LOG_FILE_ENABLED", "false")

from chat_client import ChatClient, ClientSettings
from chat_client.storage import LocalStorage, PreferenceStore

BASE_URL = "http://testserver"
ACCOUNT_TOKEN = "account-token-0123456789"


def future(hours: float = 1) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def past(hours: float = 1) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours)


def sse(content: str, done: bool = False) -> bytes:
    """One wire record of the chat stream."""
    return f"data: {json.dumps({'content': content, 'done': done})}\n\n".encode("utf-8")


def bearer(request: httpx.Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if not header or not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):]


class FakeChatServer:
    """
    In-memory stand-in for the chat service, mounted with httpx.MockTransport.

    `failures` maps "METHOD /path" to a canned httpx.Response or an exception to raise.
    `stream_chunks` may hold bytes, an asyncio.Event to wait on, or an exception to raise.
    """

    PREFIX = "/api/v1"

    def __init__(self):
        self.account_token = ACCOUNT_TOKEN
        self.identity = {"id": 1, "email": "user@example.com"}
        self.password = "secret"
        self.sessions: List[Dict] = []
        self.history: Dict[str, List[Dict]] = {}
        self.stream_chunks: List = [sse("Hel"), sse("lo"), sse("", done=True)]
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, object] = {}
        self._counter = 0

    def add_session(self, name: str = "") -> Dict:
        self._counter += 1
        session = {
            "session_id": f"session-{self._counter}",
            "name": name,
            "token": {
                "access_token": f"session-token-{self._counter}",
                "token_type": "bearer",
                "expires_at": future(24).isoformat(),
            },
        }
        self.sessions.append(session)
        return session

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == self.PREFIX + path]

    def _session_by_token(self, request: httpx.Request) -> Optional[Dict]:
        token = bearer(request)
        for session in self.sessions:
            if session["token"]["access_token"] == token:
                return session
        return None

    def _has_account(self, request: httpx.Request) -> bool:
        return bearer(request) == self.account_token

    def _token_payload(self) -> Dict:
        return {"access_token": self.account_token, "token_type": "bearer", "expires_at": future(24).isoformat()}

    async def _stream_body(self):
        for item in list(self.stream_chunks):
            if isinstance(item, asyncio.Event):
                await item.wait()
            elif isinstance(item, BaseException):
                raise item
            else:
                yield item

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method = request.method
        path = request.url.path[len(self.PREFIX):]

        failure = self.failures.get(f"{method} {path}")
        if isinstance(failure, BaseException):
            raise failure
        if failure is not None:
            return failure

        unauthorized = httpx.Response(401, json={"detail": "Could not validate credentials"})

        if method == "POST" and path == "/auth/login":
            form = parse_qs(request.content.decode("utf-8"))
            if form.get("password") != [self.password]:
                return httpx.Response(401, json={"detail": "Incorrect email or password"})
            return httpx.Response(200, json=self._token_payload())

        if method == "POST" and path == "/auth/register":
            body = json.loads(request.content)
            if "@" not in body.get("email", ""):
                return httpx.Response(422, json={
                    "detail": "Validation error",
                    "errors": [{"field": "email", "message": "value is not a valid email address"}],
                })
            return httpx.Response(200, json={"id": 2, "email": body["email"], "token": self._token_payload()})

        if method == "GET" and path == "/auth/me":
            return httpx.Response(200, json=self.identity) if self._has_account(request) else unauthorized

        if method == "GET" and path == "/auth/sessions":
            return httpx.Response(200, json=self.sessions) if self._has_account(request) else unauthorized

        if method == "POST" and path == "/auth/session":
            if not self._has_account(request):
                return unauthorized
            return httpx.Response(200, json=self.add_session())

        if path.startswith("/auth/session/"):
            session = self._session_by_token(request)
            session_id = path.split("/")[3]
            if session is None or session["session_id"] != session_id:
                return unauthorized
            if method == "PATCH" and path.endswith("/name"):
                # Echo the name as received, including any whitespace
                session["name"] = parse_qs(request.content.decode("utf-8"), keep_blank_values=True)["name"][0]
                return httpx.Response(200, json=session)
            if method == "DELETE":
                self.sessions.remove(session)
                return httpx.Response(204)

        if path == "/chatbot/messages":
            session = self._session_by_token(request)
            if session is None:
                return unauthorized
            if method == "DELETE":
                self.history.pop(session["session_id"], None)
                return httpx.Response(200, json={"message": "Chat history cleared"})
            if session["session_id"] not in self.history:
                return httpx.Response(404, json={"detail": "Chat history not found"})
            return httpx.Response(200, json={"messages": self.history[session["session_id"]]})

        if method == "POST" and path == "/chatbot/chat/stream":
            if self._session_by_token(request) is None:
                return unauthorized
            return httpx.Response(
                200,
                headers={"Content-Type": "text/event-stream"},
                content=self._stream_body(),
            )

        return httpx.Response(404, json={"detail": "Not Found"})


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def server():
    return FakeChatServer()


@pytest.fixture
def client_settings(tmp_path):
    return ClientSettings(
        _env_file=None,
        api_base_url=BASE_URL,
        storage_path=str(tmp_path / "data"),
        log_file_enabled=False,
    )


@pytest.fixture
def storage(client_settings):
    return LocalStorage(client_settings.storage_path)


@pytest.fixture
def preferences(storage, client_settings):
    return PreferenceStore(storage, client_settings.state_file)


@pytest.fixture
def make_client(server, client_settings, storage):
    """Factory for clients talking to the fake server and sharing one storage directory."""
    def factory(**kwargs) -> ChatClient:
        return ChatClient(
            settings=client_settings,
            storage=storage,
            transport=httpx.MockTransport(server),
            **kwargs,
        )
    return factory
