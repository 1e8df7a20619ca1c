"""
Endpoint table - every call the client makes, with the credential it needs.
"""

from dataclasses import dataclass
from enum import Enum


class Credential(str, Enum):
    """Which token the router attaches to a call."""
    ACCOUNT = "account"
    ACTIVE_SESSION = "active_session"
    EXPLICIT = "explicit"  # caller passes the token itself
    NONE = "none"


@dataclass(frozen=True)
class Endpoint:
    """A server endpoint: HTTP method, path template and declared credential."""
    name: str
    method: str
    path: str
    credential: Credential

    def format(self, **params: str) -> str:
        """Fill the path template, e.g. `/auth/session/{session_id}`."""
        return self.path.format(**params)


# Account scope
LOGIN = Endpoint("login", "POST", "/auth/login", Credential.NONE)
REGISTER = Endpoint("register", "POST", "/auth/register", Credential.NONE)
IDENTITY = Endpoint("identity", "GET", "/auth/me", Credential.ACCOUNT)
SESSION_LIST = Endpoint("session_list", "GET", "/auth/sessions", Credential.ACCOUNT)
SESSION_CREATE = Endpoint("session_create", "POST", "/auth/session", Credential.ACCOUNT)
# The registry passes the session's own token, which overrides the declared default
SESSION_DELETE = Endpoint("session_delete", "DELETE", "/auth/session/{session_id}", Credential.ACCOUNT)

# Session scope
SESSION_RENAME = Endpoint("session_rename", "PATCH", "/auth/session/{session_id}/name", Credential.EXPLICIT)
CHAT_STREAM = Endpoint("chat_stream", "POST", "/chatbot/chat/stream", Credential.ACTIVE_SESSION)
MESSAGES_FETCH = Endpoint("messages_fetch", "GET", "/chatbot/messages", Credential.ACTIVE_SESSION)
MESSAGES_CLEAR = Endpoint("messages_clear", "DELETE", "/chatbot/messages", Credential.ACTIVE_SESSION)
