"""
Session Models - Chat sessions and their scoped tokens.
"""

from pydantic import BaseModel

from .token import SessionToken

DEFAULT_SESSION_NAME = "Untitled Chat"


def sanitize_session_name(name: object, placeholder: str = DEFAULT_SESSION_NAME) -> str:
    """Blank or whitespace-only names become the placeholder."""
    if not isinstance(name, str):
        return placeholder
    return name.strip() or placeholder


class ChatSession(BaseModel):
    """One chat conversation as listed by the session endpoints."""
    session_id: str
    name: str = ""
    token: SessionToken

    def with_name(self, name: str) -> "ChatSession":
        """Copy of this session carrying a different display name."""
        return self.model_copy(update={"name": name})
