"""
Storage Interface - Abstract base class for persistence backends.
The client only needs whole-object reads and writes keyed by a relative path.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageInterface(ABC):
    """
    Contract for storage implementations used to persist client state.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path, replacing any previous content.

        Args:
            path: Relative path (e.g., "client_state.json")
            content: Bytes or text to store

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Returns:
            Optional[bytes]: Stored content, or None if nothing is stored there
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether content exists at the specified path."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete content at the specified path.

        Returns:
            bool: True if something was deleted
        """
        pass
