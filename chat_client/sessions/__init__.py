"""Sessions module - chat session registry."""

from .registry import SessionRegistry

__all__ = ['SessionRegistry']
