"""Chat module - message list and streaming reply consumer."""

from .frames import FrameDecoder
from .conversation import Conversation, StreamState, ERROR_REPLY_PREFIX

__all__ = ['FrameDecoder', 'Conversation', 'StreamState', 'ERROR_REPLY_PREFIX']
