"""
Incremental decoder for the chat stream wire format.

The body is a sequence of records separated by a blank line, each of the
form `data: {"content": "...", "done": false}`. Chunk boundaries fall
anywhere, including inside a multi-byte character.
"""

import codecs
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..core.logging_config import truncate_large_data
from ..models import StreamFrame

logger = logging.getLogger(__name__)

RECORD_SEPARATOR = "\n\n"
DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class FrameDecoder:
    """
    Turns raw body chunks into StreamFrames in arrival order.

    Undecodable bytes are replaced; a record that does not parse is dropped
    with a warning and counted in `dropped`.
    """

    def __init__(self, separator: str = RECORD_SEPARATOR):
        self.separator = separator
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.dropped = 0

    def feed(self, chunk: bytes) -> List[StreamFrame]:
        """Add a chunk and return every frame completed by it."""
        self._buffer += self._decoder.decode(chunk)
        *records, self._buffer = self._buffer.split(self.separator)
        return self._parse_all(records)

    def close(self) -> List[StreamFrame]:
        """Flush at end of stream; a trailing record without separator is still parsed."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        if not remainder.strip():
            return []
        return self._parse_all([remainder])

    def _parse_all(self, records: List[str]) -> List[StreamFrame]:
        frames = []
        for record in records:
            frame = self._parse(record)
            if frame is not None:
                frames.append(frame)
        return frames

    def _parse(self, record: str) -> Optional[StreamFrame]:
        record = record.strip("\r\n")
        if not record:
            return None
        if not record.startswith(DATA_PREFIX):
            # SSE comments and keep-alives
            logger.debug(f"Ignoring non-data record: {truncate_large_data(record, 200)}")
            return None

        payload = record[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            return StreamFrame(done=True)

        try:
            return StreamFrame.model_validate_json(payload)
        except ValidationError as e:
            self.dropped += 1
            logger.warning(
                f"Dropping malformed stream record: {truncate_large_data(payload, 200)}",
                extra={"extra_fields": {"error": str(e)}}
            )
            return None
