from __future__ import annotations
import logging
import re
from collections import deque
from typing import Deque, Optional

from .decoder import DecoderState, decode_chunk, skip_partial_utf8
from .errors import ReaderBusyError
from .storage import FileStorage

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024

_LINE_BREAK = re.compile(r"\r?\n")

class LineReader:
    """
    Incremental UTF-8 line reader over a FileStorage.

    Reads fixed-size chunks starting at `working_pos` and queues the decoded lines.
    The last queued line may still be incomplete, so a line is only handed out once
    another one follows it or the stream is exhausted.
    """
    def __init__(self, storage: FileStorage, size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.storage = storage
        self.size = size
        self.chunk_size = chunk_size
        self.pos = 0
        self.working_pos = 0
        self._decoder = DecoderState()
        self._lines: Deque[str] = deque()
        self._skip_partial = False
        self._fragment_pending = False
        self._busy = False

    @property
    def buffered(self) -> int:
        return len(self._lines)

    @property
    def busy(self) -> bool:
        return self._busy

    async def next_line(self) -> Optional[str]:
        """
        Return the next non-empty line, or None at end of stream.
        Right after seek() the leading fragment is returned as-is, even when empty.
        """
        if self._busy:
            raise ReaderBusyError("another read is already in progress on this reader")
        self._busy = True
        try:
            while True:
                while len(self._lines) > 1:
                    line = self._take()
                    if line is not None:
                        return line
                if self.working_pos < self.size:
                    await self._fill()
                    continue
                if self._lines:
                    # Last line of the file, possibly unterminated
                    line = self._take()
                    if line is not None:
                        return line
                    continue
                self._fragment_pending = False
                return None
        finally:
            self._busy = False

    def seek(self, offset: int) -> None:
        """
        Reposition at a raw byte offset. The offset may fall inside a line or inside
        a multi-byte character, so the first line read afterwards is a fragment.
        """
        self._check_idle()
        offset = min(max(offset, 0), self.size)
        self.pos = self.working_pos = offset
        self._reset_buffers()
        self._skip_partial = True
        self._fragment_pending = True

    def rewind(self) -> None:
        self._check_idle()
        self.pos = self.working_pos = 0
        self._reset_buffers()
        self._skip_partial = False
        self._fragment_pending = False

    def _check_idle(self) -> None:
        if self._busy:
            raise ReaderBusyError("cannot reposition while a read is in progress on this reader")

    def _reset_buffers(self) -> None:
        self._decoder = DecoderState()
        self._lines.clear()

    def _take(self) -> Optional[str]:
        line = self._lines.popleft()
        if line or self._fragment_pending:
            self._fragment_pending = False
            return line
        return None

    async def _fill(self) -> None:
        length = min(self.chunk_size, self.size - self.working_pos)
        data = await self.storage.read_at(self.working_pos, length)
        if not data:
            logger.warning("%s: file ended at byte %d, expected %d", self.storage.path, self.working_pos, self.size)
            self.working_pos = self.size
        else:
            self.working_pos += len(data)

        if self._skip_partial:
            data = skip_partial_utf8(data)
            # Stay armed while a chunk holds nothing but continuation bytes
            self._skip_partial = not data

        text, self._decoder = decode_chunk(self._decoder, data, final=self.working_pos >= self.size)
        if self._lines:
            text = self._lines.pop() + text
        self._lines.extend(_LINE_BREAK.split(text))
