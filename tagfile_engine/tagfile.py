from __future__ import annotations
import logging
from typing import AsyncIterator, Optional

from .errors import ReaderBusyError, TagFileClosedError
from .header import PseudoTagInfo, load_pseudo_tags
from .parser import PSEUDO_TAG_PREFIX, TagEntry, parse_tag_line
from .progress import Progress, ProgressCallback
from .reader import DEFAULT_CHUNK_SIZE, LineReader
from .storage import FileStorage

logger = logging.getLogger(__name__)

class TagFile:
    """
    An open tags file.

    Usage:
        async with await TagFile.open("tags") as tf:
            print(tf.info.sort)
            async for entry in tf.entries():
                ...

    Reads and seeks on one handle must not overlap; separate handles share no state.
    """
    def __init__(
        self,
        path: str,
        fd: Optional[int] = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.path = path
        self.chunk_size = chunk_size
        self.info = PseudoTagInfo()
        self.initialized = False
        self._fs = FileStorage(path, fd)
        self._progress = Progress(on_progress)
        self._reader: Optional[LineReader] = None

    @classmethod
    async def open(
        cls,
        path: str,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_progress: Optional[ProgressCallback] = None,
    ) -> "TagFile":
        """
        Open `path`, stat it and load its pseudo-tag header.
        On failure the descriptor is released and the error propagates.
        """
        tf = cls(path, chunk_size=chunk_size, on_progress=on_progress)
        try:
            await tf.init()
        except Exception:
            await tf.close()
            raise
        return tf

    async def init(self) -> "TagFile":
        if self.initialized:
            return self
        self._progress.emit("open.start", 0, self.path)
        await self._fs.open()
        size = await self._fs.stat_size()
        self._reader = LineReader(self._fs, size, self.chunk_size)
        self._progress.emit("open.header", 50)
        self.info = await load_pseudo_tags(self._reader)
        self.initialized = True
        logger.debug("opened %s (%d bytes, sort=%s)", self.path, size, self.info.sort.name)
        self._progress.emit("open.done", 100, f"{size} bytes")
        return self

    async def close(self) -> None:
        """
        Release the descriptor. Safe to call more than once.
        Refused while a read is in flight, since a worker thread may still be using the descriptor.
        """
        if self._reader is not None and self._reader.busy:
            raise ReaderBusyError(f"cannot close {self.path} while a read is in progress")
        self.initialized = False
        self._reader = None
        await self._fs.close()

    @property
    def closed(self) -> bool:
        return self._fs.closed

    @property
    def size(self) -> int:
        return self._require_reader().size

    @property
    def pos(self) -> int:
        return self._require_reader().pos

    @property
    def working_pos(self) -> int:
        return self._require_reader().working_pos

    async def read_line(self) -> Optional[str]:
        return await self._require_reader().next_line()

    async def read_entry(self) -> Optional[TagEntry]:
        line = await self.read_line()
        if line is None:
            return None
        return parse_tag_line(line)

    async def seek_line(self, offset: int) -> Optional[str]:
        """
        Seek to a byte offset and return the first complete line that starts after it.
        The partial line the offset lands in is read and discarded.
        """
        reader = self._require_reader()
        reader.seek(offset)
        await reader.next_line()
        return await reader.next_line()

    async def seek_entry(self, offset: int) -> Optional[TagEntry]:
        line = await self.seek_line(offset)
        if line is None:
            return None
        return parse_tag_line(line)

    def rewind(self) -> None:
        self._require_reader().rewind()

    async def entries(self, include_pseudo: bool = False) -> AsyncIterator[TagEntry]:
        """
        Yield valid entries from the current position to the end of the file.
        Pseudo-tag lines are skipped unless include_pseudo is set.
        """
        while True:
            line = await self.read_line()
            if line is None:
                return
            if not include_pseudo and line.startswith(PSEUDO_TAG_PREFIX):
                continue
            entry = parse_tag_line(line)
            if entry.valid:
                yield entry

    async def __aenter__(self) -> "TagFile":
        try:
            return await self.init()
        except Exception:
            await self.close()
            raise

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else ("open" if self.initialized else "new")
        return f"<TagFile {self.path!r} {state}>"

    def _require_reader(self) -> LineReader:
        if self._reader is None or not self.initialized:
            raise TagFileClosedError(f"tags file is not open: {self.path}")
        return self._reader
