from __future__ import annotations
import asyncio
import errno
import os
import stat
from typing import List, Optional

from .errors import TagFileClosedError

class FileStorage:
    """
    Read-only, positioned access to a single file descriptor.
    Every blocking call runs in a worker thread, so awaiting it suspends only the calling task.
    """
    def __init__(self, path: str, fd: Optional[int] = None) -> None:
        self.path = path
        self._fd = fd

    @property
    def fd(self) -> Optional[int]:
        return self._fd

    @property
    def closed(self) -> bool:
        return self._fd is None

    async def open(self) -> None:
        if self._fd is not None:
            return
        self._fd = await asyncio.to_thread(os.open, self.path, os.O_RDONLY)

    async def stat_size(self) -> int:
        """
        fstat the open descriptor and return its size in bytes.
        Directories are refused: on some platforms they can be opened read-only but not read.
        """
        st = await asyncio.to_thread(os.fstat, self._require_fd())
        if stat.S_ISDIR(st.st_mode):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self.path)
        return st.st_size

    async def read_at(self, offset: int, length: int) -> bytes:
        if length <= 0:
            return b""
        return await asyncio.to_thread(os.pread, self._require_fd(), length, offset)

    async def close(self) -> None:
        fd, self._fd = self._fd, None
        if fd is not None:
            await asyncio.to_thread(os.close, fd)

    def _require_fd(self) -> int:
        if self._fd is None:
            raise TagFileClosedError(f"file is not open: {self.path}")
        return self._fd

async def list_dir(path: str) -> List[str]:
    return await asyncio.to_thread(os.listdir, path)

async def is_file(path: str) -> bool:
    st = await asyncio.to_thread(os.stat, path)
    return stat.S_ISREG(st.st_mode)
