from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .parser import PSEUDO_TAG_PREFIX, leading_int, parse_tag_line
from .reader import LineReader

logger = logging.getLogger(__name__)

TAG_FILE_SORTED     = "!_TAG_FILE_SORTED"
TAG_FILE_FORMAT     = "!_TAG_FILE_FORMAT"
TAG_PROGRAM_AUTHOR  = "!_TAG_PROGRAM_AUTHOR"
TAG_PROGRAM_NAME    = "!_TAG_PROGRAM_NAME"
TAG_PROGRAM_URL     = "!_TAG_PROGRAM_URL"
TAG_PROGRAM_VERSION = "!_TAG_PROGRAM_VERSION"

class SortMode(IntEnum):
    UNSORTED = 0
    SORTED = 1
    FOLDSORTED = 2

@dataclass
class PseudoTagInfo:
    format: int = 1
    sort: SortMode = SortMode.UNSORTED
    author: str = ""
    name: str = ""
    url: str = ""
    version: str = ""

def _parse_number(tag: str, value: str) -> Optional[int]:
    n = leading_int(value)
    if n is None:
        logger.warning("ignoring %s with non-numeric value %r", tag, value)
    return n

def _apply(info: PseudoTagInfo, tag: str, value: str) -> None:
    if tag == TAG_FILE_SORTED:
        n = _parse_number(tag, value)
        if n is None:
            return
        try:
            info.sort = SortMode(n)
        except ValueError:
            logger.warning("ignoring %s with unknown sort mode %d", tag, n)
    elif tag == TAG_FILE_FORMAT:
        n = _parse_number(tag, value)
        if n is not None:
            info.format = n
    elif tag == TAG_PROGRAM_AUTHOR:
        info.author = value
    elif tag == TAG_PROGRAM_NAME:
        info.name = value
    elif tag == TAG_PROGRAM_URL:
        info.url = value
    elif tag == TAG_PROGRAM_VERSION:
        info.version = value

async def load_pseudo_tags(reader: LineReader) -> PseudoTagInfo:
    """
    Read the leading !_ lines and collect the file metadata they carry.
    In a pseudo-tag the second column (the "file" slot) holds the value.
    The reader is always rewound to byte 0 afterwards, so the header lines
    are seen again by ordinary reads.
    """
    info = PseudoTagInfo()
    try:
        while True:
            line = await reader.next_line()
            if line is None or not line.startswith(PSEUDO_TAG_PREFIX):
                break
            entry = parse_tag_line(line)
            _apply(info, entry.name, entry.file)
    finally:
        reader.rewind()
    logger.debug("%s: header %s", reader.storage.path, info)
    return info
