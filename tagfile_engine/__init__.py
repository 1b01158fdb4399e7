from .errors import TagFileError, TagFileClosedError, ReaderBusyError
from .decoder import DecoderState, decode_chunk
from .parser import PSEUDO_TAG_PREFIX, TagAddress, TagEntry, parse_tag_line
from .header import PseudoTagInfo, SortMode, load_pseudo_tags
from .reader import DEFAULT_CHUNK_SIZE, LineReader
from .storage import FileStorage
from .tagfile import TagFile
from .locator import DEFAULT_TAGS_PATTERN, expand_braces, find_tags_file

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_TAGS_PATTERN",
    "PSEUDO_TAG_PREFIX",
    "DecoderState",
    "FileStorage",
    "LineReader",
    "PseudoTagInfo",
    "ReaderBusyError",
    "SortMode",
    "TagAddress",
    "TagEntry",
    "TagFile",
    "TagFileClosedError",
    "TagFileError",
    "decode_chunk",
    "expand_braces",
    "find_tags_file",
    "load_pseudo_tags",
    "parse_tag_line",
]
