from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

PSEUDO_TAG_PREFIX = "!_"
EXTENSION_MARKER = ';"'

@dataclass(frozen=True)
class TagAddress:
    line_number: int = 0
    pattern: str = ""

@dataclass(frozen=True)
class TagEntry:
    name: str = ""
    file: str = ""
    address: TagAddress = field(default_factory=TagAddress)
    kind: Optional[str] = None
    file_scope: bool = False
    # Read-only view; left out of the hash since mappings are unhashable
    fields: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    valid: bool = False

    @property
    def is_pseudo(self) -> bool:
        return self.name.startswith(PSEUDO_TAG_PREFIX)

class _Draft:
    """Mutable scratch record filled in while a line is parsed."""
    def __init__(self) -> None:
        self.name = ""
        self.file = ""
        self.line_number = 0
        self.pattern = ""
        self.kind: Optional[str] = None
        self.file_scope = False
        self.fields: Dict[str, str] = {}
        self.valid = False

    def freeze(self) -> TagEntry:
        return TagEntry(
            name=self.name,
            file=self.file,
            address=TagAddress(line_number=self.line_number, pattern=self.pattern),
            kind=self.kind,
            file_scope=self.file_scope,
            fields=MappingProxyType(self.fields),
            valid=self.valid,
        )

def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"

def leading_int(text: str) -> Optional[int]:
    """Value of the leading run of ASCII digits in `text`, or None if it has none."""
    end = 0
    while end < len(text) and _is_digit(text[end]):
        end += 1
    return int(text[:end]) if end else None

def _parse_pattern(text: str) -> Tuple[Optional[str], int]:
    """
    Parse a vim search pattern starting at text[0] ('/' or '?').
    Returns (literal pattern, position after the closing delimiter),
    or (None, len(text)) when the closing delimiter is missing.
    """
    delimiter = text[0]
    out = []
    backslashes = 0
    pos = 1
    while pos < len(text):
        ch = text[pos]
        if ch == "\\":
            backslashes += 1
        else:
            out.append("\\" * (backslashes // 2))
            if ch == delimiter and backslashes % 2 == 0:
                return "".join(out), pos + 1
            out.append(ch)
            backslashes = 0
        pos += 1
    return None, pos

def _parse_extension_fields(text: str, draft: _Draft) -> None:
    pos = 0
    while pos < len(text):
        while pos < len(text) and text[pos] == "\t":
            pos += 1
        if pos >= len(text):
            break
        split = text.find("\t", pos)
        if split < 0:
            split = len(text)
        colon = text.find(":", pos, split)
        if colon < 0:
            # Bare part is the kind shorthand, e.g. ;"\tf
            draft.kind = text[pos:split]
        else:
            key = text[pos:colon]
            value = text[colon + 1:split]
            if key == "kind":
                draft.kind = value
            elif key == "file":
                draft.file_scope = True
            elif key == "line":
                line_number = leading_int(value)
                if line_number is not None:
                    draft.line_number = line_number
            else:
                draft.fields[key] = value
        pos = split

def parse_tag_line(line: str) -> TagEntry:
    """
    Parse one line of a tags file:

        name<TAB>file<TAB>address[;"<TAB>field<TAB>field...]

    where address is a line number or a /pattern/ (?pattern?). Never raises;
    malformed lines come back with valid=False and whatever was parsed so far.
    """
    draft = _Draft()

    name_split = line.find("\t")
    if name_split < 0:
        return draft.freeze()
    draft.name = line[:name_split]

    file_split = line.find("\t", name_split + 1)
    if file_split < 0:
        return draft.freeze()
    draft.file = line[name_split + 1:file_split]

    rest = line[file_split + 1:]
    if not rest or not draft.name or not draft.file:
        return draft.freeze()
    if rest[0] in "/?":
        pattern, pos = _parse_pattern(rest)
        if pattern is None:
            return draft.freeze()
        draft.pattern = pattern
    elif _is_digit(rest[0]):
        pos = 0
        while pos < len(rest) and _is_digit(rest[pos]):
            pos += 1
        draft.line_number = int(rest[:pos])
    else:
        return draft.freeze()

    if rest.startswith(EXTENSION_MARKER, pos):
        _parse_extension_fields(rest[pos + len(EXTENSION_MARKER):], draft)
    draft.valid = True
    return draft.freeze()
