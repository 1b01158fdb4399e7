from __future__ import annotations
import fnmatch
import logging
import os
import re
from typing import Callable, List, Optional

from .progress import Progress, ProgressCallback
from .reader import DEFAULT_CHUNK_SIZE
from .storage import is_file, list_dir
from .tagfile import TagFile

logger = logging.getLogger(__name__)

DEFAULT_TAGS_PATTERN = "{.,}tags"

# Innermost {a,b,...} group with at least one comma
_BRACE_GROUP = re.compile(r"\{([^{}]*,[^{}]*)\}")

def expand_braces(pattern: str) -> List[str]:
    """
    Expand shell brace alternatives: "{.,}tags" -> [".tags", "tags"].
    Groups without a comma are left as literal text.
    """
    m = _BRACE_GROUP.search(pattern)
    if not m:
        return [pattern]
    out: List[str] = []
    for alt in m.group(1).split(","):
        for expanded in expand_braces(pattern[:m.start()] + alt + pattern[m.end():]):
            if expanded not in out:
                out.append(expanded)
    return out

def compile_glob(pattern: str) -> Callable[[str], bool]:
    """
    Build a matcher for bare file names. Matching is case-sensitive, and a leading
    '.' in a name must be matched explicitly, as in the shell.
    """
    alternatives = expand_braces(pattern)

    def match(name: str) -> bool:
        for alt in alternatives:
            if name.startswith(".") and not alt.startswith("."):
                continue
            if fnmatch.fnmatchcase(name, alt):
                return True
        return False

    return match

async def find_tags_file(
    search_path: str,
    pattern: str = DEFAULT_TAGS_PATTERN,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: Optional[ProgressCallback] = None,
) -> Optional[TagFile]:
    """
    Find and open a tags file for `search_path`.

    search_path may be a file (its directory is searched) or a directory. Names in
    each directory matching `pattern` are tried in sorted order and the first one
    that opens wins; otherwise the parent directory is searched, up to the root.
    Returns None if nothing was found. The caller owns the returned handle and
    must close() it.

    Errors from stat of search_path or from listing a directory propagate.
    """
    progress = Progress(on_progress)
    matches = compile_glob(pattern)
    tag_dir = os.path.abspath(search_path)
    if await is_file(tag_dir):
        tag_dir = os.path.dirname(tag_dir)

    while True:
        logger.debug("searching %s for %s", tag_dir, pattern)
        progress.emit("locate.scan", 0, tag_dir)
        names = sorted(n for n in await list_dir(tag_dir) if matches(n))
        for name in names:
            candidate = os.path.join(tag_dir, name)
            try:
                tf = await TagFile.open(candidate, chunk_size=chunk_size, on_progress=on_progress)
            except OSError as e:
                logger.debug("cannot open %s: %s", candidate, e)
                continue
            progress.emit("locate.done", 100, candidate)
            return tf
        parent = os.path.dirname(tag_dir)
        if parent == tag_dir:
            progress.emit("locate.done", 100, "")
            return None
        tag_dir = parent
