from __future__ import annotations
from typing import Any, Callable, Dict, Optional

ProgressCallback = Callable[[Dict[str, Any]], None]

class Progress:
    """
    Thin wrapper around an optional on_progress callback.
    Events are plain dicts: {"phase": str, "pct": int, "msg": str}.
    """
    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self._callback = callback

    def emit(self, phase: str, pct: int = 0, msg: str = "") -> None:
        if self._callback is None:
            return
        self._callback({"phase": phase, "pct": max(0, min(100, int(pct))), "msg": msg})
