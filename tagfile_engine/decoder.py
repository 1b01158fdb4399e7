from __future__ import annotations
import codecs
from dataclasses import dataclass
from typing import Tuple

_UTF8Decoder = codecs.getincrementaldecoder("utf-8")

@dataclass(frozen=True)
class DecoderState:
    """Bytes of an incomplete UTF-8 sequence left over from the previous chunk."""
    pending: bytes = b""

    @property
    def empty(self) -> bool:
        return not self.pending

def decode_chunk(state: DecoderState, data: bytes, *, final: bool = False) -> Tuple[str, DecoderState]:
    """
    Decode one chunk, prepending the carried bytes from `state`.
    Returns the text and the state to pass with the next chunk.
    With final=True a dangling partial sequence is flushed as U+FFFD.
    """
    decoder = _UTF8Decoder(errors="replace")
    decoder.setstate((state.pending, 0))
    text = decoder.decode(data, final)
    pending, _ = decoder.getstate()
    return text, DecoderState(pending)

def skip_partial_utf8(data: bytes) -> bytes:
    # Continuation bytes look like 0b10xxxxxx
    offset = 0
    while offset < len(data) and (data[offset] & 0xC0) == 0x80:
        offset += 1
    return data[offset:] if offset else data
