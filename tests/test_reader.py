import asyncio
import pytest
from tagfile_engine import DecoderState, FileStorage, LineReader, ReaderBusyError, decode_chunk
from tagfile_engine.decoder import skip_partial_utf8

LINES = [
    "!_TAG_FILE_SORTED\t1\t/0=unsorted, 1=sorted, 2=foldcase/",
    'naïve\tsrc/ünïcode.c\t/^int naïve(void)$/;"\tf',
    '日本語\tjp.c\t12;"\tkind:v',
    'emoji😀\te.py\t/^def emoji😀():$/;"\tkind:f\tline:3',
    "plain\tp.c\t7",
]

def make_tags_bytes() -> bytes:
    # Mix LF and CRLF terminators
    text = LINES[0] + "\n" + LINES[1] + "\r\n" + LINES[2] + "\n" + LINES[3] + "\r\n" + LINES[4] + "\n"
    return text.encode("utf-8")

def line_starts(data: bytes):
    starts = [0]
    for i, b in enumerate(data):
        if b == 0x0A and i + 1 < len(data):
            starts.append(i + 1)
    return starts

async def open_reader(path, chunk_size):
    fs = FileStorage(str(path))
    await fs.open()
    return LineReader(fs, await fs.stat_size(), chunk_size)

async def read_all(reader):
    lines = []
    while True:
        line = await reader.next_line()
        if line is None:
            return lines
        lines.append(line)

def test_decoder_carries_partial_sequence():
    data = "é😀".encode("utf-8")
    text1, state = decode_chunk(DecoderState(), data[:1])
    assert text1 == ""
    assert state.pending == data[:1]
    text2, state = decode_chunk(state, data[1:4])
    assert text2 == "é"
    assert state.pending == data[2:4]
    text3, state = decode_chunk(state, data[4:])
    assert text3 == "😀"
    assert state.empty

def test_decoder_final_flushes_truncated_sequence():
    text, state = decode_chunk(DecoderState(), "😀".encode("utf-8")[:2], final=True)
    assert text == "\ufffd"
    assert state.empty

def test_skip_partial_utf8():
    data = "😀x".encode("utf-8")
    assert skip_partial_utf8(data[1:]) == b"x"
    assert skip_partial_utf8(data) == data
    assert skip_partial_utf8(b"\x80\x80") == b""

@pytest.mark.parametrize("chunk_size", list(range(1, 24)) + [64, 1024, 65536])
def test_chunk_boundary_invariance(tmp_path, chunk_size):
    path = tmp_path / "tags"
    path.write_bytes(make_tags_bytes())

    async def run():
        reader = await open_reader(path, chunk_size)
        try:
            return await read_all(reader)
        finally:
            await reader.storage.close()

    assert asyncio.run(run()) == LINES

def test_unterminated_last_line_and_blank_lines(tmp_path):
    path = tmp_path / "tags"
    path.write_bytes(b"a\tb\t1\n\n\r\nc\td\t2")

    async def run():
        reader = await open_reader(path, 3)
        try:
            lines = await read_all(reader)
            # Stream stays at end once exhausted
            assert await reader.next_line() is None
            return lines
        finally:
            await reader.storage.close()

    assert asyncio.run(run()) == ["a\tb\t1", "c\td\t2"]

def test_empty_file(tmp_path):
    path = tmp_path / "tags"
    path.write_bytes(b"")

    async def run():
        reader = await open_reader(path, 16)
        try:
            return await reader.next_line()
        finally:
            await reader.storage.close()

    assert asyncio.run(run()) is None

@pytest.mark.parametrize("chunk_size", [1, 2, 5, 1024])
def test_seek_resyncs_to_next_line(tmp_path, chunk_size):
    data = make_tags_bytes()
    path = tmp_path / "tags"
    path.write_bytes(data)
    starts = line_starts(data)

    def expected_after(offset):
        for k, start in enumerate(starts):
            if start > offset:
                return LINES[k]
        return None

    async def run():
        reader = await open_reader(path, chunk_size)
        try:
            for offset in range(len(data) + 1):
                reader.seek(offset)
                assert reader.pos == reader.working_pos == offset
                await reader.next_line()  # fragment
                assert await reader.next_line() == expected_after(offset), offset
        finally:
            await reader.storage.close()

    asyncio.run(run())

def test_seek_clamps_offset(tmp_path):
    data = make_tags_bytes()
    path = tmp_path / "tags"
    path.write_bytes(data)

    async def run():
        reader = await open_reader(path, 8)
        try:
            reader.seek(-50)
            assert reader.working_pos == 0
            assert await reader.next_line() == LINES[0]
            reader.seek(len(data) + 50)
            assert reader.working_pos == len(data)
            assert await reader.next_line() is None
            assert await reader.next_line() is None
        finally:
            await reader.storage.close()

    asyncio.run(run())

def test_rewind_after_partial_read(tmp_path):
    path = tmp_path / "tags"
    path.write_bytes(make_tags_bytes())

    async def run():
        reader = await open_reader(path, 4)
        try:
            assert await reader.next_line() == LINES[0]
            assert await reader.next_line() == LINES[1]
            reader.rewind()
            assert reader.working_pos == 0
            assert reader.buffered == 0
            return await read_all(reader)
        finally:
            await reader.storage.close()

    assert asyncio.run(run()) == LINES

def test_working_pos_never_exceeds_size(tmp_path):
    data = make_tags_bytes()
    path = tmp_path / "tags"
    path.write_bytes(data)

    async def run():
        reader = await open_reader(path, 7)
        try:
            while True:
                line = await reader.next_line()
                assert reader.pos <= reader.working_pos <= reader.size
                if line is None:
                    break
        finally:
            await reader.storage.close()

    asyncio.run(run())

def test_overlapping_reads_are_rejected(tmp_path):
    path = tmp_path / "tags"
    path.write_bytes(make_tags_bytes())

    async def run():
        reader = await open_reader(path, 4)
        try:
            return await asyncio.gather(reader.next_line(), reader.next_line(), return_exceptions=True)
        finally:
            await reader.storage.close()

    first, second = asyncio.run(run())
    assert first == LINES[0]
    assert isinstance(second, ReaderBusyError)

def test_reposition_during_read_is_rejected(tmp_path):
    path = tmp_path / "tags"
    path.write_bytes(make_tags_bytes())

    async def run():
        reader = await open_reader(path, 4)
        try:
            task = asyncio.ensure_future(reader.next_line())
            # Let the read start and suspend on its first chunk
            await asyncio.sleep(0)
            assert reader.busy
            with pytest.raises(ReaderBusyError):
                reader.seek(30)
            with pytest.raises(ReaderBusyError):
                reader.rewind()
            first = await task
            # The pending read was not disturbed
            assert not reader.busy
            second = await reader.next_line()
            return first, second
        finally:
            await reader.storage.close()

    assert asyncio.run(run()) == (LINES[0], LINES[1])
