#!/usr/bin/env python3
# Example usage of tagfile_engine
# Finds the nearest tags file above the current directory and prints its functions.

import asyncio
import logging
import sys

from tagfile_engine import find_tags_file

async def main(start: str) -> None:
    # Search start (or its directory) and then each parent for "tags" or ".tags"
    tf = await find_tags_file(start)
    if tf is None:
        print("No tags file found above", start)
        return
    try:
        print("Using:", tf.path)
        print("Generated by:", tf.info.name or "?", tf.info.version, "sorted:", tf.info.sort.name)

        # Stream entries; pseudo-tags and malformed lines are skipped
        async for entry in tf.entries():
            if entry.kind == "f":
                where = entry.address.line_number or entry.address.pattern
                print(f"{entry.name:30} {entry.file}:{where}")

        # Jump to the middle of the file and resync on the next full line
        middle = await tf.seek_entry(tf.size // 2)
        if middle is not None:
            print("Entry near the middle:", middle.name)
    finally:
        await tf.close()

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "."))
