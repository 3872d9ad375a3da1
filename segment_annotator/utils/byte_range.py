from __future__ import annotations

from pathlib import Path
from typing import Iterator

from segment_annotator.constants import STREAM_CHUNK_SIZE


class RangeNotSatisfiable(Exception):
    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Range not satisfiable for {size} bytes")


def parse_range_header(header: str | None, size: int) -> tuple[int, int] | None:
    """Return an inclusive ``(start, end)`` byte span, or None to send the whole file.

    Only single ``bytes=`` ranges are honoured; other units and multi-range
    requests fall back to a full response.
    """
    if not header:
        return None
    unit, _, ranges = header.strip().partition("=")
    if unit.strip().lower() != "bytes" or "," in ranges:
        return None
    first, sep, last = ranges.strip().partition("-")
    if not sep:
        return None
    first, last = first.strip(), last.strip()
    if not first.isdigit() and not last.isdigit():
        return None
    if (first and not first.isdigit()) or (last and not last.isdigit()):
        return None

    if not first:
        # suffix form: the final N bytes
        length = int(last)
        if length == 0 or size == 0:
            raise RangeNotSatisfiable(size)
        return max(0, size - length), size - 1

    start = int(first)
    end = int(last) if last else size - 1
    if start >= size or end < start:
        raise RangeNotSatisfiable(size)
    return start, min(end, size - 1)


def iter_file(path: Path, start: int, end: int, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    remaining = end - start + 1
    with open(path, "rb") as f:
        f.seek(start)
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
