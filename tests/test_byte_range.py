import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from segment_annotator.utils.byte_range import RangeNotSatisfiable, iter_file, parse_range_header


@pytest.mark.parametrize(
    "header,expected",
    [
        ("bytes=0-99", (0, 99)),
        ("bytes=100-", (100, 999)),
        ("bytes=-100", (900, 999)),
        ("bytes=900-5000", (900, 999)),
        ("bytes=-5000", (0, 999)),
        (None, None),
        ("items=0-10", None),
        ("bytes=0-10,20-30", None),
        ("bytes=abc", None),
    ],
)
def test_parse_range_header(header, expected):
    assert parse_range_header(header, 1000) == expected


@pytest.mark.parametrize("header", ["bytes=1000-", "bytes=50-10", "bytes=-0"])
def test_unsatisfiable_ranges(header):
    with pytest.raises(RangeNotSatisfiable):
        parse_range_header(header, 1000)


def test_iter_file_yields_exact_span(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(bytes(range(256)) * 4)
    body = b"".join(iter_file(path, 10, 529, chunk_size=64))
    assert body == path.read_bytes()[10:530]
