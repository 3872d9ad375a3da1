import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from segment_annotator.errors import ValidationError
from segment_annotator.models.schemas import Segment
from segment_annotator.services.timestamp_parser import parse_timestamps
from segment_annotator.services.timestamp_store import FileTimestampStore


def test_upload_then_get_round_trip(tmp_path):
    store = FileTimestampStore(tmp_path / "timestamps")
    segments = parse_timestamps("00:10,00:25\n00:30,00:55\n").segments
    asyncio.run(store.upsert("folder/clip", segments))

    assert asyncio.run(store.get("folder/clip")) == [
        Segment(start=10, end=25),
        Segment(start=30, end=55),
    ]
    assert (tmp_path / "timestamps" / "folder" / "clip.csv").exists()


def test_upsert_replaces_instead_of_merging(tmp_path):
    store = FileTimestampStore(tmp_path)
    asyncio.run(store.upsert("a/b", [Segment(start=1, end=2), Segment(start=3, end=4)]))
    asyncio.run(store.upsert("a/b", [Segment(start=7.5, end=9)]))
    assert asyncio.run(store.get("a/b")) == [Segment(start=7.5, end=9)]


def test_missing_video_returns_empty_list(tmp_path):
    store = FileTimestampStore(tmp_path)
    assert asyncio.run(store.get("nope/none")) == []


def test_list_names_walks_nested_directories(tmp_path):
    store = FileTimestampStore(tmp_path)
    asyncio.run(store.upsert("x/one", [Segment(start=0, end=1)]))
    asyncio.run(store.upsert("y/two", [Segment(start=0, end=1)]))
    (tmp_path / "notes.txt").write_text("ignored")
    assert asyncio.run(store.list_names()) == {"x/one", "y/two"}


def test_bulk_upsert_skips_incomplete_entries(tmp_path):
    store = FileTimestampStore(tmp_path)
    results = asyncio.run(
        store.bulk_upsert(
            [
                ("a/one", [Segment(start=0, end=5)]),
                (None, [Segment(start=0, end=5)]),
                ("a/two", []),
                ("a/three", [Segment(start=1, end=2), Segment(start=3, end=4)]),
            ]
        )
    )
    assert results == [("a/one", 1), ("a/three", 2)]
    assert asyncio.run(store.list_names()) == {"a/one", "a/three"}


def test_names_escaping_the_root_are_rejected(tmp_path):
    store = FileTimestampStore(tmp_path / "timestamps")
    with pytest.raises(ValidationError):
        asyncio.run(store.upsert("../../evil", [Segment(start=0, end=1)]))


def test_rows_are_not_supported_on_files(tmp_path):
    store = FileTimestampStore(tmp_path)
    assert store.supports_rows is False
    with pytest.raises(NotImplementedError):
        asyncio.run(store.add_rows([{"video_name": "a/b", "start": "00:01", "end": "00:02"}]))


def test_bulk_upsert_skips_names_outside_root_and_keeps_going(tmp_path):
    store = FileTimestampStore(tmp_path / "timestamps")
    results = asyncio.run(
        store.bulk_upsert(
            [
                ("a/one", [Segment(start=0, end=5)]),
                ("../../evil", [Segment(start=0, end=5)]),
                ("a/two", [Segment(start=1, end=2)]),
            ]
        )
    )
    assert results == [("a/one", 1), ("a/two", 1)]
    assert not (tmp_path / "evil.csv").exists()


def test_list_names_ignores_files_without_segments(tmp_path):
    store = FileTimestampStore(tmp_path)
    asyncio.run(store.upsert("x/good", [Segment(start=0, end=1)]))
    (tmp_path / "x" / "junk.csv").write_text("start,end\nfoo,bar\n")
    (tmp_path / "x" / "empty.csv").write_text("")

    assert asyncio.run(store.list_names()) == {"x/good"}
    assert asyncio.run(store.get("x/junk")) == []
