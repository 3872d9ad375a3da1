import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

pytest.importorskip("aiosqlite")

from segment_annotator.models.schemas import AnnotationQuery, Segment
from segment_annotator.services.annotation_store import parse_create, parse_update
from segment_annotator.services.database import (
    Database,
    SqlAnnotationStore,
    SqlQueueStore,
    SqlTimestampStore,
    _to_async_url,
)

URLS = ["https://host/a/one.mp4", "https://host/a/two.mp4"]


def run_with_db(tmp_path, scenario):
    async def wrapper():
        db = Database(f"sqlite:///{tmp_path / 'annotator.sqlite'}")
        await db.create_all()
        try:
            await scenario(db)
        finally:
            await db.dispose()

    asyncio.run(wrapper())


def test_async_url_mapping():
    assert _to_async_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert _to_async_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert _to_async_url("sqlite:///x.db") == "sqlite+aiosqlite:///x.db"
    assert _to_async_url("postgresql+asyncpg://h/db") == "postgresql+asyncpg://h/db"


def test_queue_single_row(tmp_path):
    async def scenario(db):
        store = SqlQueueStore(db)
        assert (await store.get_queue()).videos == []
        await store.set_queue(URLS)
        queue = await store.complete(0)
        assert queue.current_index == 1
        reloaded = await store.get_queue()
        assert [v.status for v in reloaded.videos] == ["completed", "in_progress"]

    run_with_db(tmp_path, scenario)


def test_timestamps_upsert_and_rows(tmp_path):
    async def scenario(db):
        store = SqlTimestampStore(db)
        await store.upsert("a/one", [Segment(start=70, end=95), Segment(start=10, end=25)])
        await store.upsert("a/one", [Segment(start=130, end=150), Segment(start=5, end=9)])
        assert await store.get("a/one") == [Segment(start=5, end=9), Segment(start=130, end=150)]

        inserted = await store.add_rows(
            [
                {"video_name": "b/two", "start": "00:10", "end": "00:20"},
                {"video_name": "b/two", "start_sec": 40, "end_sec": 45},
                {"video_name": "b/two", "start": "00:50", "end": "00:40"},
                {"start": "00:01", "end": "00:02"},
            ]
        )
        assert inserted == 3
        assert await store.get("b/two") == [Segment(start=10, end=20), Segment(start=40, end=45)]
        assert await store.list_names() == {"a/one", "b/two"}
        assert await store.get("c/none") == []

        await store.add_rows([{"video_name": "c/bad", "start": "00:30", "end": "00:10"}])
        assert "c/bad" not in await store.list_names()

    run_with_db(tmp_path, scenario)


def test_annotations_crud(tmp_path):
    async def scenario(db):
        store = SqlAnnotationStore(db)
        created = await store.create(
            parse_create({"videoId": "v/1", "startTime": 9, "endTime": 12, "intent": "Blurry"})
        )
        await store.create(
            parse_create({"videoId": "v/1", "startTime": 2, "endTime": 3, "intent": "Able to See"})
        )

        assert (await store.get_by_id(created.id)).intent == "Blurry"
        assert [a.intent for a in await store.get_all(AnnotationQuery(intent="BLURRY"))] == ["Blurry"]
        assert [a.start_time for a in await store.get_all(AnnotationQuery(sort="startTime"))] == [2, 9]
        assert len(await store.get_all(AnnotationQuery(search="able"))) == 1

        updated = await store.update(created.id, parse_update({"text": "note"}))
        assert updated.text == "note"
        assert updated.updated_at >= created.updated_at

        assert [a.start_time for a in await store.get_for_export()] == [2, 9]
        assert await store.remove(created.id) is True
        assert await store.remove(created.id) is False
        assert await store.get_by_id(created.id) is None

    run_with_db(tmp_path, scenario)
