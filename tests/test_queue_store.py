import asyncio
import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from segment_annotator.errors import OutOfRange, ValidationError
from segment_annotator.models.schemas import Queue, VideoDescriptor
from segment_annotator.services.queue_store import (
    FileQueueStore,
    build_queue,
    load_config_urls,
    mark_complete,
    mark_current,
    merge_queue,
)

URLS = ["https://host/a/one.mp4", "https://host/a/two.mp4", "https://host/b/three.mp4"]


def statuses(queue):
    return [video.status for video in queue.videos]


def test_set_queue_rejects_empty_list(tmp_path):
    store = FileQueueStore(tmp_path / "queue.json")
    with pytest.raises(ValidationError):
        asyncio.run(store.set_queue([]))
    with pytest.raises(ValidationError):
        asyncio.run(store.set_queue(["   "]))


def test_set_queue_marks_first_in_progress(tmp_path):
    store = FileQueueStore(tmp_path / "queue.json")
    queue = asyncio.run(store.set_queue(URLS[:2]))

    assert queue.current_index == 0
    assert [video.name for video in queue.videos] == ["a/one", "a/two"]
    assert statuses(queue) == ["in_progress", "pending"]

    reloaded = asyncio.run(store.get_queue())
    assert reloaded == queue
    on_disk = json.loads((tmp_path / "queue.json").read_text())
    assert on_disk["currentIndex"] == 0


def test_get_queue_without_state_is_empty(tmp_path):
    queue = asyncio.run(FileQueueStore(tmp_path / "missing.json").get_queue())
    assert queue == Queue(current_index=0, videos=[])


def test_complete_current_advances_pointer():
    queue = build_queue(URLS)
    mark_complete(queue, 0)
    assert queue.current_index == 1
    assert statuses(queue) == ["completed", "in_progress", "pending"]


def test_complete_last_keeps_pointer():
    queue = build_queue(URLS)
    mark_current(queue, 2)
    mark_complete(queue, 2)
    assert queue.current_index == 2
    assert statuses(queue) == ["completed", "completed", "completed"]


def test_complete_non_current_does_not_move_pointer():
    queue = build_queue(URLS)
    mark_complete(queue, 2)
    assert queue.current_index == 0
    assert statuses(queue) == ["in_progress", "pending", "completed"]


def test_set_current_forward_marks_earlier_completed():
    queue = build_queue(URLS)
    mark_current(queue, 2)
    assert queue.current_index == 2
    assert statuses(queue) == ["completed", "completed", "in_progress"]


def test_set_current_backward_keeps_completed_videos():
    queue = build_queue(URLS)
    mark_current(queue, 2)
    mark_current(queue, 1)
    assert queue.current_index == 1
    # the jump target was already completed, so it stays completed
    assert statuses(queue) == ["completed", "completed", "in_progress"]


@pytest.mark.parametrize("index", [-1, 3, "1", True, None])
def test_out_of_range_indexes_are_rejected(tmp_path, index):
    store = FileQueueStore(tmp_path / "queue.json")
    asyncio.run(store.set_queue(URLS))
    with pytest.raises(OutOfRange):
        asyncio.run(store.set_current(index))
    with pytest.raises(OutOfRange):
        asyncio.run(store.complete(index))


def test_clear_resets_queue(tmp_path):
    store = FileQueueStore(tmp_path / "queue.json")
    asyncio.run(store.set_queue(URLS))
    cleared = asyncio.run(store.clear())
    assert cleared == Queue()
    assert asyncio.run(store.get_queue()).videos == []


def test_merge_keeps_status_appends_and_drops():
    existing = Queue(
        current_index=1,
        videos=[
            VideoDescriptor(url=URLS[0], name="a/one", status="completed"),
            VideoDescriptor(url=URLS[1], name="a/two", status="in_progress"),
        ],
    )
    merged, added, removed = merge_queue(existing, [URLS[1], URLS[2]])

    assert (added, removed) == (1, 1)
    assert [video.name for video in merged.videos] == ["a/two", "b/three"]
    assert statuses(merged) == ["in_progress", "pending"]
    assert merged.current_index == 1


def test_merge_promotes_first_pending_when_nothing_in_progress():
    existing = Queue(
        current_index=0,
        videos=[VideoDescriptor(url=URLS[0], name="a/one", status="completed")],
    )
    merged, _, _ = merge_queue(existing, URLS[:2])
    assert statuses(merged) == ["completed", "in_progress"]


def test_merge_with_same_names_is_a_no_op():
    existing = build_queue(URLS)
    assert merge_queue(existing, list(reversed(URLS))) is None


def test_sync_from_config_persists_merge(tmp_path):
    store = FileQueueStore(tmp_path / "queue.json")
    asyncio.run(store.set_queue(URLS[:1]))
    synced = asyncio.run(store.sync_from_config(URLS))
    assert len(synced.videos) == 3
    assert asyncio.run(store.get_queue()) == synced


def test_load_config_creates_missing_file(tmp_path):
    path = tmp_path / "videos.json"
    assert load_config_urls(path) == []
    assert json.loads(path.read_text()) == []

    path.write_text(json.dumps(URLS))
    assert load_config_urls(path) == URLS
