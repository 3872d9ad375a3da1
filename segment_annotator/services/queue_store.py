from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from segment_annotator.constants import (
    VIDEO_STATUS_COMPLETED,
    VIDEO_STATUS_IN_PROGRESS,
    VIDEO_STATUS_PENDING,
)
from segment_annotator.errors import OutOfRange, ValidationError
from segment_annotator.models.schemas import Queue, VideoDescriptor
from segment_annotator.services.video_names import resolve_video_name

logger = logging.getLogger(__name__)


def normalize_urls(urls: Iterable[Any]) -> list[str]:
    cleaned: list[str] = []
    for url in urls:
        if not isinstance(url, str):
            raise ValidationError("videos must be a non-empty array of URLs")
        if url.strip():
            cleaned.append(url.strip())
    return cleaned


def build_queue(urls: Iterable[Any]) -> Queue:
    cleaned = normalize_urls(urls)
    if not cleaned:
        raise ValidationError("videos must be a non-empty array of URLs")
    videos = [
        VideoDescriptor(url=url, name=resolve_video_name(url), status=VIDEO_STATUS_PENDING)
        for url in cleaned
    ]
    videos[0].status = VIDEO_STATUS_IN_PROGRESS
    return Queue(current_index=0, videos=videos)


def check_index(queue: Queue, index: Any) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise OutOfRange(index, len(queue.videos))
    if index < 0 or index >= len(queue.videos):
        raise OutOfRange(index, len(queue.videos))
    return index


def mark_current(queue: Queue, index: int) -> Queue:
    """Point the queue at ``index``.

    Everything before ``index`` is marked completed, even when jumping
    backwards; the target becomes in_progress unless already completed.
    """
    check_index(queue, index)
    queue.current_index = index
    for position, video in enumerate(queue.videos):
        if video.status == VIDEO_STATUS_COMPLETED:
            continue
        if position < index:
            video.status = VIDEO_STATUS_COMPLETED
        elif position == index:
            video.status = VIDEO_STATUS_IN_PROGRESS
    return queue


def mark_complete(queue: Queue, index: int) -> Queue:
    check_index(queue, index)
    queue.videos[index].status = VIDEO_STATUS_COMPLETED
    if index == queue.current_index and index < len(queue.videos) - 1:
        queue.current_index = index + 1
        queue.videos[index + 1].status = VIDEO_STATUS_IN_PROGRESS
    return queue


def merge_queue(existing: Queue, urls: Iterable[Any]) -> tuple[Queue, int, int] | None:
    """Reconcile ``existing`` with a configured URL list.

    Returns ``(queue, added, removed)``, or ``None`` when the name sets match.
    """
    configured: list[VideoDescriptor] = []
    for url in urls:
        if isinstance(url, str) and url.strip():
            configured.append(VideoDescriptor(url=url.strip(), name=resolve_video_name(url.strip())))
    existing_by_name = {video.name: video for video in existing.videos}
    configured_names = {video.name for video in configured}

    added = sum(1 for video in configured if video.name not in existing_by_name)
    removed = sum(1 for video in existing.videos if video.name not in configured_names)
    if not added and not removed:
        return None

    merged: list[VideoDescriptor] = []
    seen: set[str] = set()
    for video in configured:
        if video.name in seen:
            continue
        seen.add(video.name)
        merged.append(existing_by_name.get(video.name, video).model_copy())

    if merged and not any(video.status == VIDEO_STATUS_IN_PROGRESS for video in merged):
        for video in merged:
            if video.status == VIDEO_STATUS_PENDING:
                video.status = VIDEO_STATUS_IN_PROGRESS
                break

    current_index = min(existing.current_index, max(0, len(merged) - 1))
    return Queue(current_index=current_index, videos=merged), added, removed


class QueueStore(ABC):
    """Queue operations shared by every backend; backends supply read/write."""

    @abstractmethod
    async def read(self) -> Queue: ...

    @abstractmethod
    async def write(self, queue: Queue) -> None: ...

    async def get_queue(self) -> Queue:
        return await self.read()

    async def set_queue(self, urls: Iterable[Any]) -> Queue:
        queue = build_queue(urls)
        await self.write(queue)
        logger.info("Queue replaced with %s videos", len(queue.videos))
        return queue

    async def set_current(self, index: Any) -> Queue:
        queue = await self.read()
        mark_current(queue, index)
        await self.write(queue)
        return queue

    async def complete(self, index: Any) -> Queue:
        queue = await self.read()
        mark_complete(queue, index)
        await self.write(queue)
        return queue

    async def clear(self) -> Queue:
        queue = Queue()
        await self.write(queue)
        logger.info("Queue cleared")
        return queue

    async def sync_from_config(self, urls: list[Any]) -> Queue:
        existing = await self.read()
        outcome = merge_queue(existing, urls)
        if outcome is None:
            logger.info("Queue: %s videos (unchanged from config)", len(existing.videos))
            return existing
        queue, added, removed = outcome
        await self.write(queue)
        logger.info(
            "Queue synced: %s videos (%s added, %s removed)",
            len(queue.videos),
            added,
            removed,
        )
        return queue


class FileQueueStore(QueueStore):
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    async def read(self) -> Queue:
        if not self.path.exists():
            return Queue()
        with open(self.path, encoding="utf-8") as f:
            return Queue.model_validate(json.load(f))

    async def write(self, queue: Queue) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(queue.model_dump(mode="json", by_alias=True), f, indent=2)


def load_config_urls(path: Path) -> list[Any]:
    """Read the operator's ``videos.json``, creating an empty one if missing."""
    path = Path(path)
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([], f, indent=2)
        logger.info("Created empty %s; add video URLs to it", path)
        return []
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        logger.warning("Ignoring %s: expected a JSON array of URLs", path)
        return []
    return data
