from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from fastapi import Request

from segment_annotator.config import Settings
from segment_annotator.services.annotation_store import AnnotationStore, FileAnnotationStore
from segment_annotator.services.database import (
    Database,
    SqlAnnotationStore,
    SqlQueueStore,
    SqlTimestampStore,
)
from segment_annotator.services.queue_store import FileQueueStore, QueueStore, load_config_urls
from segment_annotator.services.redis_store import RedisAnnotationStore
from segment_annotator.services.timestamp_store import FileTimestampStore, TimestampStore
from segment_annotator.services.video_cache import VideoCache
from segment_annotator.utils.common import ensure_dir

logger = logging.getLogger(__name__)


@dataclass
class Backends:
    """The stores chosen for this process; fixed for its lifetime."""

    label: str
    queue: QueueStore
    timestamps: TimestampStore
    annotations: AnnotationStore
    videos: VideoCache
    database: Database | None = None
    _download_task: asyncio.Task | None = field(default=None, repr=False)

    async def startup(self, settings: Settings) -> None:
        for directory in (settings.data_path, settings.timestamps_dir, settings.cache_dir):
            ensure_dir(directory)

        if self.database is not None:
            await self.database.ping()
            await self.database.create_all()
        if isinstance(self.annotations, RedisAnnotationStore):
            await self.annotations.ping()
        if isinstance(self.annotations, FileAnnotationStore):
            self.annotations.ensure_exists()

        urls = load_config_urls(settings.videos_config_path)
        if urls:
            await self.queue.sync_from_config(urls)
        else:
            queue = await self.queue.get_queue()
            logger.info("Queue: %s videos (no URLs in %s)", len(queue.videos), settings.videos_config_path.name)

        if settings.download_on_startup:
            queue = await self.queue.get_queue()
            self._download_task = asyncio.create_task(self.videos.download_all(queue.videos))

    async def shutdown(self) -> None:
        if self._download_task is not None and not self._download_task.done():
            self._download_task.cancel()
            try:
                await self._download_task
            except asyncio.CancelledError:
                pass
        if isinstance(self.annotations, RedisAnnotationStore):
            await self.annotations.close()
        if self.database is not None:
            await self.database.dispose()


def build_backends(settings: Settings) -> Backends:
    videos = VideoCache(settings.cache_dir, timeout=settings.download_timeout)

    if settings.database_url:
        db = Database(settings.database_url)
        logger.info("Using relational database (annotations, queue, timestamps)")
        return Backends(
            label="database",
            queue=SqlQueueStore(db),
            timestamps=SqlTimestampStore(db),
            annotations=SqlAnnotationStore(db, settings.revalidate_updates),
            videos=videos,
            database=db,
        )

    queue = FileQueueStore(settings.queue_path)
    timestamps = FileTimestampStore(settings.timestamps_dir)

    if settings.redis_url:
        logger.info("Using Redis for annotations, local files for queue and timestamps")
        return Backends(
            label="redis",
            queue=queue,
            timestamps=timestamps,
            annotations=RedisAnnotationStore.from_url(settings.redis_url, settings.revalidate_updates),
            videos=videos,
        )

    logger.info("Using local %s (set DATABASE_URL or REDIS_URL for a shared store)", settings.annotations_path.name)
    return Backends(
        label="local",
        queue=queue,
        timestamps=timestamps,
        annotations=FileAnnotationStore(settings.annotations_path, settings.revalidate_updates),
        videos=videos,
    )


def get_backends(request: Request) -> Backends:
    return request.app.state.backends
