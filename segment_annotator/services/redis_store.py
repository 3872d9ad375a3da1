from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis

from segment_annotator.constants import REDIS_ANNOTATION_IDS_KEY, REDIS_ANNOTATION_KEY_PREFIX
from segment_annotator.errors import BackendUnavailable
from segment_annotator.models.schemas import (
    Annotation,
    AnnotationCreate,
    AnnotationQuery,
    AnnotationUpdate,
)
from segment_annotator.services.annotation_store import (
    AnnotationStore,
    filter_and_sort,
    new_annotation,
    sort_for_export,
)

logger = logging.getLogger(__name__)


def _key(annotation_id: str) -> str:
    return f"{REDIS_ANNOTATION_KEY_PREFIX}:{annotation_id}"


@asynccontextmanager
async def _redis_errors() -> AsyncIterator[None]:
    try:
        yield
    except redis.RedisError as exc:
        logger.exception("Redis operation failed")
        raise BackendUnavailable("Document store unavailable") from exc


class RedisAnnotationStore(AnnotationStore):
    """One JSON document per annotation plus a set indexing their ids."""

    def __init__(self, client: redis.Redis, revalidate_updates: bool = False) -> None:
        self._redis = client
        self.revalidate_updates = revalidate_updates

    @classmethod
    def from_url(cls, redis_url: str, revalidate_updates: bool = False) -> RedisAnnotationStore:
        return cls(redis.from_url(redis_url, decode_responses=True), revalidate_updates)

    async def ping(self) -> None:
        async with _redis_errors():
            await self._redis.ping()
        logger.info("Redis connection OK")

    async def close(self) -> None:
        await self._redis.aclose()

    async def _load_all(self) -> list[Annotation]:
        async with _redis_errors():
            ids = sorted(await self._redis.smembers(REDIS_ANNOTATION_IDS_KEY))
            if not ids:
                return []
            documents = await self._redis.mget([_key(annotation_id) for annotation_id in ids])
        return [Annotation.model_validate_json(doc) for doc in documents if doc]

    async def _save(self, annotation: Annotation) -> None:
        async with _redis_errors():
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(_key(annotation.id), annotation.model_dump_json(by_alias=True))
                pipe.sadd(REDIS_ANNOTATION_IDS_KEY, annotation.id)
                await pipe.execute()

    async def get_all(self, query: AnnotationQuery) -> list[Annotation]:
        return filter_and_sort(await self._load_all(), query)

    async def get_by_id(self, annotation_id: str) -> Annotation | None:
        async with _redis_errors():
            document = await self._redis.get(_key(annotation_id))
        return Annotation.model_validate_json(document) if document else None

    async def create(self, data: AnnotationCreate) -> Annotation:
        annotation = new_annotation(data)
        await self._save(annotation)
        return annotation

    async def update(self, annotation_id: str, update: AnnotationUpdate) -> Annotation | None:
        current = await self.get_by_id(annotation_id)
        if current is None:
            return None
        merged = self.merge(current, update)
        await self._save(merged)
        return merged

    async def remove(self, annotation_id: str) -> bool:
        async with _redis_errors():
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.delete(_key(annotation_id))
                pipe.srem(REDIS_ANNOTATION_IDS_KEY, annotation_id)
                deleted, _ = await pipe.execute()
        return bool(deleted)

    async def get_for_export(self, video_id: str | None = None) -> list[Annotation]:
        return sort_for_export(await self._load_all(), video_id)
