from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from segment_annotator.constants import QUEUE_ROW_ID, SORT_BY_START_TIME, TIMESTAMPS_SOURCE_DATABASE
from segment_annotator.errors import BackendUnavailable
from segment_annotator.models.db_models import AnnotationRow, Base, QueueRow, TimestampRow
from segment_annotator.models.schemas import (
    Annotation,
    AnnotationCreate,
    AnnotationQuery,
    AnnotationUpdate,
    Queue,
    Segment,
)
from segment_annotator.services.annotation_store import AnnotationStore
from segment_annotator.services.queue_store import QueueStore
from segment_annotator.services.timestamp_parser import format_time, parse_time_string
from segment_annotator.services.timestamp_store import TimestampStore

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, database_url: str) -> None:
        async_url = _to_async_url(database_url)
        self._engine: AsyncEngine = create_async_engine(async_url, pool_pre_ping=True)
        self._sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    async def ping(self) -> None:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(select(1))
        except (SQLAlchemyError, OSError) as exc:
            raise BackendUnavailable("Database unreachable") from exc
        logger.info("Database connection OK")

    async def create_all(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Database operation failed")
            raise BackendUnavailable("Database operation failed") from exc


def _to_async_url(database_url: str) -> str:
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset on DateTime(timezone=True) columns
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _row_to_annotation(row: AnnotationRow) -> Annotation:
    return Annotation(
        id=row.id,
        video_id=row.video_id,
        start_time=row.start_time,
        end_time=row.end_time,
        intent=row.intent,
        text=row.text or "",
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


class SqlQueueStore(QueueStore):
    """The whole queue lives in a single row keyed by ``QUEUE_ROW_ID``."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def read(self) -> Queue:
        async with self._db.session() as session:
            row = await session.get(QueueRow, QUEUE_ROW_ID)
            if row is None:
                return Queue()
            return Queue(current_index=row.current_index or 0, videos=row.videos or [])

    async def write(self, queue: Queue) -> None:
        videos = [video.model_dump(mode="json") for video in queue.videos]
        async with self._db.session() as session:
            row = await session.get(QueueRow, QUEUE_ROW_ID)
            if row is None:
                session.add(
                    QueueRow(id=QUEUE_ROW_ID, current_index=queue.current_index, videos=videos)
                )
            else:
                row.current_index = queue.current_index
                row.videos = videos
            await session.commit()


def _valid_span(raw_start: str, raw_end: str) -> tuple[float, float] | None:
    start = parse_time_string(raw_start)
    end = parse_time_string(raw_end)
    if start is None or end is None or start < 0 or end <= start:
        return None
    return start, end


class SqlTimestampStore(TimestampStore):
    source = TIMESTAMPS_SOURCE_DATABASE
    supports_rows = True

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, video_name: str) -> list[Segment]:
        async with self._db.session() as session:
            result = await session.execute(
                select(TimestampRow.start, TimestampRow.end).where(
                    TimestampRow.video_name == video_name
                )
            )
            rows = result.all()
        segments: list[Segment] = []
        for raw_start, raw_end in rows:
            span = _valid_span(raw_start, raw_end)
            if span is not None:
                segments.append(Segment(start=span[0], end=span[1]))
        # row order is not guaranteed and MM:SS strings do not sort numerically
        return sorted(segments, key=lambda segment: segment.start)

    async def list_names(self) -> set[str]:
        async with self._db.session() as session:
            result = await session.execute(
                select(TimestampRow.video_name, TimestampRow.start, TimestampRow.end)
            )
            rows = result.all()
        return {
            video_name
            for video_name, raw_start, raw_end in rows
            if _valid_span(raw_start, raw_end)
        }

    async def upsert(self, video_name: str, segments: list[Segment]) -> list[Segment]:
        async with self._db.session() as session:
            await session.execute(delete(TimestampRow).where(TimestampRow.video_name == video_name))
            session.add_all(
                [
                    TimestampRow(
                        video_name=video_name,
                        start=format_time(segment.start),
                        end=format_time(segment.end),
                    )
                    for segment in segments
                ]
            )
            await session.commit()
        logger.info("Stored %s segments for %s", len(segments), video_name)
        return segments

    async def add_rows(self, rows: list[dict[str, Any]]) -> int:
        records: list[TimestampRow] = []
        for row in rows:
            if not isinstance(row, dict) or not row.get("video_name"):
                continue
            start = row.get("start") if row.get("start") is not None else row.get("start_sec")
            end = row.get("end") if row.get("end") is not None else row.get("end_sec")
            if start is None or end is None:
                continue
            records.append(
                TimestampRow(
                    video_name=str(row["video_name"]).strip(),
                    start=str(start).strip(),
                    end=str(end).strip(),
                )
            )
        if not records:
            return 0
        async with self._db.session() as session:
            session.add_all(records)
            await session.commit()
        return len(records)


class SqlAnnotationStore(AnnotationStore):
    def __init__(self, db: Database, revalidate_updates: bool = False) -> None:
        self._db = db
        self.revalidate_updates = revalidate_updates

    async def get_all(self, query: AnnotationQuery) -> list[Annotation]:
        stmt = select(AnnotationRow)
        if query.video_id:
            stmt = stmt.where(AnnotationRow.video_id == query.video_id)
        if query.intent:
            stmt = stmt.where(func.lower(AnnotationRow.intent) == query.intent.lower())
        if query.search:
            stmt = stmt.where(
                or_(
                    AnnotationRow.text.icontains(query.search, autoescape=True),
                    AnnotationRow.intent.icontains(query.search, autoescape=True),
                )
            )
        if query.sort == SORT_BY_START_TIME:
            stmt = stmt.order_by(AnnotationRow.start_time.asc())
        else:
            stmt = stmt.order_by(AnnotationRow.created_at.desc())
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return [_row_to_annotation(row) for row in result.scalars().all()]

    async def get_by_id(self, annotation_id: str) -> Annotation | None:
        async with self._db.session() as session:
            row = await session.get(AnnotationRow, annotation_id)
            return _row_to_annotation(row) if row else None

    async def create(self, data: AnnotationCreate) -> Annotation:
        async with self._db.session() as session:
            row = AnnotationRow(**data.model_dump())
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _row_to_annotation(row)

    async def update(self, annotation_id: str, update: AnnotationUpdate) -> Annotation | None:
        async with self._db.session() as session:
            row = await session.get(AnnotationRow, annotation_id)
            if row is None:
                return None
            merged = self.merge(_row_to_annotation(row), update)
            row.video_id = merged.video_id
            row.start_time = merged.start_time
            row.end_time = merged.end_time
            row.intent = merged.intent
            row.text = merged.text
            row.updated_at = merged.updated_at
            await session.commit()
            return merged

    async def remove(self, annotation_id: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                delete(AnnotationRow).where(AnnotationRow.id == annotation_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def get_for_export(self, video_id: str | None = None) -> list[Annotation]:
        stmt = select(AnnotationRow).order_by(AnnotationRow.start_time.asc())
        if video_id:
            stmt = stmt.where(AnnotationRow.video_id == video_id)
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return [_row_to_annotation(row) for row in result.scalars().all()]
