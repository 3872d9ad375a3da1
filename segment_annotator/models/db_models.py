from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from segment_annotator.constants import DEFAULT_VIDEO_ID, QUEUE_ROW_ID
from segment_annotator.utils.common import now_utc

JsonColumn = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class QueueRow(Base):
    __tablename__ = "queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=QUEUE_ROW_ID)
    current_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    videos: Mapped[list[dict[str, Any]]] = mapped_column(JsonColumn, default=list, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=now_utc, onupdate=now_utc
    )


class AnnotationRow(Base):
    __tablename__ = "annotations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    video_id: Mapped[str] = mapped_column(
        String(512), default=DEFAULT_VIDEO_ID, nullable=False, index=True
    )
    start_time: Mapped[float] = mapped_column(Float, nullable=False)
    end_time: Mapped[float] = mapped_column(Float, nullable=False)
    intent: Mapped[str] = mapped_column(String(255), nullable=False)
    text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)


class TimestampRow(Base):
    """Append-only segment rows; start/end hold ``MM:SS`` strings."""

    __tablename__ = "timestamp_rows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_name: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    start: Mapped[str] = mapped_column(String(32), nullable=False)
    end: Mapped[str] = mapped_column(String(32), nullable=False)
