from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from segment_annotator.constants import DEFAULT_VIDEO_ID, VIDEO_STATUS_PENDING

VideoStatus = Literal["pending", "in_progress", "completed"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoDescriptor(CamelModel):
    url: str
    name: str
    status: VideoStatus = VIDEO_STATUS_PENDING


class Queue(CamelModel):
    current_index: int = 0
    videos: list[VideoDescriptor] = Field(default_factory=list)


class QueueVideoOut(VideoDescriptor):
    has_timestamps: bool = False
    downloaded: bool = False
    local_url: str | None = None


class QueueOut(CamelModel):
    current_index: int
    videos: list[QueueVideoOut]
    timestamps_source: str


class SetQueueRequest(CamelModel):
    videos: list[Any]


class SetCurrentRequest(CamelModel):
    index: Any = None


class Segment(BaseModel):
    start: float
    end: float


class TimestampsOut(CamelModel):
    video_name: str
    segments: list[Segment]


class TimestampUploadOut(TimestampsOut):
    count: int


class TimestampFilesOut(BaseModel):
    files: list[str]


class CsvFileIn(CamelModel):
    video_name: str | None = None
    content: str | None = None


class BulkTimestampsRequest(CamelModel):
    csv_files: list[CsvFileIn]


class BulkResultItem(CamelModel):
    video_name: str
    count: int


class BulkTimestampsOut(BaseModel):
    uploaded: int
    results: list[BulkResultItem]


class TimestampRowsRequest(BaseModel):
    rows: list[dict[str, Any]]


class TimestampRowsOut(BaseModel):
    inserted: int


class VideoCacheStatus(BaseModel):
    name: str
    downloaded: bool
    size: int


class VideoStatusOut(BaseModel):
    videos: list[VideoCacheStatus]


class Annotation(CamelModel):
    id: str
    video_id: str = DEFAULT_VIDEO_ID
    start_time: float
    end_time: float
    intent: str
    text: str = ""
    created_at: datetime
    updated_at: datetime


class AnnotationCreate(CamelModel):
    video_id: str = DEFAULT_VIDEO_ID
    start_time: float
    end_time: float
    intent: str
    text: str = ""


class AnnotationUpdate(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", allow_inf_nan=False
    )

    video_id: str | None = None
    start_time: float | None = None
    end_time: float | None = None
    intent: str | None = None
    text: str | None = None


class AnnotationQuery(CamelModel):
    video_id: str | None = None
    intent: str | None = None
    search: str | None = None
    sort: str | None = None


class IntentOut(BaseModel):
    value: str
    label: str
    description: str
