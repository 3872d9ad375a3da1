from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from segment_annotator.errors import ValidationError
from segment_annotator.models.schemas import (
    BulkResultItem,
    BulkTimestampsOut,
    BulkTimestampsRequest,
    TimestampFilesOut,
    TimestampRowsOut,
    TimestampRowsRequest,
    TimestampsOut,
    TimestampUploadOut,
)
from segment_annotator.services.backends import Backends, get_backends
from segment_annotator.services.timestamp_parser import parse_timestamps

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/timestamps", tags=["timestamps"])


@router.get("", response_model=TimestampFilesOut)
async def list_timestamps(backends: Backends = Depends(get_backends)) -> TimestampFilesOut:
    return TimestampFilesOut(files=sorted(await backends.timestamps.list_names()))


@router.post("/upload", response_model=TimestampUploadOut)
async def upload_timestamps(
    csv: UploadFile | None = File(default=None),
    video_name: str | None = Form(default=None, alias="videoName"),
    backends: Backends = Depends(get_backends),
) -> TimestampUploadOut:
    if csv is None:
        raise ValidationError("No CSV file provided")
    if not video_name:
        raise ValidationError("videoName is required")

    raw = await csv.read()
    content = raw.decode("utf-8-sig", errors="replace")
    result = parse_timestamps(content, csv.filename)
    if not result.segments:
        raise ValidationError(
            "No valid timestamps found. Use one pair per line: MM:SS,MM:SS or seconds,seconds"
        )
    if result.skipped:
        logger.info("Skipped %s invalid timestamp lines for %s", result.skipped, video_name)

    segments = await backends.timestamps.upsert(video_name, result.segments)
    return TimestampUploadOut(video_name=video_name, segments=segments, count=len(segments))


@router.post("/bulk", response_model=BulkTimestampsOut)
async def bulk_upload_timestamps(
    request: BulkTimestampsRequest, backends: Backends = Depends(get_backends)
) -> BulkTimestampsOut:
    entries = [
        (
            item.video_name,
            parse_timestamps(item.content).segments if item.content else None,
        )
        for item in request.csv_files
    ]
    results = await backends.timestamps.bulk_upsert(entries)
    return BulkTimestampsOut(
        uploaded=len(results),
        results=[BulkResultItem(video_name=name, count=count) for name, count in results],
    )


@router.post("/rows", response_model=TimestampRowsOut)
async def add_timestamp_rows(
    request: TimestampRowsRequest, backends: Backends = Depends(get_backends)
) -> TimestampRowsOut:
    if not backends.timestamps.supports_rows:
        raise ValidationError("Row-based timestamps require a database backend")
    inserted = await backends.timestamps.add_rows(request.rows)
    return TimestampRowsOut(inserted=inserted)


@router.get("/{video_name:path}", response_model=TimestampsOut)
async def get_timestamps(video_name: str, backends: Backends = Depends(get_backends)):
    segments = await backends.timestamps.get(video_name)
    if not segments:
        return JSONResponse(
            status_code=404,
            content={"error": f"No timestamps for {video_name}", "segments": []},
        )
    return TimestampsOut(video_name=video_name, segments=segments)
