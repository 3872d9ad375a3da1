from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from segment_annotator.constants import CACHED_VIDEO_MIME
from segment_annotator.models.schemas import VideoStatusOut
from segment_annotator.services.backends import Backends, get_backends
from segment_annotator.utils.byte_range import RangeNotSatisfiable, iter_file, parse_range_header

router = APIRouter(prefix="/api", tags=["videos"])


@router.get("/video/{video_name:path}")
async def stream_video(
    video_name: str, request: Request, backends: Backends = Depends(get_backends)
) -> Response:
    path = backends.videos.path_for(video_name)
    if path is None or not path.is_file():
        return JSONResponse(
            status_code=404, content={"error": f"Video not downloaded yet: {video_name}"}
        )

    size = path.stat().st_size
    try:
        span = parse_range_header(request.headers.get("range"), size)
    except RangeNotSatisfiable:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{size}"})

    if span is None:
        return StreamingResponse(
            iter_file(path, 0, size - 1),
            media_type=CACHED_VIDEO_MIME,
            headers={"Content-Length": str(size), "Accept-Ranges": "bytes"},
        )

    start, end = span
    return StreamingResponse(
        iter_file(path, start, end),
        status_code=206,
        media_type=CACHED_VIDEO_MIME,
        headers={
            "Content-Range": f"bytes {start}-{end}/{size}",
            "Content-Length": str(end - start + 1),
            "Accept-Ranges": "bytes",
        },
    )


@router.get("/video-status", response_model=VideoStatusOut)
async def video_status(backends: Backends = Depends(get_backends)) -> VideoStatusOut:
    queue = await backends.queue.get_queue()
    return VideoStatusOut(videos=backends.videos.status(video.name for video in queue.videos))
