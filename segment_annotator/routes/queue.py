from __future__ import annotations

from fastapi import APIRouter, Depends

from segment_annotator.models.schemas import (
    Queue,
    QueueOut,
    QueueVideoOut,
    SetCurrentRequest,
    SetQueueRequest,
)
from segment_annotator.services.backends import Backends, get_backends

router = APIRouter(prefix="/api/queue", tags=["queue"])


async def enrich_queue(queue: Queue, backends: Backends) -> QueueOut:
    with_timestamps = await backends.timestamps.list_names() if queue.videos else set()
    videos: list[QueueVideoOut] = []
    for video in queue.videos:
        downloaded = backends.videos.is_cached(video.name)
        videos.append(
            QueueVideoOut(
                **video.model_dump(),
                has_timestamps=video.name in with_timestamps,
                downloaded=downloaded,
                local_url=f"/api/video/{video.name}" if downloaded else None,
            )
        )
    return QueueOut(
        current_index=queue.current_index,
        videos=videos,
        timestamps_source=backends.timestamps.source,
    )


@router.get("", response_model=QueueOut)
async def get_queue(backends: Backends = Depends(get_backends)) -> QueueOut:
    return await enrich_queue(await backends.queue.get_queue(), backends)


@router.post("", response_model=QueueOut)
async def set_queue(
    request: SetQueueRequest, backends: Backends = Depends(get_backends)
) -> QueueOut:
    queue = await backends.queue.set_queue(request.videos)
    return await enrich_queue(queue, backends)


@router.put("/current", response_model=QueueOut)
async def set_current(
    request: SetCurrentRequest, backends: Backends = Depends(get_backends)
) -> QueueOut:
    queue = await backends.queue.set_current(request.index)
    return await enrich_queue(queue, backends)


@router.put("/{index}/complete", response_model=QueueOut)
async def complete_video(index: int, backends: Backends = Depends(get_backends)) -> QueueOut:
    queue = await backends.queue.complete(index)
    return await enrich_queue(queue, backends)


@router.delete("", response_model=QueueOut)
async def clear_queue(backends: Backends = Depends(get_backends)) -> QueueOut:
    queue = await backends.queue.clear()
    return await enrich_queue(queue, backends)
