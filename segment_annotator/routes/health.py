from __future__ import annotations

from fastapi import APIRouter, Depends

from segment_annotator.services.backends import Backends, get_backends

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check(backends: Backends = Depends(get_backends)) -> dict[str, object]:
    queue = await backends.queue.get_queue()
    return {"status": "ok", "backend": backends.label, "queue_length": len(queue.videos)}
