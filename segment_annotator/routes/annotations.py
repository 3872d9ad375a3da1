from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Body, Depends, Query, Response

from segment_annotator.constants import INTENTS
from segment_annotator.errors import NotFound
from segment_annotator.models.schemas import Annotation, AnnotationQuery, IntentOut
from segment_annotator.services.annotation_store import parse_create, parse_update
from segment_annotator.services.backends import Backends, get_backends

router = APIRouter(prefix="/api", tags=["annotations"])


@router.get("/intents", response_model=List[IntentOut])
async def list_intents() -> List[IntentOut]:
    return [IntentOut(value=label, label=label, description=text) for label, text in INTENTS]


@router.get("/annotations", response_model=List[Annotation])
async def list_annotations(
    video_id: str | None = Query(default=None, alias="videoId"),
    intent: str | None = None,
    search: str | None = None,
    sort: str | None = None,
    backends: Backends = Depends(get_backends),
) -> List[Annotation]:
    query = AnnotationQuery(video_id=video_id, intent=intent, search=search, sort=sort)
    return await backends.annotations.get_all(query)


@router.get("/annotations/{annotation_id}", response_model=Annotation)
async def get_annotation(
    annotation_id: str, backends: Backends = Depends(get_backends)
) -> Annotation:
    annotation = await backends.annotations.get_by_id(annotation_id)
    if annotation is None:
        raise NotFound("Not found")
    return annotation


@router.post("/annotations", response_model=Annotation, status_code=201)
async def create_annotation(
    payload: dict[str, Any] = Body(...), backends: Backends = Depends(get_backends)
) -> Annotation:
    return await backends.annotations.create(parse_create(payload))


@router.put("/annotations/{annotation_id}", response_model=Annotation)
async def update_annotation(
    annotation_id: str,
    payload: dict[str, Any] = Body(...),
    backends: Backends = Depends(get_backends),
) -> Annotation:
    annotation = await backends.annotations.update(annotation_id, parse_update(payload))
    if annotation is None:
        raise NotFound("Not found")
    return annotation


@router.delete("/annotations/{annotation_id}", status_code=204)
async def delete_annotation(
    annotation_id: str, backends: Backends = Depends(get_backends)
) -> Response:
    if not await backends.annotations.remove(annotation_id):
        raise NotFound("Not found")
    return Response(status_code=204)
