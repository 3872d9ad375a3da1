from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from segment_annotator.services.backends import Backends, get_backends
from segment_annotator.utils.export import annotations_to_csv, annotations_to_json

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("/{export_format}")
async def export_annotations(
    export_format: str,
    video_id: str | None = Query(default=None, alias="videoId"),
    backends: Backends = Depends(get_backends),
) -> Response:
    if export_format not in {"json", "csv"}:
        return JSONResponse(status_code=400, content={"error": "Use json or csv"})

    annotations = await backends.annotations.get_for_export(video_id)
    if export_format == "json":
        return Response(
            content=annotations_to_json(annotations),
            media_type="application/json",
            headers={"Content-Disposition": "attachment; filename=annotations.json"},
        )
    return Response(
        content=annotations_to_csv(annotations),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=annotations.csv"},
    )
