from __future__ import annotations

import json
import logging
import random
import string
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from segment_annotator.constants import DEFAULT_VIDEO_ID, SORT_BY_START_TIME
from segment_annotator.errors import ValidationError
from segment_annotator.models.schemas import (
    Annotation,
    AnnotationCreate,
    AnnotationQuery,
    AnnotationUpdate,
)
from segment_annotator.utils.common import is_number, now_utc

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def validate_annotation(data: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    start = data.get("startTime")
    end = data.get("endTime")
    if not is_number(start) or start < 0:
        errors.append("startTime must be a non-negative number")
    if not is_number(end) or end < 0:
        errors.append("endTime must be a non-negative number")
    if is_number(start) and is_number(end) and end < start:
        errors.append("endTime must be >= startTime")
    intent = data.get("intent")
    if not isinstance(intent, str) or not intent:
        errors.append("intent is required")
    return errors


def parse_create(data: dict[str, Any]) -> AnnotationCreate:
    errors = validate_annotation(data)
    if errors:
        raise ValidationError(errors)
    video_id = data.get("videoId")
    text = data.get("text")
    return AnnotationCreate(
        video_id=video_id if isinstance(video_id, str) and video_id else DEFAULT_VIDEO_ID,
        start_time=data["startTime"],
        end_time=data["endTime"],
        intent=data["intent"],
        text=text if isinstance(text, str) else "",
    )


def parse_update(data: dict[str, Any]) -> AnnotationUpdate:
    try:
        return AnnotationUpdate.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        ) from exc


def update_fields(update: AnnotationUpdate) -> dict[str, Any]:
    return update.model_dump(exclude_unset=True, exclude_none=True)


def check_merged(annotation: Annotation) -> None:
    errors = validate_annotation(annotation.model_dump(by_alias=True))
    if errors:
        raise ValidationError(errors)


def matches_query(annotation: Annotation, query: AnnotationQuery) -> bool:
    if query.video_id and annotation.video_id != query.video_id:
        return False
    if query.intent and annotation.intent.lower() != query.intent.lower():
        return False
    if query.search:
        needle = query.search.lower()
        if needle not in (annotation.text or "").lower() and needle not in annotation.intent.lower():
            return False
    return True


def filter_and_sort(annotations: Iterable[Annotation], query: AnnotationQuery) -> list[Annotation]:
    results = [annotation for annotation in annotations if matches_query(annotation, query)]
    if query.sort == SORT_BY_START_TIME:
        return sorted(results, key=lambda a: a.start_time)
    # newest first; later insertions win ties
    return sorted(reversed(results), key=lambda a: a.created_at, reverse=True)


def sort_for_export(annotations: Iterable[Annotation], video_id: str | None) -> list[Annotation]:
    selected = [a for a in annotations if not video_id or a.video_id == video_id]
    return sorted(selected, key=lambda a: a.start_time)


def generate_annotation_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"ann_{int(time.time() * 1000)}_{suffix}"


def new_annotation(data: AnnotationCreate, annotation_id: str | None = None) -> Annotation:
    timestamp = now_utc()
    return Annotation(
        id=annotation_id or generate_annotation_id(),
        created_at=timestamp,
        updated_at=timestamp,
        **data.model_dump(),
    )


class AnnotationStore(ABC):
    """Contract every annotation backend satisfies."""

    revalidate_updates: bool = False

    @abstractmethod
    async def get_all(self, query: AnnotationQuery) -> list[Annotation]: ...

    @abstractmethod
    async def get_by_id(self, annotation_id: str) -> Annotation | None: ...

    @abstractmethod
    async def create(self, data: AnnotationCreate) -> Annotation: ...

    @abstractmethod
    async def update(self, annotation_id: str, update: AnnotationUpdate) -> Annotation | None: ...

    @abstractmethod
    async def remove(self, annotation_id: str) -> bool: ...

    @abstractmethod
    async def get_for_export(self, video_id: str | None = None) -> list[Annotation]: ...

    def merge(self, current: Annotation, update: AnnotationUpdate) -> Annotation:
        merged = current.model_copy(update={**update_fields(update), "updated_at": now_utc()})
        if self.revalidate_updates:
            check_merged(merged)
        return merged


class FileAnnotationStore(AnnotationStore):
    """Annotations kept in a single ``{"annotations": [...]}`` JSON file."""

    def __init__(self, path: Path, revalidate_updates: bool = False) -> None:
        self.path = Path(path)
        self.revalidate_updates = revalidate_updates

    def _read(self) -> list[Annotation]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return [Annotation.model_validate(item) for item in data.get("annotations", [])]

    def _write(self, annotations: list[Annotation]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"annotations": [a.model_dump(mode="json", by_alias=True) for a in annotations]}
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    def ensure_exists(self) -> None:
        if not self.path.exists():
            self._write([])

    async def get_all(self, query: AnnotationQuery) -> list[Annotation]:
        return filter_and_sort(self._read(), query)

    async def get_by_id(self, annotation_id: str) -> Annotation | None:
        return next((a for a in self._read() if a.id == annotation_id), None)

    async def create(self, data: AnnotationCreate) -> Annotation:
        annotations = self._read()
        annotation = new_annotation(data)
        annotations.append(annotation)
        self._write(annotations)
        return annotation

    async def update(self, annotation_id: str, update: AnnotationUpdate) -> Annotation | None:
        annotations = self._read()
        for position, current in enumerate(annotations):
            if current.id == annotation_id:
                annotations[position] = self.merge(current, update)
                self._write(annotations)
                return annotations[position]
        return None

    async def remove(self, annotation_id: str) -> bool:
        annotations = self._read()
        remaining = [a for a in annotations if a.id != annotation_id]
        if len(remaining) == len(annotations):
            return False
        self._write(remaining)
        return True

    async def get_for_export(self, video_id: str | None = None) -> list[Annotation]:
        return sort_for_export(self._read(), video_id)
