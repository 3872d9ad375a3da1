from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from segment_annotator.constants import TIMESTAMPS_SOURCE_LOCAL
from segment_annotator.errors import ValidationError
from segment_annotator.models.schemas import Segment
from segment_annotator.services.timestamp_parser import parse_timestamp_text
from segment_annotator.utils.common import format_seconds, within_directory

logger = logging.getLogger(__name__)


class TimestampStore(ABC):
    source: str = TIMESTAMPS_SOURCE_LOCAL
    supports_rows: bool = False

    @abstractmethod
    async def get(self, video_name: str) -> list[Segment]: ...

    @abstractmethod
    async def list_names(self) -> set[str]: ...

    @abstractmethod
    async def upsert(self, video_name: str, segments: list[Segment]) -> list[Segment]: ...

    async def bulk_upsert(
        self, entries: Iterable[tuple[str | None, list[Segment] | None]]
    ) -> list[tuple[str, int]]:
        results: list[tuple[str, int]] = []
        for video_name, segments in entries:
            if not video_name or not segments:
                logger.debug("Skipping bulk timestamp entry %r", video_name)
                continue
            try:
                await self.upsert(video_name, segments)
            except ValidationError as exc:
                logger.warning("Skipping bulk timestamp entry %r: %s", video_name, exc.message)
                continue
            results.append((video_name, len(segments)))
        return results

    async def add_rows(self, rows: list[dict[str, Any]]) -> int:
        raise NotImplementedError("Row-based timestamps require a database backend")


class FileTimestampStore(TimestampStore):
    """One ``<parent>/<base>.csv`` file per video under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, video_name: str) -> Path:
        path = self.root / f"{video_name}.csv"
        if not video_name or not within_directory(self.root, path):
            raise ValidationError(f"Invalid video name: {video_name}")
        return path

    async def get(self, video_name: str) -> list[Segment]:
        path = self.path_for(video_name)
        if not path.exists():
            return []
        content = path.read_text(encoding="utf-8")
        return parse_timestamp_text(content).segments

    async def list_names(self) -> set[str]:
        if not self.root.exists():
            return set()
        names: set[str] = set()
        for path in self.root.rglob("*.csv"):
            if not path.is_file():
                continue
            # files without a parseable segment count as absent, matching get()
            if parse_timestamp_text(path.read_text(encoding="utf-8")).segments:
                names.add(path.relative_to(self.root).with_suffix("").as_posix())
        return names

    async def upsert(self, video_name: str, segments: list[Segment]) -> list[Segment]:
        path = self.path_for(video_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = ["start,end"]
        lines.extend(
            f"{format_seconds(segment.start)},{format_seconds(segment.end)}" for segment in segments
        )
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("Stored %s segments for %s", len(segments), video_name)
        return segments
