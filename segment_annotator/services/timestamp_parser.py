"""Forgiving parser for segment boundary files.

Accepts one ``start end`` pair per line, separated by any run of commas,
tabs, semicolons, pipes or whitespace, with each value either ``MM:SS`` or
plain seconds. A JSON document (list of pairs, list of objects, or an object
wrapping one of those) is accepted too. Anything that does not yield a valid
``end > start`` pair is dropped and counted, never raised.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from segment_annotator.models.schemas import Segment

_SEPARATORS = re.compile(r"[,\t;|\s]+")
_MMSS = re.compile(r"^(\d+):(\d{1,2}(?:\.\d+)?)$")
_DECIMAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_SKIP_PREFIXES = ("start", "time", "#", "//")
_WRAPPER_KEYS = ("segments", "timestamps", "ranges")


@dataclass
class ParseResult:
    segments: list[Segment] = field(default_factory=list)
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.segments)


def parse_time_string(value: Any) -> float | None:
    if value is None:
        return None
    text = str(value).strip()
    if ":" in text:
        match = _MMSS.match(text)
        if not match:
            return None
        return int(match.group(1)) * 60 + float(match.group(2))
    if not _DECIMAL.match(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


def format_time(seconds: Any) -> str:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return "00:00"
    if not math.isfinite(seconds) or seconds < 0:
        return "00:00"
    total = int(math.floor(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def _to_seconds(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value) if math.isfinite(value) else None
    else:
        seconds = parse_time_string(value)
    if seconds is None or seconds < 0:
        return None
    return seconds


def _make_segment(start_raw: Any, end_raw: Any) -> Segment | None:
    start = _to_seconds(start_raw)
    end = _to_seconds(end_raw)
    if start is None or end is None or end <= start:
        return None
    return Segment(start=start, end=end)


def parse_line(line: str) -> Segment | None:
    tokens = [token for token in _SEPARATORS.split(line.strip()) if token]
    if len(tokens) < 2:
        return None
    return _make_segment(tokens[0], tokens[1])


def _is_ignorable(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.lower().startswith(_SKIP_PREFIXES)


def parse_timestamp_text(content: str) -> ParseResult:
    result = ParseResult()
    for line in content.splitlines():
        if _is_ignorable(line):
            continue
        segment = parse_line(line)
        if segment is None:
            result.skipped += 1
        else:
            result.segments.append(segment)
    return result


def _element_to_segment(item: Any) -> Segment | None:
    if isinstance(item, (list, tuple)):
        if len(item) < 2:
            return None
        return _make_segment(item[0], item[1])
    if isinstance(item, dict):
        if item.get("start") is not None and item.get("end") is not None:
            return _make_segment(item["start"], item["end"])
        if item.get("startTime") is not None and item.get("endTime") is not None:
            return _make_segment(item["startTime"], item["endTime"])
    return None


def _unwrap(data: Any) -> Iterable[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in _WRAPPER_KEYS:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def parse_timestamp_json(data: Any) -> ParseResult:
    result = ParseResult()
    for item in _unwrap(data):
        segment = _element_to_segment(item)
        if segment is None:
            result.skipped += 1
        else:
            result.segments.append(segment)
    return result


def _looks_like_json(content: str, filename: str | None) -> bool:
    if filename and filename.lower().endswith(".json"):
        return True
    return content.lstrip().startswith(("[", "{"))


def parse_timestamps(content: str, filename: str | None = None) -> ParseResult:
    """Parse an uploaded timestamp document, choosing JSON or line mode."""
    if _looks_like_json(content, filename):
        try:
            data = json.loads(content)
        except ValueError:
            pass
        else:
            return parse_timestamp_json(data)
    return parse_timestamp_text(content)
