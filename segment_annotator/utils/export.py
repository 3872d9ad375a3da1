from __future__ import annotations

import csv
import io
import json
from typing import Iterable

from segment_annotator.constants import EXPORT_CSV_FIELDS
from segment_annotator.models.schemas import Annotation


def annotations_to_json(annotations: Iterable[Annotation]) -> str:
    rows = [annotation.model_dump(mode="json", by_alias=True) for annotation in annotations]
    return json.dumps(rows, indent=2)


def annotations_to_csv(annotations: Iterable[Annotation]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=list(EXPORT_CSV_FIELDS), extrasaction="ignore", lineterminator="\n"
    )
    writer.writeheader()
    for annotation in annotations:
        writer.writerow(annotation.model_dump(mode="json", by_alias=True))
    return buffer.getvalue()
