from __future__ import annotations

import argparse
import os
from pathlib import Path

import httpx

TIMESTAMP_EXTENSIONS = {".csv", ".tsv", ".txt", ".json"}


def video_name_for(path: Path, root: Path) -> str:
    relative = path.relative_to(root).with_suffix("")
    parts = relative.parts
    return "/".join(parts[-2:]) if len(parts) > 1 else parts[0]


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Upload a folder of <parent>/<base>.csv timestamp files in one request"
    )
    parser.add_argument("folder", help="Folder laid out like timestamps/<parent>/<base>.csv")
    parser.add_argument(
        "--api-url",
        default=os.getenv("ANNOTATOR_API_URL", "http://localhost:5001"),
        help="Base URL for the annotation API",
    )
    args = parser.parse_args()

    root = Path(args.folder)
    files = sorted(
        path
        for path in root.rglob("*")
        if path.is_file() and path.suffix.lower() in TIMESTAMP_EXTENSIONS
    )
    if not files:
        print("No timestamp files found")
        return

    csv_files = [
        {"videoName": video_name_for(path, root), "content": path.read_text(encoding="utf-8")}
        for path in files
    ]
    response = httpx.post(
        f"{args.api_url}/api/timestamps/bulk",
        json={"csvFiles": csv_files},
        timeout=60,
    )
    response.raise_for_status()
    payload = response.json()
    for result in payload.get("results", []):
        print(f"Uploaded {result['videoName']}: {result['count']} segments")
    skipped = len(csv_files) - payload.get("uploaded", 0)
    print(f"Uploaded {payload.get('uploaded', 0)} files ({skipped} skipped)")


if __name__ == "__main__":
    main()
