import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from segment_annotator.services.video_names import (
    is_local_file,
    local_file_path,
    resolve_video_name,
)


def test_remote_url_uses_parent_and_base():
    assert resolve_video_name("https://host/A/B.mp4") == "A/B"
    assert resolve_video_name("https://cdn.example.com/x/y/clinic/visit.01.mov?sig=1") == "clinic/visit.01"


def test_relative_and_absolute_local_paths():
    assert resolve_video_name("./videos/C/D.mov") == "C/D"
    assert resolve_video_name("/srv/media/E/F.mp4") == "E/F"
    assert resolve_video_name("file:///srv/media/G/H.mp4") == "G/H"


def test_single_segment_resolves_to_base_name():
    assert resolve_video_name("https://host/only.mp4") == "only"


def test_unparseable_url_is_sanitized():
    assert resolve_video_name("not a url?.mp4") == "not_a_url__mp4"
    assert resolve_video_name("https://host") == "https_//host"


def test_local_file_detection():
    assert is_local_file("file:///tmp/a.mp4")
    assert is_local_file("/tmp/a.mp4")
    assert is_local_file("./a.mp4")
    assert is_local_file("../a.mp4")
    assert not is_local_file("https://host/a.mp4")
    assert not is_local_file("")


def test_local_file_path_decodes_file_urls():
    assert local_file_path("file:///tmp/my%20clip.mp4") == "/tmp/my clip.mp4"
    assert local_file_path("./a.mp4") == os.path.abspath("a.mp4")
