"""
Media helpers: declare the coarse tag of a file before it enters the engine.

The engine never infers tags from pixels; this is the caller-side rule the
CLI uses (video extension -> video, screenshot-like name -> screenshot).
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from models import MediaTag

IMAGE_EXTS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".webp",
    ".gif",
    ".heic",
    ".heif",
    ".tif",
    ".tiff",
    ".bmp",
}
VIDEO_EXTS = {".mov", ".mp4", ".m4v", ".mkv", ".avi", ".webm"}
DEFAULT_SCREENSHOT_MARKERS = ("screenshot", "screen shot")


def media_tag_for_path(
    path: Path, screenshot_markers: Iterable[str] = DEFAULT_SCREENSHOT_MARKERS
) -> MediaTag:
    if path.suffix.lower() in VIDEO_EXTS:
        return "video"
    name = path.name.lower()
    if any(m.lower() in name for m in screenshot_markers if m):
        return "screenshot"
    return "image"
