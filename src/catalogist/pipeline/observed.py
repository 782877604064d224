"""Files observed on disk, and a plain directory walker that produces them."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from catalogist.catalog.models import MediaFile
from catalogist.errors import log_error
from catalogist.parser.tokens import is_video_file, should_ignore

# Bytes read from the head of a file for the change-detection hash
QUICK_HASH_BYTES = 64 * 1024


class ObservedFile(BaseModel):
    """One row from the file-system collaborator."""

    path: str
    size_bytes: int = 0
    mtime_ts: int = 0
    container: str | None = None
    duration_ms: int | None = None
    streams: list[dict[str, Any]] = Field(default_factory=list)
    quick_hash: str | None = None

    def to_media_file(self) -> MediaFile:
        """Build a MediaFile record (a fresh id; the repository keeps known ones)."""
        return MediaFile(**self.model_dump())


def quick_hash(path: Path, size_bytes: int) -> str:
    """Hash the head of a file together with its size."""
    digest = hashlib.md5(usedforsecurity=False)
    digest.update(str(size_bytes).encode())
    with open(path, "rb") as f:
        digest.update(f.read(QUICK_HASH_BYTES))
    return digest.hexdigest()


def observe_file(path: Path, with_hash: bool = False) -> ObservedFile:
    """Stat a file into an ObservedFile.

    Raises:
        OSError: If the file cannot be read.
    """
    stat = path.stat()
    suffix = path.suffix.lstrip(".").lower()
    return ObservedFile(
        path=str(path),
        size_bytes=stat.st_size,
        mtime_ts=int(stat.st_mtime),
        container=suffix or None,
        quick_hash=quick_hash(path, stat.st_size) if with_hash else None,
    )


def walk_library(root: Path, with_hash: bool = False) -> list[ObservedFile]:
    """Find every video file under a library root.

    Hidden entries and known non-media names are skipped. Files that fail
    to stat are logged and left out.

    Args:
        root: Library root directory.
        with_hash: Compute the quick hash for each file.

    Returns:
        Observed files ordered by path.
    """
    observed: list[ObservedFile] = []
    if not root.is_dir():
        return observed

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and not should_ignore(d)
        )
        for filename in filenames:
            if filename.startswith(".") or should_ignore(filename):
                continue
            if not is_video_file(filename):
                continue
            try:
                observed.append(observe_file(Path(dirpath) / filename, with_hash))
            except OSError as e:
                log_error(e, f"Cannot read {Path(dirpath) / filename}")

    observed.sort(key=lambda f: f.path)
    return observed
