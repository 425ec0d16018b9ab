# =============================================================================
# Image File Storage — Upload & Purge Collaborator
# =============================================================================
#
# Stores uploaded image bytes and removes them again. The rest of the
# service only ever sees the returned reference string; it never builds
# paths itself.
#
# DESIGN DECISION: Protocol (structural typing) over ABC. Anything with
# save/exists/delete can stand in for LocalFileStorage.
#
# DESIGN DECISION: References are relative paths under upload_dir with an
# epoch-millisecond prefix ("uploads/1712345678901front.jpg"). The prefix
# keeps two uploads of "front.jpg" apart and means a purged reference is
# never handed out again.
#
# DESIGN DECISION: delete() is idempotent. A missing file returns False
# instead of raising; purge_images() logs it and moves on. File removal is
# best-effort and must never undo or block a record change.
# =============================================================================

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from app.config import settings

logger = logging.getLogger(__name__)


class FileStorage(Protocol):
    """Interface for wherever image bytes live."""

    def save(self, filename: str, content: bytes) -> str:
        """Persist bytes and return a stable reference."""
        ...

    def exists(self, ref: str) -> bool:
        """Whether the referenced file is present."""
        ...

    def delete(self, ref: str) -> bool:
        """Remove the referenced file. Returns False if it was already gone."""
        ...


class LocalFileStorage:
    """
    Stores images on the local filesystem.

    References are `<upload_dir name>/<millis><filename>` and are resolved
    relative to the parent of upload_dir, so the same string works as a URL
    path under the /uploads static mount.
    """

    def __init__(self, upload_dir: str | Path | None = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self._root = self.upload_dir.parent

    def _path(self, ref: str) -> Path:
        path = (self._root / ref).resolve()
        # References must stay inside upload_dir
        if not path.is_relative_to(self.upload_dir.resolve()):
            raise ValueError(f"Image reference outside upload dir: {ref!r}")
        return path

    def save(self, filename: str, content: bytes) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

        # Client filenames may carry directories ("C:\\pics\\a.jpg")
        safe_name = Path(filename.replace("\\", "/")).name or "image"
        stored_name = f"{int(time.time() * 1000)}{safe_name}"
        file_path = self.upload_dir / stored_name
        # Two uploads of the same name in the same millisecond
        while file_path.exists():
            time.sleep(0.001)
            stored_name = f"{int(time.time() * 1000)}{safe_name}"
            file_path = self.upload_dir / stored_name

        file_path.write_bytes(content)
        ref = f"{self.upload_dir.name}/{stored_name}"
        logger.info("Saved upload: %s (%d bytes) → %s", filename, len(content), ref)
        return ref

    def exists(self, ref: str) -> bool:
        try:
            return self._path(ref).is_file()
        except ValueError:
            return False

    def delete(self, ref: str) -> bool:
        try:
            self._path(ref).unlink()
        except FileNotFoundError:
            return False
        return True


def purge_images(storage: FileStorage, refs: Iterable[str]) -> list[str]:
    """
    Best-effort removal of image files.

    Missing files and storage errors are logged, never raised.

    Returns:
        The references that were actually removed.
    """
    removed: list[str] = []
    for ref in refs:
        try:
            if storage.delete(ref):
                removed.append(ref)
            else:
                logger.info("File not found: %s", ref)
        except (OSError, ValueError) as e:
            logger.warning("Failed to delete image %s: %s", ref, e)
    return removed
