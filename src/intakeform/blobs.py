from __future__ import annotations

import itertools
import logging
import re
import time
from pathlib import Path

from intakeform.config import UPLOAD_URL_PREFIX

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def blob_name(original_name: str, millis: int | None = None) -> str:
    """Build a stored file name: ``<epoch millis>-<original name>``.

    Whitespace runs in the original name become ``-`` and any directory part
    sent by the client is dropped.
    """
    if millis is None:
        millis = int(time.time() * 1000)
    base = re.split(r"[\\/]", (original_name or "").replace("\x00", ""))[-1].strip()
    safe = _WHITESPACE.sub("-", base).lstrip(".") or "upload"
    return f"{millis}-{safe}"


class LocalBlobStore:
    """Uploaded files kept flat in one directory, addressed by ``uploads/<name>``."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def save(self, original_name: str, content: bytes) -> str:
        """Write a new blob; an existing name gets a counter suffix, never overwritten."""
        first = blob_name(original_name)
        stem, suffix = Path(first).stem, Path(first).suffix
        for attempt in itertools.count():
            name = first if attempt == 0 else f"{stem}-{attempt}{suffix}"
            try:
                with open(self._root / name, "xb") as fh:
                    fh.write(content)
            except FileExistsError:
                continue
            break
        logger.info("Stored upload %s (%d bytes)", name, len(content))
        return f"{UPLOAD_URL_PREFIX}/{name}"

    def resolve(self, stored_path: str) -> Path | None:
        name = stored_path.split("/", 1)[1] if stored_path.startswith(f"{UPLOAD_URL_PREFIX}/") else stored_path
        candidate = (self._root / name).resolve()
        if candidate.parent != self._root.resolve():
            return None
        return candidate

    def exists(self, stored_path: str) -> bool:
        path = self.resolve(stored_path)
        return bool(path and path.is_file())

    def delete(self, stored_path: str) -> bool:
        """Remove one blob; failures are logged, never raised."""
        path = self.resolve(stored_path)
        if path is None:
            logger.warning("Refusing to delete blob outside upload dir: %s", stored_path)
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Could not delete blob %s: %s", stored_path, exc)
            return False
        logger.info("Deleted blob %s", stored_path)
        return True

    def delete_many(self, stored_paths: list[str]) -> int:
        return sum(1 for path in stored_paths if self.delete(path))
