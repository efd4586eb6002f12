"""
Gallery cache: the deduplicated record collection shared by all workers
during a run, and its JSON snapshot for incremental runs.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, Optional

from .. import config
from ..exceptions import CacheError
from ..models import ImageRecord
from ..scanning.hasher import FingerprintStrategy, ContentHasher, get_strategy


class GalleryCache:
    """
    Owns the accepted records and the lock guarding them.

    try_insert() is the only mutation allowed while workers are running;
    it does no I/O so the lock is held for in-memory work only.
    """

    def __init__(self,
                 name: str = config.DEFAULT_GALLERY_NAME,
                 strategy: Optional[FingerprintStrategy] = None,
                 images: Optional[Iterable[ImageRecord]] = None):
        self.name = name
        self.strategy = strategy or ContentHasher()
        self.images = list(images or [])
        self.added = 0  # records accepted during this run
        self._lock = threading.Lock()
        self._index = self.strategy.new_index(self.images)

    @property
    def mode(self) -> str:
        return self.strategy.mode

    def try_insert(self, record: ImageRecord) -> bool:
        """
        Adds record unless the gallery already holds the same image.

        Returns False for a harmless re-submission (same image, same
        source) and raises DuplicateImageError for a real duplicate.
        """
        self._index.prepare()
        with self._lock:
            if self._index.add(record):
                self.added += 1
                return True
            return False

    def sort_by_time(self):
        """Newest images first."""
        self.images.sort(key=lambda rec: rec.time, reverse=True)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "mode": self.mode,
            "images": [rec.to_dict() for rec in self.images],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GalleryCache":
        return cls(
            name=data["name"],
            strategy=get_strategy(data["mode"]),
            images=[ImageRecord.from_dict(item) for item in data.get("images") or []],
        )


def load_cache(path: Path) -> GalleryCache:
    """
    Reads a snapshot written by save_cache().

    FileNotFoundError is passed through so callers can start fresh; any
    other problem with the file is a CacheError.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
            cache = GalleryCache.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise CacheError(f"cannot load gallery cache {path}: {e}") from e
    logging.info(f"Loaded gallery cache {path}: {len(cache.images)} images ({cache.mode} mode)")
    return cache


def save_cache(cache: GalleryCache, path: Path):
    """
    Writes the snapshot to a temp file next to path and renames it over
    path, so readers only ever see a complete file.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=config.CACHE_TEMP_PREFIX, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(cache.to_dict(), f, indent="\t")
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logging.info(f"Saved gallery cache: {path}")
