"""
Duplicate detection over the gallery's record list.

An index owns no lock of its own for insertion: GalleryCache serializes
calls to add(). prepare() is a one-shot latch that is safe to call from
any number of threads.
"""
import threading
from bisect import bisect_left
from operator import attrgetter
from typing import Callable, Dict, List, Optional

from ..exceptions import DuplicateImageError, PerceptualDuplicateError
from ..models import ImageRecord

_fingerprint = attrgetter("fingerprint")


class DuplicateIndex:
    def __init__(self, images: List[ImageRecord]):
        # Shared with the owning cache and mutated in place
        self.images = images
        self._ready = False
        self._ready_lock = threading.Lock()

    def prepare(self):
        """Runs _initialize() exactly once, however many callers race here."""
        if self._ready:
            return
        with self._ready_lock:
            if not self._ready:
                self._initialize()
                self._ready = True

    def _initialize(self):
        pass

    def add(self, record: ImageRecord) -> bool:
        """
        Inserts record, returning True if it was added and False if it
        is a re-submission of an image already present.
        """
        raise NotImplementedError


class ExactIndex(DuplicateIndex):
    """Fingerprint equality backed by a fingerprint -> source lookup."""

    def __init__(self, images: List[ImageRecord]):
        super().__init__(images)
        self._sources: Optional[Dict[int, str]] = None

    def _initialize(self):
        self._sources = {rec.fingerprint: rec.source for rec in self.images}

    def add(self, record: ImageRecord) -> bool:
        self.prepare()
        existing = self._sources.get(record.fingerprint)
        if existing is not None:
            if existing == record.source:
                return False
            raise DuplicateImageError(
                f"gallery already has image with id {record.id!r}: {existing!r} (original file name),"
                f" cannot add {record.source!r}",
                source=record.source,
                existing_source=existing,
                image_id=record.id,
            )
        self.images.append(record)
        self._sources[record.fingerprint] = record.source
        return True


class PerceptualIndex(DuplicateIndex):
    """
    Records kept sorted by fingerprint; a new record is compared with the
    two records adjacent to its insertion point only.

    Near-duplicates further away in sort order are not detected.
    """

    def __init__(self, images: List[ImageRecord], distance: Callable[[int, int], int], threshold: int):
        super().__init__(images)
        self.distance = distance
        self.threshold = threshold

    def _initialize(self):
        # list.sort is stable
        self.images.sort(key=_fingerprint)

    def add(self, record: ImageRecord) -> bool:
        self.prepare()
        images = self.images
        i = bisect_left(images, record.fingerprint, key=_fingerprint)

        if i == len(images):
            if i:
                self._check(record, images[i - 1])
            images.append(record)
            return True

        existing = images[i]
        if existing.fingerprint == record.fingerprint:
            if existing.source == record.source and existing.time == record.time:
                return False
            raise PerceptualDuplicateError(
                f"duplicate (same phash) of {existing.original!r} (source filename {existing.source!r}),"
                f" cannot add {record.source!r}",
                source=record.source,
                existing_source=existing.source,
                image_id=record.id,
                existing_original=existing.original,
                distance=0,
            )

        # images[i] is the element that will sit right after record
        self._check(record, existing)
        if i > 0:
            self._check(record, images[i - 1])

        images.insert(i, record)
        return True

    def _check(self, record: ImageRecord, neighbor: ImageRecord):
        diff = self.distance(record.fingerprint, neighbor.fingerprint)
        if diff <= self.threshold:
            raise PerceptualDuplicateError(
                f"possible duplicate (phash similarity distance={diff}) of {neighbor.original!r}"
                f" (source filename {neighbor.source!r}), cannot add {record.source!r}",
                source=record.source,
                existing_source=neighbor.source,
                image_id=record.id,
                existing_original=neighbor.original,
                distance=diff,
            )
