import hashlib
from pathlib import Path
from typing import Dict, List, Type

import imagehash

from .. import config
from ..catalog.index import DuplicateIndex, ExactIndex, PerceptualIndex
from ..imaging.thumbnails import decode
from ..models import ImageRecord


class FingerprintStrategy:
    """
    Produces a 64-bit identity for an image file and the index that
    decides whether two identities belong to the same picture.
    """
    mode: str = ""

    def fingerprint(self, path: Path) -> int:
        raise NotImplementedError

    def new_index(self, images: List[ImageRecord]) -> DuplicateIndex:
        raise NotImplementedError


class ContentHasher(FingerprintStrategy):
    """Exact hash of file bytes. Any changed byte changes the fingerprint."""
    mode = "exact"

    def fingerprint(self, path: Path) -> int:
        h = hashlib.blake2b(digest_size=8)
        with open(path, 'rb') as f:
            while chunk := f.read(config.HASH_CHUNK_SIZE):
                h.update(chunk)
        return int.from_bytes(h.digest(), "big")

    def new_index(self, images: List[ImageRecord]) -> DuplicateIndex:
        return ExactIndex(images)


class PerceptualHasher(FingerprintStrategy):
    """
    DCT-based pHash of the decoded, orientation-corrected image. Slow,
    but survives re-encoding and resizing.
    """
    mode = "perceptual"

    def __init__(self, threshold: int = config.PHASH_THRESHOLD):
        self.threshold = threshold

    def fingerprint(self, path: Path) -> int:
        img = decode(path)
        return int(str(imagehash.phash(img)), 16)

    @staticmethod
    def distance(a: int, b: int) -> int:
        """Hamming distance between two 64-bit hashes."""
        return (a ^ b).bit_count()

    def new_index(self, images: List[ImageRecord]) -> DuplicateIndex:
        return PerceptualIndex(images, self.distance, self.threshold)


STRATEGIES: Dict[str, Type[FingerprintStrategy]] = {
    ContentHasher.mode: ContentHasher,
    PerceptualHasher.mode: PerceptualHasher,
}


def get_strategy(mode: str) -> FingerprintStrategy:
    try:
        return STRATEGIES[mode]()
    except KeyError:
        raise ValueError(f"unknown fingerprint mode {mode!r}") from None


def strategy_for(use_phash: bool) -> FingerprintStrategy:
    return PerceptualHasher() if use_phash else ContentHasher()
