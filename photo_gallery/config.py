"""
Configuration constants and run settings for the photo gallery builder.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError

# --- File Type Definitions ---
JPEG_EXTS = {'.jpg', '.jpeg'}

# --- Metadata Parsing ---
# (date tag, matching UTC offset tag), in order of preference
DATE_TAGS = [
    ('EXIF DateTimeOriginal', 'EXIF OffsetTimeOriginal'),
    ('Image DateTime', 'EXIF OffsetTime'),
    ('EXIF DateTimeDigitized', 'EXIF OffsetTimeDigitized'),
]

# --- Hashing & Deduplication ---
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading
# pHash distances at or below this are treated as the same picture
PHASH_THRESHOLD = 5

# --- Thumbnails ---
THUMB_MAX_WIDTH = 500
THUMB_MAX_HEIGHT = 500
JPEG_QUALITY = 95

# --- Pipeline ---
PROGRESS_INTERVAL = 2.0  # seconds between walker progress messages
QUEUE_POLL_INTERVAL = 0.1  # seconds a blocked queue op waits before re-checking cancellation

# --- Output ---
DEFAULT_GALLERY_NAME = "Gallery"
DEFAULT_FULLSIZE_DIR = Path("gallery/fullsize")
DEFAULT_THUMBS_DIR = Path("gallery/thumbnails")
DEFAULT_HTML = Path("gallery/index.html")
CACHE_TEMP_PREFIX = "photo-gallery-cache-"


@dataclass
class GallerySettings:
    """Everything a single gallery build needs to know."""
    src_dir: Optional[Path] = None
    fullsize_dir: Optional[Path] = DEFAULT_FULLSIZE_DIR
    thumbs_dir: Optional[Path] = DEFAULT_THUMBS_DIR
    html: Optional[Path] = DEFAULT_HTML
    template: Optional[Path] = None
    name: Optional[str] = None
    cache_path: Optional[Path] = None
    use_phash: bool = False
    workers: Optional[int] = None
    quiet: bool = False

    def __post_init__(self):
        for field in ("src_dir", "fullsize_dir", "thumbs_dir", "html", "template", "cache_path"):
            value = getattr(self, field)
            if value and not isinstance(value, Path):
                setattr(self, field, Path(value))

    @property
    def worker_count(self) -> int:
        count = self.workers if self.workers else os.cpu_count()
        return max(1, count or 1)

    def validate(self):
        """Raises ConfigurationError on the first problem found."""
        if not self.src_dir:
            raise ConfigurationError("source directory must be set")
        if not self.fullsize_dir:
            raise ConfigurationError("destination directory must be set")
        if not self.thumbs_dir:
            raise ConfigurationError("thumbnails directory must be set")
        if not self.html:
            raise ConfigurationError("output html file must be set")
        if not Path(self.src_dir).is_dir():
            raise ConfigurationError(f"source directory {self.src_dir} does not exist")

        src = Path(self.src_dir).resolve()
        fullsize = Path(self.fullsize_dir).resolve()
        thumbs = Path(self.thumbs_dir).resolve()
        html_dir = Path(self.html).resolve().parent

        if fullsize == thumbs:
            raise ConfigurationError("destination and thumbnail directories cannot be the same")
        if src == thumbs:
            raise ConfigurationError("source and thumbnail directories cannot be the same")
        if src == fullsize:
            raise ConfigurationError("source and destination directories cannot be the same")
        if not thumbs.is_relative_to(html_dir):
            raise ConfigurationError("thumbnails directory cannot be above html file in FS hierarchy")
        if not fullsize.is_relative_to(html_dir):
            raise ConfigurationError("destination directory cannot be above html file in FS hierarchy")
