from datetime import datetime, UTC

import pytest
from PIL import Image, ImageDraw

from photo_gallery.config import GallerySettings
from photo_gallery.models import ImageRecord


@pytest.fixture
def make_jpeg():
    """Returns a factory writing a small JPEG; `stripes` draws vertical bars so images differ visually."""
    def _make(path, size=(64, 48), color=(200, 30, 30), stripes=0):
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new("RGB", size, color)
        if stripes:
            draw = ImageDraw.Draw(img)
            step = max(1, size[0] // (stripes * 2))
            for x in range(0, size[0], step * 2):
                draw.rectangle([x, 0, x + step - 1, size[1]], fill=(0, 0, 0))
        img.save(path, format="JPEG", quality=90)
        return path
    return _make


@pytest.fixture
def gallery_settings(tmp_path):
    """Settings for a gallery under tmp_path/gallery reading from an empty tmp_path/src."""
    src = tmp_path / "src"
    src.mkdir()
    out = tmp_path / "gallery"
    return GallerySettings(
        src_dir=src,
        fullsize_dir=out / "fullsize",
        thumbs_dir=out / "thumbnails",
        html=out / "index.html",
        workers=2,
        quiet=True,
    )


def make_record(fingerprint, source=None, time=None, portrait=False):
    return ImageRecord(
        fingerprint=fingerprint,
        source=source or f"/src/{fingerprint}.jpg",
        original=f"fullsize/{fingerprint:x}.jpg",
        thumbnail=f"thumbnails/{fingerprint:x}.jpg",
        time=time or datetime(2021, 1, 1, tzinfo=UTC),
        portrait=portrait,
    )
