import logging
from pathlib import Path
from typing import BinaryIO

from PIL import Image, ImageOps

from .. import config
from .transform import Transform


def decode(path: Path) -> Image.Image:
    """
    Reads an image fully into memory, rotated according to its EXIF
    orientation tag.
    """
    with Image.open(path) as im:
        img = ImageOps.exif_transpose(im)
    if img.mode not in ("RGB", "L", "CMYK"):
        img = img.convert("RGB")
    return img


def encode(img: Image.Image, fh: BinaryIO, quality: int = config.JPEG_QUALITY):
    img.save(fh, format="JPEG", quality=quality)


def create_thumbnail(tr: Transform, dst: Path, src: Path) -> bool:
    """
    Writes a resized JPEG copy of src to dst.

    dst is opened with exclusive-create semantics: if it already exists
    the thumbnail is considered done and False is returned. A partially
    written dst is removed on failure.
    """
    try:
        thumb = dst.open("xb")
    except FileExistsError:
        logging.debug(f"Thumbnail already exists: {dst}")
        return False

    try:
        with thumb:
            img = decode(src)
            w, h = tr.new_dimensions(img.width, img.height)
            # very thin images truncate to 0 on one side
            img = img.resize((max(1, w), max(1, h)), Image.Resampling.BICUBIC)
            encode(img, thumb)
    except BaseException:
        dst.unlink(missing_ok=True)
        raise
    return True


def is_portrait(path: Path) -> bool:
    """
    Reports whether the image is taller than wide. EXIF rotation is not
    taken into account, so call it on already-oriented thumbnails.
    """
    with Image.open(path) as im:
        width, height = im.size
    return height > width
