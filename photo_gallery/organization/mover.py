import logging
import os
import shutil
from pathlib import Path


def link_or_copy(dst: Path, src: Path) -> bool:
    """
    Materializes src at dst unless dst already exists.

    A hard link is tried first; if that fails (other filesystem, no
    permission) the bytes are copied. Returns True if dst was created.
    """
    if dst.exists():
        return False
    try:
        os.link(src, dst)
        return True
    except FileExistsError:
        return False
    except OSError as e:
        logging.debug(f"Hard link {src} -> {dst} failed, copying: {e}")

    with src.open('rb') as fsrc:
        try:
            fdst = dst.open('xb')
        except FileExistsError:
            return False
        try:
            with fdst:
                shutil.copyfileobj(fsrc, fdst)
        except BaseException:
            dst.unlink(missing_ok=True)
            raise
    return True
