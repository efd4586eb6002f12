import logging
import os
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional

import exifread

from .. import config


class MetadataExtractor:
    """
    Capture time lookup for JPEG files.

    EXIF dates are tried in config.DATE_TAGS order. A missing or broken
    EXIF block is not an error: the file's mtime is used instead.
    """

    def capture_time(self, path: Path) -> datetime:
        """Returns the capture time of path, always in UTC."""
        with path.open('rb') as f:
            try:
                # details=False speeds up processing significantly
                tags = exifread.process_file(f, details=False)
            except Exception as e:
                logging.debug(f"ExifRead failed for {path}: {e}")
                tags = {}

            dt = self._parse_exif_date(tags)
            if dt is not None:
                return dt
            mtime = os.fstat(f.fileno()).st_mtime
        return datetime.fromtimestamp(mtime, UTC)

    def _parse_exif_date(self, tags) -> Optional[datetime]:
        for tag, offset_tag in config.DATE_TAGS:
            if tag not in tags:
                continue
            try:
                # EXIF format is "YYYY:MM:DD HH:MM:SS"
                dt_str = str(tags[tag]).strip().rstrip('\x00')
                dt = datetime.strptime(dt_str, "%Y:%m:%d %H:%M:%S")
            except ValueError:
                continue
            tz = self._parse_offset(tags.get(offset_tag))
            if tz is not None:
                dt = dt.replace(tzinfo=tz)
            # naive values are taken as local time
            return dt.astimezone(UTC)
        return None

    def _parse_offset(self, tag):
        """Parses an EXIF OffsetTime value such as '+02:00'."""
        if tag is None:
            return None
        try:
            return datetime.strptime(str(tag).strip().rstrip('\x00'), "%z").tzinfo
        except ValueError:
            return None
