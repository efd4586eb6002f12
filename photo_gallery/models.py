import base64
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Dict


@dataclass
class ImageRecord:
    """
    Represents an image accepted into the gallery.
    """
    fingerprint: int        # 64-bit content or perceptual hash
    source: str             # path the image was read from
    original: str           # full-size copy, relative to the html file
    thumbnail: str          # thumbnail, relative to the html file
    time: datetime          # EXIF capture time or mtime, always UTC
    portrait: bool = False  # thumbnail height > width

    @property
    def id(self) -> str:
        """URL-safe identifier derived from the fingerprint."""
        raw = self.fingerprint.to_bytes(8, "big")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fingerprint": str(self.fingerprint),
            "source": self.source,
            "original": self.original,
            "thumbnail": self.thumbnail,
            "portrait": self.portrait,
            "time": self.time.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageRecord":
        time = datetime.fromisoformat(data["time"])
        if time.tzinfo is None:
            time = time.replace(tzinfo=UTC)
        fingerprint = int(data["fingerprint"])
        if not 0 <= fingerprint < 2**64:
            raise ValueError(f"fingerprint {fingerprint} out of 64-bit range")
        return cls(
            fingerprint=fingerprint,
            source=data["source"],
            original=data["original"],
            thumbnail=data["thumbnail"],
            portrait=bool(data.get("portrait", False)),
            time=time.astimezone(UTC),
        )
