"""
Custom exception hierarchy for the photo gallery builder.

I/O and image decoding failures are not wrapped: they surface as the
builtin OSError family (Pillow's UnidentifiedImageError included).
"""


class GalleryError(Exception):
    """Base exception for all photo gallery errors."""
    pass


class ConfigurationError(GalleryError):
    """Raised when run settings are missing or contradictory."""
    pass


class DimensionError(GalleryError):
    """Raised when thumbnail dimensions cannot be computed."""
    pass


class DuplicateImageError(GalleryError):
    """Raised when an image is already present in the gallery under another source."""

    def __init__(self, message: str, source: str, existing_source: str, image_id: str):
        super().__init__(message)
        self.source = source
        self.existing_source = existing_source
        self.image_id = image_id


class PerceptualDuplicateError(DuplicateImageError):
    """Raised when an image looks the same as one already in the gallery."""

    def __init__(self, message: str, source: str, existing_source: str, image_id: str,
                 existing_original: str, distance: int):
        super().__init__(message, source, existing_source, image_id)
        self.existing_original = existing_original
        self.distance = distance


class EmptyGalleryError(GalleryError):
    """Raised when a complete walk accepted no images."""
    pass


class CacheError(GalleryError):
    """Raised when a gallery cache snapshot exists but cannot be read."""
    pass
