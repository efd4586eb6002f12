"""
Thumbnail size policy.

A Transform is either a max-bounds policy (max_width and/or max_height)
or a fixed-dimension policy (width and/or height). Max bounds take
precedence when both families are set.
"""
from dataclasses import dataclass
from typing import Tuple

from ..exceptions import DimensionError


@dataclass(frozen=True)
class Transform:
    width: int = 0
    height: int = 0
    max_width: int = 0
    max_height: int = 0

    @classmethod
    def create(cls, width: int = 0, height: int = 0, max_width: int = 0, max_height: int = 0) -> "Transform":
        tr = cls(width=width, height=height, max_width=max_width, max_height=max_height)
        if not (tr.width or tr.height or tr.max_width or tr.max_height):
            raise DimensionError("no valid dimensions specified")
        return tr

    def new_dimensions(self, orig_width: int, orig_height: int) -> Tuple[int, int]:
        """
        Returns the (width, height) an image of the given size is resized to.

        Max-bounds never upscale: an image that already fits is returned
        unchanged. If both max_width and max_height are set they form a
        free-form box, and the result is shrunk along the looser axis so
        the original aspect ratio is kept. Fixed width and height, when
        both set, are applied as is.
        """
        if orig_width == 0 or orig_height == 0:
            raise DimensionError("invalid source dimensions")

        if self.max_width > 0 or self.max_height > 0:
            w, h = self._fill_missing(self.max_width, self.max_height, orig_width, orig_height)
            if orig_width <= w and orig_height <= h:
                return orig_width, orig_height
            if self.max_width > 0 and self.max_height > 0:
                # compare orig_w/orig_h > w/h without floats
                if orig_width * h > w * orig_height:
                    h = orig_height * w // orig_width
                else:
                    w = orig_width * h // orig_height
            return w, h

        if self.width > 0 or self.height > 0:
            return self._fill_missing(self.width, self.height, orig_width, orig_height)

        raise DimensionError(f"invalid transform {self}")

    @staticmethod
    def _fill_missing(w: int, h: int, orig_width: int, orig_height: int) -> Tuple[int, int]:
        """Derives an unset side from the original aspect ratio."""
        if w == 0:
            w = orig_width * h // orig_height
        if h == 0:
            h = orig_height * w // orig_width
        return w, h
