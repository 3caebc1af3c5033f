"""Enumeration types used throughout the meter reading API.

Enumerations constrain the values that can be stored in the database
or passed through the API.  When modifying these enums update any
corresponding database columns and the validators in
``app.services.validation`` so that new values are accepted where
appropriate.
"""

from enum import Enum


class MeasureType(str, Enum):
    """Kind of utility meter a reading was taken from."""

    WATER = "WATER"
    GAS = "GAS"


class ImageMimeType(str, Enum):
    """Image formats accepted in upload data URIs."""

    PNG = "image/png"
    JPEG = "image/jpeg"
    WEBP = "image/webp"
    HEIC = "image/heic"
    HEIF = "image/heif"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


_EXTENSIONS = {
    ImageMimeType.PNG: "png",
    ImageMimeType.JPEG: "jpg",
    ImageMimeType.WEBP: "webp",
    ImageMimeType.HEIC: "heic",
    ImageMimeType.HEIF: "heif",
}
