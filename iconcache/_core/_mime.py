from __future__ import annotations

import enum
from typing import Optional

from iconcache._core._headers import parse_content_type
from iconcache._exceptions import ValidationError

__all__ = ("ImageType", "classify_content_type", "ensure_image_content_type")


class ImageType(str, enum.Enum):
    """Media types admitted into the icon cache."""

    PNG = "image/png"
    JPEG = "image/jpeg"
    GIF = "image/gif"
    WEBP = "image/webp"
    SVG = "image/svg+xml"
    X_ICON = "image/x-icon"
    VND_MICROSOFT_ICON = "image/vnd.microsoft.icon"
    ICO = "image/ico"


_BY_MEDIA_TYPE = {image_type.value: image_type for image_type in ImageType}


def classify_content_type(content_type: Optional[str]) -> Optional[ImageType]:
    """
    Map a Content-Type header value to an admitted image type.

    Parameters such as ``charset`` are ignored. Returns None for anything that
    is not one of the known image types.

    Examples:
        >>> classify_content_type("image/x-icon")
        <ImageType.X_ICON: 'image/x-icon'>
        >>> classify_content_type("image/svg+xml; charset=utf-8")
        <ImageType.SVG: 'image/svg+xml'>
        >>> classify_content_type("text/html") is None
        True
    """
    media_type, _ = parse_content_type(content_type)
    return _BY_MEDIA_TYPE.get(media_type)


def ensure_image_content_type(
    content_type: Optional[str],
    admitted: frozenset[ImageType] = frozenset(ImageType),
) -> ImageType:
    image_type = classify_content_type(content_type)
    if image_type is None or image_type not in admitted:
        raise ValidationError(f"Content type {content_type!r} is not an admitted image type")
    return image_type
