"""
Transform raw commerce products into a color-indexed image map.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit

from shared.config import DEFAULT_IMAGE_HOST
from shared.errors import MalformedUpstreamData


COLOR_ATTRIBUTE_ID = "color"
DEFAULT_LOCALE = "default"

ShapedProduct = Dict[str, List[Dict[str, str]]]


@dataclass(frozen=True)
class ImageDescriptor:
    """Single product image as served to frontend clients."""

    url: str
    alt: str
    title: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def shape_product(raw: Any, image_host: str = DEFAULT_IMAGE_HOST) -> ShapedProduct:
    """Group a raw product's images by color code.

    Each image group contributes one key, the first value of its ``color``
    variation attribute. When two groups carry the same color the later one
    replaces the earlier. Groups without a color raise
    :class:`MalformedUpstreamData`.
    """
    if not isinstance(raw, Mapping):
        raise MalformedUpstreamData("Product payload is not an object")

    image_groups = raw.get("imageGroups") or []
    if not isinstance(image_groups, list):
        raise MalformedUpstreamData("imageGroups is not a list")

    shaped: ShapedProduct = {}
    for index, group in enumerate(image_groups):
        context = {"product_id": raw.get("id"), "group_index": index}
        if not isinstance(group, Mapping):
            raise MalformedUpstreamData("Image group is not an object", details=context)

        color = _color_code(group, context)
        if color is None:
            raise MalformedUpstreamData(
                "Image group has no color variation attribute",
                details=context,
            )

        images = group.get("images") or []
        if not isinstance(images, list):
            raise MalformedUpstreamData("images is not a list", details=context)

        shaped[color] = [
            _describe_image(image, image_host, context).to_dict()
            for image in images
            if isinstance(image, Mapping)
        ]

    return shaped


def _color_code(group: Mapping[str, Any], context: Dict[str, Any]) -> Optional[str]:
    attributes = group.get("variationAttributes") or []
    if not isinstance(attributes, list):
        raise MalformedUpstreamData("variationAttributes is not a list", details=context)

    for attribute in attributes:
        if not isinstance(attribute, Mapping) or attribute.get("id") != COLOR_ATTRIBUTE_ID:
            continue
        values = attribute.get("values") or []
        if not isinstance(values, list):
            raise MalformedUpstreamData("color values is not a list", details=context)
        if not values:
            return None
        first = values[0]
        value = first.get("value") if isinstance(first, Mapping) else first
        return str(value) if value not in (None, "") else None
    return None


def _describe_image(image: Mapping[str, Any], image_host: str, context: Dict[str, Any]) -> ImageDescriptor:
    link = image.get("link") or ""
    if not isinstance(link, str):
        raise MalformedUpstreamData("Image link is not a string", details=context)

    return ImageDescriptor(
        url=rewrite_image_url(link, image_host),
        alt=localized_text(image.get("alt")),
        title=localized_text(image.get("title")),
    )


def rewrite_image_url(link: str, image_host: str = DEFAULT_IMAGE_HOST) -> str:
    """Point ``link`` at ``image_host``, keeping only its path."""
    return image_host.rstrip("/") + urlsplit(link).path


def localized_text(value: Any) -> str:
    """Resolve a localized string object to its default-locale text."""
    if isinstance(value, Mapping):
        text = value.get(DEFAULT_LOCALE)
        return text if isinstance(text, str) else ""
    if isinstance(value, str):
        return value
    return ""
