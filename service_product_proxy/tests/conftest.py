"""
Shared fixtures for Product Proxy tests.
"""

import pytest


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_000.0):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def make_image_group(color, *images):
    """Build an upstream image group for ``color`` with the given image links."""
    return {
        "viewType": "large",
        "variationAttributes": [
            {"id": "size", "values": [{"value": "10"}]},
            {"id": "color", "values": [{"value": color, "name": {"default": color.title()}}]},
        ],
        "images": [
            {
                "link": link,
                "alt": {"default": f"{color} alt {index}"},
                "title": {"default": f"{color} title {index}"},
            }
            for index, link in enumerate(images)
        ],
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def raw_product():
    """Upstream product with a RED and a BLU image group."""
    return {
        "id": "P100",
        "name": {"default": "Linen Dress"},
        "imageGroups": [
            make_image_group(
                "RED",
                "https://edge.example.net/dw/image/v2/AAZI_DEV/on/demandware.static/red.jpg?sw=200",
            ),
            make_image_group(
                "BLU",
                "https://edge.example.net/dw/image/v2/AAZI_DEV/on/demandware.static/blu.jpg",
            ),
        ],
    }
