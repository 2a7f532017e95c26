"""
Domain helpers for the Product Proxy: product shaping and fetch orchestration.
"""

from .product_service import FETCH_ERROR_MARKER, ProductService
from .shaping import shape_product

__all__ = [
    "FETCH_ERROR_MARKER",
    "ProductService",
    "shape_product",
]
