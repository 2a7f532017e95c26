"""
Adapters package for the Product Proxy.

Contains HTTP client wrappers for the upstream commerce platform. These
adapters encapsulate:

- Endpoint URLs and request shapes
- Authorization headers
- Error handling that maps to shared errors

Both adapters share the service-owned ``httpx.AsyncClient`` connection pool.
"""

from .commerce_client import CommerceProductClient
from .token_manager import TokenManager

__all__ = [
    "CommerceProductClient",
    "TokenManager",
]
