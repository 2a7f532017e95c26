"""
Product Proxy service package.

The proxy fronts the commerce product API for frontend clients:
- Authentication: OAuth2 client-credentials against the account manager
- Shaping: raw products reduced to a color-indexed image map
- Caching: in-process expiring caches for the token and shaped products

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.adapters: HTTP clients for the authorization and product endpoints.
- app.caching: Expiring cache primitives.
- app.domain: Product shaping and fetch orchestration.
"""
