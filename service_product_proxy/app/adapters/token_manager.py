"""
OAuth2 client-credentials token manager for the commerce API.
"""

from __future__ import annotations

import base64
import time
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import httpx

from shared.config import DEFAULT_OAUTH_SCOPE, DEFAULT_TOKEN_URL
from shared.errors import AuthError
from shared.logging import get_logger

from service_product_proxy.app.caching import ExpiringCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


TOKEN_CACHE_KEY = "access_token"


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Build the ``Authorization`` value for HTTP Basic client authentication."""
    credentials = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


class TokenManager:
    """Obtain and cache a bearer token for the commerce API.

    The cached token is reused while the current time is strictly before its
    expiry. A failed refresh raises :class:`AuthError` and leaves whatever
    was cached before untouched.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: ExpiringCache,
        client_id: str,
        client_secret: str,
        *,
        scope: str = DEFAULT_OAUTH_SCOPE,
        token_url: str = DEFAULT_TOKEN_URL,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.http_client = http_client
        self.cache = cache
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.token_url = token_url
        self.metrics = metrics
        self.logger = get_logger("product-proxy.token_manager")

    async def get_access_token(self) -> str:
        """Return a cached token or request a new one."""
        now = self.cache.now()
        cached = self.cache.get(TOKEN_CACHE_KEY, now=now)
        if cached is not None:
            return cached

        payload = await self._request_token()
        token, expires_in = self._parse_token_response(payload)

        self.cache.put(TOKEN_CACHE_KEY, token, now + expires_in)
        self.logger.info("Access token refreshed", expires_in=expires_in)
        return token

    async def _request_token(self) -> Dict[str, Any]:
        """POST the client-credentials grant and return the decoded body."""
        headers = {
            "Authorization": basic_auth_header(self.client_id, self.client_secret),
            "Content-Type": "application/x-www-form-urlencoded",
        }
        data = {"grant_type": "client_credentials", "scope": self.scope}

        started = time.time()
        try:
            response = await self.http_client.post(self.token_url, data=data, headers=headers)
        except httpx.HTTPError as exc:
            self._record("transport_error", started)
            self.logger.error("Token endpoint unreachable", url=self.token_url, error=str(exc))
            raise AuthError(
                "Authorization server unavailable",
                details={"http_error": str(exc)}
            ) from exc

        if not response.is_success:
            self._record("http_error", started)
            self.logger.error(
                "Token request rejected",
                url=self.token_url,
                status_code=response.status_code,
                response=response.text
            )
            raise AuthError(
                f"Authorization server error: {response.status_code}",
                details={"status_code": response.status_code}
            )

        try:
            body = response.json()
        except ValueError as exc:
            self._record("malformed", started)
            raise AuthError(
                "Authorization server returned a non-JSON body",
                details={"status_code": response.status_code}
            ) from exc

        self._record("ok", started)
        return body

    @staticmethod
    def _parse_token_response(payload: Any) -> Tuple[str, float]:
        if not isinstance(payload, dict):
            raise AuthError("Token response is not an object")

        token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        if not isinstance(token, str) or not token:
            raise AuthError("Token response missing access_token")
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise AuthError(
                "Token response missing expires_in",
                details={"expires_in": expires_in}
            )
        return token, float(expires_in)

    def _record(self, outcome: str, started: float) -> None:
        if self.metrics is not None:
            self.metrics.record_upstream_request("token", outcome, time.time() - started)
