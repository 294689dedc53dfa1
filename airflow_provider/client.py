"""
Authenticated HTTP client for the Airflow REST API v1.

One ``AuthenticatedClient`` is built per run from the provider
configuration and shared by every resource adapter. It holds a
``requests.Session`` bound to the chosen TLS policy, the base URL
(``<endpoint path>/api/v1``) and the authentication context. Nothing on
it changes after construction; every call builds its own request.

Usage::

    config = load_configuration({"base_endpoint": "https://airflow.example.com"})
    client = AuthenticatedClient.from_configuration(config)
    response = client.get("/variables/foo")
"""
from __future__ import annotations

import logging
import time
from typing import Any, Mapping
from urllib.parse import quote, urlparse

import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase, HTTPBasicAuth

from .errors import TransportError
from .settings import ProviderConfiguration

logger = logging.getLogger("airflow_provider.client")

API_PREFIX = "/api/v1"
API_KEY_HEADER = "X-Api-Key"
USER_AGENT = "airflow-provider"


class BearerAuth(AuthBase):
    """Attach an OAuth2 bearer token to every request."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request):
        request.headers["Authorization"] = f"Bearer {self.token}"
        return request

    def __repr__(self):
        return "BearerAuth(token=***)"


class LoggingHTTPAdapter(HTTPAdapter):
    """Transport adapter that logs request and response metadata at DEBUG."""

    def send(self, request, **kwargs):
        started = time.monotonic()
        logger.debug("HTTP request: %s %s", request.method, request.url)
        response = super().send(request, **kwargs)
        logger.debug(
            "HTTP response: %s %s -> %s %s (%.0f ms)",
            request.method,
            request.url,
            response.status_code,
            response.reason,
            (time.monotonic() - started) * 1000,
        )
        return response


def build_base_url(endpoint: str) -> str:
    """Return ``scheme://host<path>/api/v1`` with trailing slashes on the path stripped."""
    parsed = urlparse(endpoint)
    path = parsed.path.rstrip("/")
    return f"{parsed.scheme}://{parsed.netloc}{path}{API_PREFIX}"


def quote_segment(value: str) -> str:
    """Quote one path segment; slashes inside keys must not split the path."""
    return quote(str(value), safe="")


class AuthenticatedClient:
    """
    Shared client handle for one provider run.

    Args:
        base_url: Full API base URL including ``/api/v1``.
        session: The ``requests.Session`` to send through.
        auth: Authentication applied to each request, or None.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        auth: AuthBase | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.auth = auth

    @classmethod
    def from_configuration(cls, config: ProviderConfiguration) -> "AuthenticatedClient":
        """Build the run's client from a validated configuration."""
        session = requests.Session()
        session.headers["User-Agent"] = USER_AGENT

        if config.disable_ssl_verification:
            session.verify = False
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            logger.warning(
                "SSL certificate verification is disabled for %s; connections are insecure",
                config.base_endpoint,
            )
        else:
            adapter = LoggingHTTPAdapter()
            session.mount("https://", adapter)
            session.mount("http://", adapter)

        auth: AuthBase | None = None
        if config.oauth2_token:
            logger.debug("Using API OAuth2 bearer token")
            auth = BearerAuth(config.oauth2_token)
        elif config.username:
            logger.debug("Using API Basic Auth")
            auth = HTTPBasicAuth(config.username, config.password or "")
        elif config.x_api_key:
            logger.debug("Using API key header authentication")
            session.headers[API_KEY_HEADER] = config.x_api_key

        return cls(build_base_url(config.base_endpoint), session=session, auth=auth)

    @property
    def verify_ssl(self) -> bool:
        return self.session.verify is not False

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    # ── Calls ─────────────────────────────────────────────────────────

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> requests.Response:
        """
        Send one request and return the raw response, whatever its status.

        Raises:
            TransportError: if no response was obtained (DNS, connection,
                TLS handshake, timeout).
        """
        url = self.url_for(path)
        try:
            return self.session.request(
                method,
                url,
                params=params,
                json=json,
                auth=self.auth,
                headers={"Accept": "application/json"},
            )
        except requests.exceptions.RequestException as exc:
            logger.debug("HTTP transport failure: %s %s: %s", method, url, exc)
            raise TransportError(method, url, exc) from exc

    def get(self, path: str, **kwargs) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> requests.Response:
        return self.request("POST", path, **kwargs)

    def patch(self, path: str, **kwargs) -> requests.Response:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        self.session.close()

    def __repr__(self):
        return f"AuthenticatedClient(base_url={self.base_url!r}, auth={self.auth!r})"
