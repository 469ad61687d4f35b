"""HTTP client for the forms API (Cognito Forms shaped endpoints)."""

import logging
import re
from typing import Any
from urllib.parse import urlsplit

import httpx

from app.config import Settings
from app.exceptions import (
    ConfigurationError,
    ParseError,
    UpstreamStatusError,
    UpstreamTransportError,
)

logger = logging.getLogger(__name__)


def origin_of(url: str) -> str:
    """Return scheme://host[:port] for a URL, lowercased."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


def mask_api_key(api_key: str) -> str:
    """Preview of the key that is safe to log."""
    if not api_key:
        return "[not set]"
    if len(api_key) > 30:
        return f"{api_key[:20]}...{api_key[-10:]}"
    return "[key too short]"


class FormsClient:
    """
    Thin wrapper around httpx.Client bound to one Settings instance.

    Usage:
        with FormsClient(settings) as client:
            forms = client.get_json(settings.forms_base_url)

    Pass `transport` to substitute httpx.MockTransport in tests.
    """

    def __init__(
        self, settings: Settings, transport: httpx.BaseTransport | None = None
    ):
        self.settings = settings
        self.base_url = settings.forms_base_url.rstrip("/")
        self.trusted_origin = origin_of(self.base_url)
        self._bulk_path = re.compile(
            rf"^{re.escape(urlsplit(self.base_url).path.rstrip('/'))}/[^/]+/entries/?$"
        )
        self._client = httpx.Client(
            timeout=settings.forms_api_timeout, transport=transport
        )

    def __enter__(self) -> "FormsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def is_trusted(self, url: str) -> bool:
        """True when the URL shares the configured API's origin."""
        return origin_of(url) == self.trusted_origin

    def is_bulk_entries_url(self, url: str) -> bool:
        """
        True for `{base}/{formId}/entries` on the trusted origin.

        These URLs are walked entry by entry instead of fetched once.
        """
        if not self.is_trusted(url):
            return False
        return bool(self._bulk_path.match(urlsplit(url).path))

    def _auth_headers(self) -> dict[str, str]:
        if not self.settings.forms_api_key:
            raise ConfigurationError("API key not configured")
        return {"Authorization": f"Bearer {self.settings.forms_api_key}"}

    def get(self, url: str, *, authenticated: bool = True) -> httpx.Response:
        """
        Issue a GET and return the raw response, whatever its status.

        Raises ConfigurationError before any network call when auth is
        required but no key is configured, and UpstreamTransportError
        when the server cannot be reached.
        """
        headers = self._auth_headers() if authenticated else {}
        try:
            response = self._client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Request failed: %s (url: %s)", e, url)
            raise UpstreamTransportError(url, e) from e
        logger.debug("GET %s -> %s", url, response.status_code)
        return response

    def get_json(self, url: str, *, authenticated: bool = True) -> Any:
        """GET a URL that must answer 2xx with a JSON body."""
        response = self.get(url, authenticated=authenticated)
        if not response.is_success:
            logger.error(
                "Error response from %s (%s): %s",
                url,
                response.status_code,
                response.text,
            )
            raise UpstreamStatusError(url, response.status_code, response.text)
        return parse_json(response, url)


def parse_json(response: httpx.Response, url: str) -> Any:
    """Decode a response body, mapping malformed JSON to ParseError."""
    try:
        return response.json()
    except ValueError as e:
        raise ParseError(url, str(e)) from e
