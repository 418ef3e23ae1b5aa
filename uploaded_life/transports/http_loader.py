"""
Primary transport: fetch dataset files over HTTP.

**Conceptual**: The HTTP loader is a thin client around requests. Every
request runs in its own worker thread with its own short-lived Session, so
concurrent loads never share one.
It knows how to join a relative path onto the configured base URL, map HTTP
failures onto TransportError types, and keep a blocking request from stalling
the event loop. It knows nothing about CSV, JSON or records.

**Availability**: Without an http(s) base URL (empty, or a `file://` URL) the
loader reports itself unavailable and the resolver skips straight to the
static-root loader.
"""

import asyncio
import logging
from typing import Callable, Optional
from urllib.parse import urljoin, urlparse

import requests

from uploaded_life.config.settings import LoaderSettings
from uploaded_life.errors import TransportDisallowed, TransportError, TransportTimeout

logger = logging.getLogger(__name__)


class HttpContentLoader:
    """
    Load dataset text with HTTP GET relative to a base URL.

    **Responsibilities**:
      - Build the request URL from base_url + relative path.
      - Run the blocking request in a worker thread, bounded by a timeout.
      - Raise TransportError for non-2xx responses and network errors.

    **NOT responsible for**:
      - Retrying (the resolver moves on to the next strategy instead).
      - Parsing the body (uploaded_life.data.io does that).

    Args:
        base_url: Base URL for relative paths, e.g. "http://localhost:8000/".
        timeout_seconds: Upper bound for one request, connection included.
        session_factory: Callable returning a new requests.Session for each
                         request (tests inject one returning a mock).

    Example:
        >>> loader = HttpContentLoader("http://localhost:8000/")
        >>> text = await loader.load_text("Resources/library.json")
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ):
        if base_url and not base_url.endswith("/"):
            base_url = base_url + "/"
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.session_factory = session_factory if session_factory is not None else requests.Session
        self.headers = {
            "Accept": "text/csv, application/json, text/plain, */*",
            "User-Agent": "uploaded_life/1.0",
        }

    @classmethod
    def from_settings(
        cls,
        settings: LoaderSettings,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ) -> "HttpContentLoader":
        return cls(settings.base_url, settings.fetch_timeout_seconds, session_factory=session_factory)

    def is_available(self, path: str) -> bool:
        return urlparse(self.base_url).scheme in ("http", "https")

    def url_for(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    async def load_text(self, path: str) -> str:
        """
        Fetch `path` and return the decoded body.

        Raises:
            TransportDisallowed: If no http(s) base URL is configured.
            TransportTimeout: If the request does not finish in time.
            TransportError: For non-2xx responses and other request failures.
        """
        if not self.is_available(path):
            raise TransportDisallowed(
                f"http: no http(s) base URL configured (base_url={self.base_url!r})",
                transport=self.name,
                path=path,
            )

        url = self.url_for(path)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._get, url, path),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransportTimeout(
                f"http: timed out after {self.timeout_seconds}s fetching {url}",
                transport=self.name,
                path=path,
            ) from e

    def _get(self, url: str, path: str) -> str:
        logger.debug("Uploaded Life: GET %s", url)
        session = self.session_factory()
        session.headers.update(self.headers)
        try:
            response = session.get(url, timeout=self.timeout_seconds)
        except requests.Timeout as e:
            raise TransportTimeout(
                f"http: request timed out for {url}: {e}", transport=self.name, path=path
            ) from e
        except requests.RequestException as e:
            raise TransportError(
                f"http: request failed for {url}: {e}", transport=self.name, path=path
            ) from e
        finally:
            session.close()

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"http: {url} returned status {response.status_code}",
                transport=self.name,
                path=path,
            )

        # Dataset files are UTF-8 even when the server omits the charset.
        response.encoding = "utf-8"
        return response.text.lstrip("\ufeff")
