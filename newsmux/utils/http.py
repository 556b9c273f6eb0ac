"""
HTTP utilities for newsmux.
"""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

import aiohttp
import backoff

from newsmux.exceptions import (
    DecodingError,
    InvalidURLError,
    NetworkError,
    ServerError,
    UnknownNetworkError,
)
from newsmux.utils.nlp import mask_secret

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds, connect and per-read
RESOURCE_TIMEOUT = 60  # seconds, whole request
MAX_RETRIES = 3
SAMPLE_LENGTH = 200

SECRET_PARAMS = {"apikey", "api_key", "api-key", "access_key", "token"}

DEFAULT_HEADERS = {
    "Accept": "application/json, application/rss+xml, application/atom+xml, text/xml;q=0.9, */*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def masked_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of query parameters with credential values masked for logging."""
    return {
        key: mask_secret(str(value)) if key.lower() in SECRET_PARAMS else value
        for key, value in (params or {}).items()
    }


def _is_permanent(error: Exception) -> bool:
    return isinstance(error, ServerError) and error.is_client_error


class HttpClient:
    """
    Single entry point for outbound provider calls.

    Enforces timeouts, decodes JSON and classifies failures into the
    NetworkError hierarchy.
    """
    def __init__(
        self,
        request_timeout: float = REQUEST_TIMEOUT,
        resource_timeout: float = RESOURCE_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        backoff_factor: float = 1.0,
        user_agent: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.request_timeout = request_timeout
        self.resource_timeout = resource_timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.headers = dict(DEFAULT_HEADERS)
        if user_agent:
            self.headers["User-Agent"] = user_agent
        self._session = session

    @property
    def session(self) -> aiohttp.ClientSession:
        """
        Lazy initialization of aiohttp session.

        Returns:
            aiohttp.ClientSession: The HTTP session
        """
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=self.resource_timeout,
                sock_connect=self.request_timeout,
                sock_read=self.request_timeout,
            )
            self._session = aiohttp.ClientSession(headers=self.headers, timeout=timeout)
        return self._session

    async def close_session(self):
        """Close aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close_session()

    @staticmethod
    def _validate_url(url: str) -> None:
        parts = urlsplit(url or "")
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidURLError(url)

    async def _get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> str:
        """
        Perform a GET and return the body text.

        Raises:
            InvalidURLError: If the URL is malformed
            ServerError: On a non-2xx status
            UnknownNetworkError: On any other transport failure
        """
        self._validate_url(url)
        logger.debug(f"GET {url} {masked_params(params)}")
        try:
            async with self.session.get(url, params=params, headers=headers) as response:
                body = await response.text(errors="replace")
                if not 200 <= response.status < 300:
                    logger.debug(f"{url} answered {response.status}: {body[:SAMPLE_LENGTH]!r}")
                    raise ServerError(response.status, url)
                return body
        except NetworkError:
            raise
        except aiohttp.InvalidURL as e:
            raise InvalidURLError(url) from e
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise UnknownNetworkError(e) from e

    async def fetch_text(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> str:
        """
        Fetch a URL as text (RSS/Atom feeds).

        Args:
            url: The URL to fetch
            params: Query parameters
            headers: Extra request headers

        Returns:
            The response body
        """
        return await self._get(url, params=params, headers=headers)

    async def fetch_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        model: Optional[Callable[[Any], Any]] = None
    ) -> Any:
        """
        Fetch a URL and decode its JSON body.

        Args:
            url: The URL to fetch
            params: Query parameters
            headers: Extra request headers
            model: Optional callable that converts the decoded payload into
                the caller's shape; KeyError, TypeError, AttributeError and
                ValueError it raises count as decoding failures

        Returns:
            The decoded payload, converted by model when given

        Raises:
            DecodingError: If the body is not JSON or does not fit model
        """
        body = await self._get(url, params=params, headers=headers)
        try:
            payload = json.loads(body)
            return model(payload) if model is not None else payload
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            sample = body[:SAMPLE_LENGTH]
            logger.debug(f"Decode error for {url}: {e}; body sample: {sample!r}")
            raise DecodingError(f"Failed to decode response from {url}: {e}", sample) from e

    async def fetch_with_retry(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        model: Optional[Callable[[Any], Any]] = None,
        as_json: bool = True
    ) -> Any:
        """
        Fetch with exponential backoff (1s, 2s, 4s, ... scaled by backoff_factor).

        Only 5xx responses and transport failures are retried; 4xx responses
        and decoding errors are raised on the first attempt.

        Args:
            url: The URL to fetch
            params: Query parameters
            headers: Extra request headers
            model: Payload converter, see fetch_json
            as_json: Decode the body as JSON, otherwise return text

        Returns:
            The decoded payload or body text
        """
        @backoff.on_exception(
            backoff.expo,
            (ServerError, UnknownNetworkError),
            max_tries=self.max_retries,
            giveup=_is_permanent,
            logger=logger,
            giveup_log_level=logging.WARNING,
            jitter=None,
            factor=self.backoff_factor
        )
        async def attempt():
            if as_json:
                return await self.fetch_json(url, params=params, headers=headers, model=model)
            return await self.fetch_text(url, params=params, headers=headers)

        return await attempt()
