"""
Exception hierarchy for newsmux.

Provider-level errors are raised by the HTTP client, the adapters and the fetch
policy. The aggregator turns them into "zero articles from this provider" and
only lets NoDataError reach the caller.
"""
from typing import Optional


class NewsError(Exception):
    """Base exception for every newsmux failure"""

    user_message = "Unable to load news. Please try again"


class NetworkError(NewsError):
    """Base exception for failures of a single provider call"""
    pass


class InvalidURLError(NetworkError):
    """The request URL could not be built or was rejected by the transport"""

    user_message = "Something went wrong with the request"

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url}")


class MissingKeyError(NetworkError):
    """No usable credential is configured for a provider"""

    user_message = "News service is not configured"

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"API key for {provider} is missing")


class ServerError(NetworkError):
    """The provider answered with a non-2xx status code"""

    def __init__(self, status_code: int, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Server error: {status_code}")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_auth_or_rate_limit(self) -> bool:
        return self.status_code in (401, 403, 429)

    @property
    def user_message(self) -> str:
        if self.status_code == 429:
            return "Too many requests. Showing cached news until rate limits reset"
        return "News service is temporarily unavailable"


class DecodingError(NetworkError):
    """The payload did not match the expected shape"""

    user_message = "Unable to process news data"

    def __init__(self, message: str, sample: str = ""):
        self.sample = sample
        super().__init__(message)


class FetchTimeoutError(NetworkError):
    """A provider fetch lost its race against the deadline"""

    user_message = "The request timed out. Please try again."

    def __init__(self, provider: str, seconds: float):
        self.provider = provider
        self.seconds = seconds
        super().__init__(f"{provider} timed out after {seconds:g}s")


class RateLimitExceededError(NetworkError):
    """Every key rotation attempt for a provider was exhausted"""

    user_message = "Daily API limit reached. Showing cached news"

    def __init__(self, provider: str, attempts: int = 0):
        self.provider = provider
        self.attempts = attempts
        msg = f"Rate limit exceeded for {provider}"
        if attempts:
            msg += f" after {attempts} attempts"
        super().__init__(msg)


class UnknownNetworkError(NetworkError):
    """Any other transport failure"""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Network failure: {cause!r}")


class NoDataError(NewsError):
    """Every provider in an aggregation round failed or returned nothing"""

    user_message = "Unable to fetch news. Please check your internet connection"
