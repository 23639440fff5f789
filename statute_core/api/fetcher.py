import logging
import time
from typing import Any, Callable, Optional

import httpx

from statute_core.config import DEFAULT_RESOLVER_CONFIG
from statute_core.exceptions import NetworkError, PermanentAPIError, RemoteAPIError, TransientAPIError

logger = logging.getLogger(__name__)


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class RetryableFetcher:
    """
    GET wrapper around an httpx client with the OpenLaws retry policy.

    - 429 / 5xx: exponential backoff (base_delay * 2 ** attempt), then retry
    - other 4xx: raised immediately as PermanentAPIError
    - connection errors and timeouts: flat network_delay, then retry

    Exhausting every attempt raises the last failure as TransientAPIError or
    NetworkError.
    """

    def __init__(
        self,
        http: httpx.Client,
        max_retries: int = DEFAULT_RESOLVER_CONFIG.MAX_RETRIES,
        base_delay: float = DEFAULT_RESOLVER_CONFIG.RETRY_BASE_DELAY,
        network_delay: float = DEFAULT_RESOLVER_CONFIG.NETWORK_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.http = http
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.network_delay = network_delay
        self._sleep = sleep

    def get(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
        on_attempt: Optional[Callable[[], None]] = None,
    ) -> httpx.Response:
        """
        Args:
            url: Path relative to the client base URL
            params: Query parameters
            timeout: Per-request timeout override
            on_attempt: Called before every HTTP attempt, retries included.
                An exception it raises stops the loop and propagates.
        """
        last_error: Optional[RemoteAPIError] = None

        for attempt in range(self.max_retries):
            if on_attempt is not None:
                on_attempt()
            try:
                kwargs: dict[str, Any] = {"params": params}
                if timeout is not None:
                    kwargs["timeout"] = timeout
                response = self.http.get(url, **kwargs)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if not _is_retryable_status(status):
                    raise PermanentAPIError(
                        f"HTTP {status} for {url}", status_code=status, url=url
                    ) from e
                last_error = TransientAPIError(
                    f"HTTP {status} for {url} after {self.max_retries} attempts",
                    status_code=status,
                    url=url,
                )
                last_error.__cause__ = e
                delay = self.base_delay * (2 ** attempt)

            except httpx.TransportError as e:
                last_error = NetworkError(
                    f"Network error for {url} after {self.max_retries} attempts: {e}",
                    url=url,
                )
                last_error.__cause__ = e
                delay = self.network_delay

            if attempt < self.max_retries - 1:
                logger.warning(
                    f"{last_error.status_code or 'network'} error on {url}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                self._sleep(delay)

        logger.warning(f"Giving up on {url} after {self.max_retries} attempts")
        raise last_error

    def get_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
        on_attempt: Optional[Callable[[], None]] = None,
    ) -> Any:
        """get() plus JSON decoding. A body that is not JSON raises RemoteAPIError."""
        response = self.get(url, params=params, timeout=timeout, on_attempt=on_attempt)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteAPIError(
                f"Invalid JSON from {url}: {e}", status_code=response.status_code, url=url
            ) from e
