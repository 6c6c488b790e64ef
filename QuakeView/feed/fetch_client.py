"""
Fetch Client Module - HTTP access to the earthquake CSV feed

Handles:
- Timeouts and bounded retries with exponential backoff
- Rate limit responses (429 + Retry-After)
- Streaming line-by-line downloads for live ingestion
- Optional injected ResponseCache for whole-body fetches
"""
import io
import logging
import time
from typing import Callable, Dict, Iterator, Optional

import requests

from .response_cache import ResponseCache


class SourceUnavailableError(Exception):
    """The feed could not be reached (network error, timeout, HTTP error)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FetchClient:

    DEFAULT_HEADERS = {
        "Accept": "text/csv,text/plain,*/*",
        "Cache-Control": "no-cache",
        "User-Agent": "QuakeView/1.0",
    }

    def __init__(
        self,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        backoff_multiplier: float = 2.0,
        max_delay: float = 5.0,
        cache: Optional[ResponseCache] = None,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.backoff_multiplier = backoff_multiplier
        self.max_delay = max_delay
        self.cache = cache
        self.headers = dict(self.DEFAULT_HEADERS)
        if headers:
            self.headers.update(headers)
        self.session = session or requests.Session()
        self._sleep = sleep
        self.logger = logging.getLogger(__name__)

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after the given zero-based attempt"""
        return min(self.retry_delay * (self.backoff_multiplier ** attempt), self.max_delay)

    def fetch_text(self, url: str, use_cache: bool = True) -> str:
        """
        Fetch the whole body of url as text

        Args:
            url: Feed URL
            use_cache: Serve from / store into the injected cache

        Returns:
            Response body

        Raises:
            SourceUnavailableError: after all attempts failed
        """
        if use_cache and self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                self.logger.debug(f"Cache hit for {url}")
                return cached

        response = self._request(url, stream=False)
        body = response.text

        if use_cache and self.cache is not None and body:
            self.cache.set(url, body)
        return body

    def stream_lines(self, url: str, use_cache: bool = True) -> Iterator[str]:
        """
        Stream the body of url line by line, newline-terminated

        Retries only cover establishing the response; once lines are
        flowing a broken connection surfaces as SourceUnavailableError.
        A fully streamed body is stored in the cache, and a cached body is
        replayed without touching the network.
        """
        if use_cache and self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                self.logger.debug(f"Cache hit for {url}")
                yield from io.StringIO(cached, newline='')
                return

        response = self._request(url, stream=True)
        received = []
        try:
            for line in response.iter_lines(decode_unicode=True):
                if isinstance(line, bytes):
                    line = line.decode('utf-8', errors='replace')
                line = line + "\n"
                received.append(line)
                yield line
        except requests.RequestException as e:
            self.logger.error(f"Stream interrupted for {url}: {e}")
            raise SourceUnavailableError(f"Stream interrupted: {e}") from e
        finally:
            response.close()

        if use_cache and self.cache is not None and received:
            self.cache.set(url, "".join(received))

    def _request(self, url: str, stream: bool) -> requests.Response:
        """Centralized request method with error handling and retries."""
        last_error = "Max retries exceeded"
        last_status: Optional[int] = None

        for attempt in range(self.max_retries):
            is_last = attempt == self.max_retries - 1
            try:
                response = self.session.get(url, headers=self.headers, timeout=self.timeout, stream=stream)

                # Handle rate limit responses from the server
                if response.status_code == 429:
                    retry_after = self._retry_after(response)
                    last_status = 429
                    last_error = "HTTP 429: rate limited"
                    self.logger.warning(f"Rate limit hit for {url}. Retry after {retry_after} seconds.")
                    response.close()
                    if not is_last:
                        self._sleep(retry_after)
                        continue
                    break

                if 400 <= response.status_code < 500:
                    # Client errors are not retried
                    response.close()
                    raise SourceUnavailableError(
                        f"HTTP {response.status_code}: {response.reason}", response.status_code
                    )

                response.raise_for_status()
                return response

            except requests.exceptions.Timeout:
                self.logger.error(f"Request timeout for {url} (attempt {attempt + 1}/{self.max_retries})")
                last_error = "Request timed out"

            except requests.exceptions.ConnectionError as e:
                self.logger.error(f"Connection error for {url}: {e}")
                last_error = f"Connection error: {e}"

            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                self.logger.error(f"HTTP error for {url}: {e}")
                last_error = f"HTTP error: {e}"
                last_status = status

            except requests.RequestException as e:
                self.logger.error(f"Request error for {url}: {e}")
                raise SourceUnavailableError(f"Error during request: {e}") from e

            if not is_last:
                delay = self.backoff_delay(attempt)
                self.logger.info(f"Waiting {delay:.2f}s before retry...")
                self._sleep(delay)

        raise SourceUnavailableError(
            f"Failed to fetch {url} after {self.max_retries} attempts: {last_error}", last_status
        )

    def _retry_after(self, response: requests.Response) -> float:
        try:
            return float(response.headers.get('Retry-After', self.retry_delay))
        except (TypeError, ValueError):
            return self.retry_delay
