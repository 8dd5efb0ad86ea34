"""
Resilient HTTP transport for the Spotify Web API.

Every call to Spotify goes through Transport.execute(), which applies a
per-attempt timeout and retries rate limits, server errors, timeouts and
connection failures with backoff.
"""

import json
import math
import time
from typing import Any, Callable, Dict, Optional

import requests

from liked_mirror.utils.logger import get_logger


MAX_RETRIES = 4
REQUEST_TIMEOUT_SECONDS = 30
BACKOFF_BASE_SECONDS = 0.5


class SpotifyApiError(Exception):
    """Terminal failure of a Spotify API call."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class TransientNetworkError(SpotifyApiError):
    """Timeouts or connection failures outlasted the retry budget."""


class RateLimitedError(SpotifyApiError):
    """Spotify kept answering 429."""


class UpstreamUnavailableError(SpotifyApiError):
    """Spotify kept answering with a 5xx status."""


class NotFoundError(SpotifyApiError):
    """The requested resource does not exist (404)."""


class ClientRequestError(SpotifyApiError):
    """The request was rejected with a 4xx status."""


def error_for_status(status: int, message: str) -> SpotifyApiError:
    """Build the exception class matching an HTTP status."""
    if status == 404:
        return NotFoundError(status, message)
    if status == 429:
        return RateLimitedError(status, message)
    if status >= 500:
        return UpstreamUnavailableError(status, message)
    if 400 <= status < 500:
        return ClientRequestError(status, message)
    return SpotifyApiError(status, message)


def parse_retry_after(header_value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header given in seconds.

    Returns:
        Delay in seconds, or None when missing, non-numeric or not positive
    """
    if not header_value:
        return None

    try:
        seconds = float(header_value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(seconds) or seconds <= 0:
        return None

    return seconds


def build_error_message(status: int, body_text: str) -> str:
    """Extract a readable message from a Spotify error body."""
    prefix = f"Spotify API request failed with status {status}"
    if not body_text:
        return prefix

    try:
        parsed = json.loads(body_text)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        error = parsed.get('error')
        if isinstance(error, str) and error:
            return f"{prefix}: {error}"

        error_message = None
        if isinstance(error, dict):
            error_message = error.get('message')
        error_message = error_message or parsed.get('message')
        if error_message:
            return f"{prefix}: {error_message}"

    return f"{prefix}: {body_text}"


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


class Transport:
    """
    Explicit transport value for the Spotify API.

    Holds the HTTP session and the retry policy. It carries no credentials;
    callers pass the bearer token on each call.
    """

    def __init__(
        self,
        session: requests.Session = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_retries: int = MAX_RETRIES,
        backoff_base: float = BACKOFF_BASE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        logger=None
    ):
        """
        Initialize transport.

        Args:
            session: requests session to use (a new one by default)
            timeout: Per-attempt timeout in seconds
            max_retries: Retries allowed after the first attempt
            backoff_base: First backoff delay in seconds, doubled per retry
            sleep: Function used to wait between attempts
            logger: Logger with info/warning/error methods
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.sleep = sleep
        self.logger = logger or get_logger()

    def backoff_delay(self, attempt: int) -> float:
        """Exponential delay before retry number `attempt` (1-based)."""
        return self.backoff_base * 2 ** (attempt - 1)

    def execute(
        self,
        method: str,
        url: str,
        body: Any = None,
        bearer: str = None,
        form: Dict[str, str] = None
    ) -> Any:
        """
        Perform one logical request with timeout, retry and backoff.

        Args:
            method: HTTP method
            url: Absolute URL
            body: JSON-serializable request body
            bearer: Access token for the Authorization header
            form: Form fields, sent url-encoded instead of a JSON body

        Returns:
            Parsed JSON response, or None for an empty 2xx body

        Raises:
            SpotifyApiError: On a non-retryable status or when retries run out
        """
        headers = {'Accept': 'application/json'}
        if bearer:
            headers['Authorization'] = f"Bearer {bearer}"

        kwargs = {'headers': headers, 'timeout': self.timeout}
        if form is not None:
            headers['Content-Type'] = 'application/x-www-form-urlencoded'
            kwargs['data'] = form
        elif body is not None:
            headers['Content-Type'] = 'application/json'
            kwargs['data'] = json.dumps(body)

        attempt = 0

        while True:
            self.logger.info(f"Spotify request attempt {attempt + 1}: {method} {url}")

            try:
                response = self.session.request(method, url, **kwargs)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt < self.max_retries:
                    attempt += 1
                    delay = self.backoff_delay(attempt)
                    self.logger.warning(
                        f"Spotify request failed ({e.__class__.__name__}). "
                        f"Retrying attempt {attempt} in {delay}s."
                    )
                    self.sleep(delay)
                    continue

                raise TransientNetworkError(
                    None,
                    f"Spotify API request failed after {attempt + 1} attempts: {e}"
                ) from e

            status = response.status_code
            body_text = response.text or ''

            if 200 <= status < 300:
                if not body_text.strip():
                    return None
                return json.loads(body_text)

            if is_retryable_status(status) and attempt < self.max_retries:
                attempt += 1
                retry_after = parse_retry_after(response.headers.get('Retry-After'))
                delay = retry_after if retry_after is not None else self.backoff_delay(attempt)
                self.logger.warning(
                    f"Spotify responded {status}. Retrying attempt {attempt} in {delay}s."
                )
                self.sleep(delay)
                continue

            raise error_for_status(status, build_error_message(status, body_text))
