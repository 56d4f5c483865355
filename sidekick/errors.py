"""Error taxonomy shared by the embedding, generation and storage layers."""

import httpx


class SidekickError(Exception):
    """Base class for errors raised by the pipeline."""


class RateLimitError(SidekickError):
    """The remote model service refused the call because of rate limiting.

    This is the only error class the retry policy retries.
    """


class TransientServiceError(SidekickError):
    """A remote service failed for a reason other than rate limiting."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(SidekickError):
    """A repository or file the caller asked for does not exist."""


def raise_for_service_status(response: httpx.Response, service: str) -> None:
    """Translate an HTTP error response into the pipeline's error classes.

    Args:
        response: Response returned by the remote service
        service: Human readable service name used in the error message

    Raises:
        RateLimitError: On HTTP 429
        TransientServiceError: On any other 4xx/5xx status
    """
    if response.status_code < 400:
        return

    detail = response.text[:200]
    if response.status_code == 429:
        raise RateLimitError(f"{service} rate limit exceeded: {detail}")

    raise TransientServiceError(
        f"{service} returned HTTP {response.status_code}: {detail}",
        status_code=response.status_code,
    )
