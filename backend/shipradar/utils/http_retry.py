"""HTTP retry helper for upstream vessel services.

Retries only transient failures (rate limits, 5xx gateway errors, dropped
connections). Client errors such as 401/403/404 surface immediately.

An empty ``delays`` sequence means exactly one attempt:

    resp = retry_request(client.get, url, delays=[])
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Sequence

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

_RETRYABLE_EXCEPTIONS = (httpx.ConnectError, httpx.TimeoutException)


def retry_request(
    request_fn: Callable[..., httpx.Response],
    url: str,
    *,
    delays: Sequence[float] = (),
    **kwargs: Any,
) -> httpx.Response:
    """Call ``request_fn(url, **kwargs)``, sleeping ``delays[i]`` before retry ``i + 1``.

    Returns the first response with a status below 400.

    Raises:
        httpx.HTTPStatusError: non-retryable status, or retryable status on the last attempt.
        httpx.ConnectError / httpx.TimeoutException: on the last attempt.
    """
    attempts = 1 + len(delays)

    for attempt in range(attempts):
        is_last = attempt == attempts - 1
        try:
            resp = request_fn(url, **kwargs)
        except _RETRYABLE_EXCEPTIONS as exc:
            if is_last:
                raise
            _log_retry(type(exc).__name__, url, delays[attempt], attempt, len(delays))
            time.sleep(delays[attempt])
            continue

        if resp.status_code < 400:
            return resp
        if resp.status_code not in _RETRYABLE_STATUS_CODES or is_last:
            resp.raise_for_status()

        delay = delays[attempt]
        if resp.status_code == 429:
            delay = max(delay, _retry_after(resp))
        _log_retry(f"HTTP {resp.status_code}", url, delay, attempt, len(delays))
        time.sleep(delay)

    raise RuntimeError("retry_request exhausted retries without result")


def _retry_after(resp: httpx.Response) -> float:
    try:
        return float(resp.headers.get("Retry-After", 0))
    except (TypeError, ValueError):
        return 0.0


def _log_retry(reason: str, url: str, delay: float, attempt: int, retries: int) -> None:
    logger.warning(
        "%s from %s, retrying in %.0fs (attempt %d/%d)",
        reason, url[:120], delay, attempt + 1, retries,
    )
