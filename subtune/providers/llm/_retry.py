"""Shared retry utilities for HTTP translation backends."""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
from tenacity import RetryCallState, wait_exponential

from subtune.error_codes import ErrorCode
from subtune.exceptions import BackendUnavailableError

_WAIT_NORMAL = wait_exponential(min=1, max=10)
_WAIT_RATE_LIMIT = wait_exponential(min=2, max=30)


class RetryableBackendError(BackendUnavailableError):
    """Transient transport failure (timeout, HTTP 429 or 5xx)."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        rate_limited: bool = False,
        error_code: ErrorCode | str | None = ErrorCode.BACKEND_UNAVAILABLE,
    ) -> None:
        super().__init__(provider, message, error_code=error_code)
        self.rate_limited = bool(rate_limited)


def format_http_error(response: httpx.Response) -> str:
    detail = response.text.strip() if response.content else ""
    if len(detail) > 2000:
        detail = detail[:2000] + "..."
    if detail:
        return f"HTTP {response.status_code} {response.reason_phrase}: {detail}"
    return f"HTTP {response.status_code} {response.reason_phrase}"


def raise_for_status(provider: str, response: httpx.Response) -> None:
    """Raise RetryableBackendError for 429/5xx and BackendUnavailableError for other errors."""
    if response.status_code < 400:
        return
    message = format_http_error(response)
    if response.status_code == 429 or response.status_code >= 500:
        raise RetryableBackendError(provider, message, rate_limited=response.status_code == 429)
    raise BackendUnavailableError(provider, message)


def wait_retry(state: RetryCallState) -> float:
    exc = state.outcome.exception() if state.outcome else None
    if isinstance(exc, RetryableBackendError) and exc.rate_limited:
        return _WAIT_RATE_LIMIT(state)
    return _WAIT_NORMAL(state)


def log_retry(logger: logging.Logger) -> Callable[[RetryCallState], None]:
    def _log(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        provider = "translation"
        model = None
        if state.args:
            provider = getattr(state.args[0], "provider", provider)
            model = getattr(state.args[0], "model", None)
        wait_s = state.next_action.sleep if state.next_action else None
        logger.warning(
            "backend retrying (provider=%s, model=%s, attempt=%s, wait_s=%s, error=%s)",
            provider,
            model,
            state.attempt_number,
            wait_s,
            exc,
        )

    return _log
