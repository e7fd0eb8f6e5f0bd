from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from .error_codes import ErrorCode, error_code_for
from .logging_utils import _scraper_event
from .utils import log_line, short_error_message

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]

NON_RETRYABLE_ERROR_CODES = {
    ErrorCode.NOT_FOUND,
    ErrorCode.NO_USER_AGENTS,
    ErrorCode.CONFIG,
}


class RetriesExhausted(Exception):
    """Raised when an operation failed on every permitted attempt."""

    def __init__(self, label: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{label} failed after {attempts} attempt(s): {last_error}")
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        self.error_code = error_code_for(last_error)


def compute_backoff_seconds(retry_number: int, base_delay: float) -> float:
    """Return the linear backoff before retry ``retry_number`` (1-based)."""

    return float(max(0.0, base_delay) * max(1, retry_number))


def decide_retry(
    retry_number: int,
    max_retries: int,
    error: BaseException | None = None,
    *,
    error_code: Optional[str] = None,
) -> bool:
    """Decide whether retry ``retry_number`` (1-based) should happen."""

    code = (error_code or error_code_for(error)).strip()

    if code in NON_RETRYABLE_ERROR_CODES:
        _scraper_event(
            "state",
            phase="retry_decision",
            kind="non_retryable",
            error_code=code,
            retry=retry_number,
            max_retries=max_retries,
            will_retry=False,
        )
        return False

    if retry_number > max_retries:
        _scraper_event(
            "state",
            phase="retry_decision",
            kind="capped",
            error_code=code,
            retry=retry_number,
            max_retries=max_retries,
            will_retry=False,
        )
        return False

    _scraper_event(
        "state",
        phase="retry_decision",
        kind="retryable",
        error_code=code,
        retry=retry_number,
        max_retries=max_retries,
        will_retry=True,
    )
    return True


async def run_with_retries(
    operation: Callable[[int], Awaitable[T]],
    *,
    label: str,
    max_retries: int,
    base_delay: float,
    sleep: Sleeper = asyncio.sleep,
    error_prefix: str = "Error running",
) -> T:
    """Run ``operation(attempt_index)`` with bounded linear-backoff retries.

    ``attempt_index`` is 0 for the first attempt and ``k`` for retry ``k``.
    Retry ``k`` is preceded by a ``base_delay * k`` sleep. Raises
    :class:`RetriesExhausted` once the budget is spent or the error is not
    retryable. Failures are logged as ``"<error_prefix> <label>: <error>"``.
    """

    attempt = 0
    while True:
        try:
            return await operation(attempt)
        except Exception as exc:  # noqa: BLE001
            message = short_error_message(exc)
            if attempt == 0:
                log_line(f"{error_prefix} {label}: {message}")
            else:
                log_line(f"{error_prefix} {label} on retry {attempt}: {message}")

            retry_number = attempt + 1
            if not decide_retry(retry_number, max_retries, exc):
                if retry_number > max_retries:
                    log_line(f"Max retry attempts reached for {label}")
                raise RetriesExhausted(label, attempt + 1, exc) from exc

            log_line(f"Retry attempt {retry_number} for {label}")
            await sleep(compute_backoff_seconds(retry_number, base_delay))
            attempt = retry_number


__all__ = [
    "NON_RETRYABLE_ERROR_CODES",
    "RetriesExhausted",
    "compute_backoff_seconds",
    "decide_retry",
    "run_with_retries",
]
