from __future__ import annotations

"""Centralised error code taxonomy for scraper failures.

These codes are attached to exceptions and included in structured logs so
that a failed ID can be explained from the log alone. Keep the values stable;
log greps depend on them.
"""


class ErrorCode:
    TIMEOUT = "timeout"
    BROWSER = "browser_error"
    NOT_FOUND = "not_found"
    NO_USER_AGENTS = "no_user_agents"
    CONFIG = "config_error"
    INTERNAL = "internal_error"


def error_code_for(exc: BaseException | None) -> str:
    """Return the error code carried by ``exc`` or ``internal_error``."""

    code = getattr(exc, "error_code", None)
    if isinstance(code, str) and code:
        return code
    return ErrorCode.INTERNAL


__all__ = ["ErrorCode", "error_code_for"]
