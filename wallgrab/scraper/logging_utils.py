from __future__ import annotations

from typing import Any, Dict

from .utils import log_line


def _format_fields(fields: Dict[str, Any]) -> str:
    """Render ``key=repr(value)`` pairs with ``phase`` first, the rest sorted."""

    ordered = sorted(fields.items(), key=lambda item: (item[0] != "phase", item[0]))
    return ", ".join(f"{key}={value!r}" for key, value in ordered)


def _scraper_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Log one ``[SCRAPER][<LABEL>] k=v, ...`` line.

    With no ``label`` the phase names the line; otherwise the phase travels
    in the payload. Logging failures are dropped so an unwritable log file
    never aborts a download.
    """

    if label and phase:
        fields.setdefault("phase", phase)
    tag = (label or phase or "event").upper()
    try:
        log_line(f"[SCRAPER][{tag}] {_format_fields(fields)}")
    except (OSError, ValueError):
        return


__all__ = ["_scraper_event"]
