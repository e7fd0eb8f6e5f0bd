from __future__ import annotations

from dataclasses import replace
from typing import Literal

from . import config
from .config import ScrapeSettings
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["cli", "check", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_settings(settings: ScrapeSettings, entrypoint: Entrypoint = "cli") -> ScrapeSettings:
    """Validate ``settings`` for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    Non-fatal adjustments (clamping the pool size) are logged and returned in
    a new settings object.
    """

    if settings.start_id is None or settings.end_id is None:
        _raise_config_error(
            "An ID range is required; set --start/--end or WALLGRAB_START_ID/WALLGRAB_END_ID.",
            entrypoint=entrypoint,
            error="missing_range",
        )

    if settings.start_id > settings.end_id:
        _raise_config_error(
            f"Start ID {settings.start_id} is greater than end ID {settings.end_id}.",
            entrypoint=entrypoint,
            error="inverted_range",
        )

    if settings.pool_size < 1:
        adjusted = 1
        _scraper_event(
            "state",
            phase="config",
            context="runtime_validation",
            kind="config_adjustment",
            field="pool_size",
            value=settings.pool_size,
            adjusted=adjusted,
            entrypoint=entrypoint,
        )
        log_line("[CONFIG] pool_size < 1; clamping to 1.")
        settings = replace(settings, pool_size=adjusted)

    if settings.max_retries < 0:
        _raise_config_error(
            "max_retries must be non-negative.",
            entrypoint=entrypoint,
            error="max_retries_invalid",
        )

    delay_fields = [
        ("batch_delay_seconds", settings.batch_delay_seconds),
        ("download_delay_seconds", settings.download_delay_seconds),
        ("retry_base_delay_seconds", settings.retry_base_delay_seconds),
    ]
    for field_name, value in delay_fields:
        if value < 0:
            _raise_config_error(
                f"{field_name} must be non-negative.",
                entrypoint=entrypoint,
                error="invalid_delay",
            )

    timeout_fields = [
        ("nav_timeout_seconds", settings.nav_timeout_seconds),
        ("selector_timeout_seconds", settings.selector_timeout_seconds),
        ("download_settle_timeout_seconds", settings.download_settle_timeout_seconds),
    ]
    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )

    if settings.tags_mode not in config.TAGS_MODES:
        _raise_config_error(
            f"tags_mode must be one of {', '.join(config.TAGS_MODES)}.",
            entrypoint=entrypoint,
            error="invalid_tags_mode",
        )

    if settings.timestamp_style not in config.TIMESTAMP_STYLES:
        _raise_config_error(
            f"timestamp_style must be one of {', '.join(config.TIMESTAMP_STYLES)}.",
            entrypoint=entrypoint,
            error="invalid_timestamp_style",
        )

    if not settings.artifact_extensions:
        _raise_config_error(
            "At least one artifact extension is required.",
            entrypoint=entrypoint,
            error="no_extensions",
        )

    if "{image_id}" not in settings.page_url_template:
        _raise_config_error(
            "page_url_template must contain an {image_id} placeholder.",
            entrypoint=entrypoint,
            error="invalid_url_template",
        )

    return settings


__all__ = ["validate_settings", "Entrypoint"]
