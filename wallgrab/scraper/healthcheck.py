from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config import ScrapeSettings
from .config_validation import validate_settings
from .logging_utils import _scraper_event
from .user_agents import UserAgentError, UserAgentProvider


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]


def _check_writable(directory: Path) -> dict[str, Any]:
    marker = directory / f".wallgrab-write-check-{uuid.uuid4().hex[:8]}"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        marker.write_text("ok", encoding="utf-8")
        marker.unlink()
    except OSError as exc:
        return {"ok": False, "path": str(directory), "error": str(exc)}
    return {"ok": True, "path": str(directory)}


def run_health_checks(settings: ScrapeSettings) -> HealthResult:
    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_settings(settings, "check")
        checks["config"] = {"ok": True}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc)}

    try:
        provider = UserAgentProvider.from_file(settings.user_agent_file)
        checks["user_agents"] = {
            "ok": len(provider) > 0,
            "path": str(settings.user_agent_file),
            "count": len(provider),
        }
    except UserAgentError as exc:
        checks["user_agents"] = {
            "ok": False,
            "path": str(settings.user_agent_file),
            "error": str(exc),
        }

    checks["download_dir"] = _check_writable(Path(settings.download_dir))

    overall_ok = all(check.get("ok", False) for check in checks.values())

    _scraper_event(
        "state",
        phase="healthcheck",
        ok=overall_ok,
        failed=sorted(name for name, check in checks.items() if not check.get("ok")),
    )
    return HealthResult(ok=overall_ok, checks=checks)


__all__ = ["HealthResult", "run_health_checks"]
