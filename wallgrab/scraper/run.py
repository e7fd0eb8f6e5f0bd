"""Batch scraper for wallpaper pages.

Workflow:

- Load the user-agent list (missing file aborts the run).
- Launch Chromium with ``pool_size`` long-lived tabs.
- Walk ``[start_id, end_id]`` in batches of ``pool_size``; each ID gets one
  tab, a random user agent, tag extraction into the tags file and a click on
  its download button.
- Retry failed IDs with linear backoff; skip IDs already on disk.

This is wired to the ``wallgrab`` console script via _cli_entrypoint().
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Callable, List, Optional

from . import config
from .browser import PageSession, open_browser_slots
from .config import ScrapeSettings
from .config_validation import validate_settings
from .dispatcher import BatchDispatcher
from .download_task import DownloadTask
from .healthcheck import run_health_checks
from .logging_utils import _scraper_event
from .retry_policy import Sleeper
from .sinks import TagSink
from .user_agents import UserAgentError, UserAgentProvider
from .utils import configure_logger, ensure_dirs, log_line

SlotOpener = Callable[[ScrapeSettings], AbstractAsyncContextManager[List[PageSession]]]


async def run_scrape(
    settings: ScrapeSettings,
    *,
    open_slots: SlotOpener = open_browser_slots,
    user_agents: Optional[UserAgentProvider] = None,
    sleep: Sleeper = asyncio.sleep,
) -> int:
    """Sweep the configured ID range. Returns the number of batches run.

    Startup problems (bad configuration, unreadable user-agent file) raise.
    Per-ID failures are logged and never abort the run.
    """

    configure_logger(settings.log_file, timestamp_style=settings.timestamp_style)
    log_line(f"Logging to {settings.log_file}")
    settings = validate_settings(settings, "cli")

    if user_agents is None:
        user_agents = UserAgentProvider.from_file(settings.user_agent_file)
    if not len(user_agents):
        raise UserAgentError(f"No user agents found in {settings.user_agent_file}")

    ensure_dirs(settings.download_dir)
    tag_sink = TagSink(settings.tags_file, settings.tags_mode)
    tag_sink.prepare()

    _scraper_event(
        "state",
        phase="run",
        kind="start",
        start_id=settings.start_id,
        end_id=settings.end_id,
        pool_size=settings.pool_size,
        max_retries=settings.max_retries,
    )

    task = DownloadTask(settings, user_agents, tag_sink, sleep=sleep)
    async with open_slots(settings) as slots:
        dispatcher = BatchDispatcher(settings, slots, task, sleep=sleep)
        batches = await dispatcher.run()

    _scraper_event("state", phase="run", kind="finished", batches=batches)
    return batches


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wallgrab", description="Download wallpapers and their tags for an ID range"
    )
    parser.add_argument("--start", dest="start_id", type=int, default=None)
    parser.add_argument("--end", dest="end_id", type=int, default=None)
    parser.add_argument("--pool-size", type=int, default=None, help="Worker tabs / batch size")
    parser.add_argument("--batch-delay", dest="batch_delay_seconds", type=float, default=None)
    parser.add_argument(
        "--download-delay", dest="download_delay_seconds", type=float, default=None
    )
    parser.add_argument("--max-retries", type=int, default=None)
    parser.add_argument(
        "--retry-base-delay", dest="retry_base_delay_seconds", type=float, default=None
    )
    parser.add_argument("--download-dir", type=Path, default=None)
    parser.add_argument("--user-agents", dest="user_agent_file", type=Path, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("--tags-file", type=Path, default=None)
    parser.add_argument("--tags-mode", choices=list(config.TAGS_MODES), default=None)
    parser.add_argument(
        "--timestamp-style", choices=list(config.TIMESTAMP_STYLES), default=None
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Run health checks and exit",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> ScrapeSettings:
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key not in {"headed", "check"}
    }
    if args.headed:
        overrides["headless"] = False
    return ScrapeSettings.from_config(**overrides)


def _cli_entrypoint(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    configure_logger(settings.log_file, timestamp_style=settings.timestamp_style)

    if args.check:
        result = run_health_checks(settings)
        for name, check in sorted(result.checks.items()):
            status = "ok" if check.get("ok") else "FAILED"
            detail = check.get("error") or check.get("path") or ""
            log_line(f"[CHECK] {name}: {status} {detail}".rstrip())
        return 0 if result.ok else 1

    try:
        asyncio.run(run_scrape(settings))
    except (ValueError, UserAgentError) as exc:
        log_line(f"[RUN] Aborted: {exc}")
        return 2
    except KeyboardInterrupt:
        log_line("[RUN] Interrupted; abandoning in-flight downloads.")
        return 130
    return 0


def main() -> None:  # pragma: no cover
    sys.exit(_cli_entrypoint())


if __name__ == "__main__":  # pragma: no cover
    main()

__all__ = ["run_scrape", "build_parser", "settings_from_args", "_cli_entrypoint", "main"]
