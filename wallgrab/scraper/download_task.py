from __future__ import annotations

import asyncio
from enum import Enum
from typing import List

from .artifacts import find_existing_artifact
from .browser import PageSession, Readiness
from .config import ScrapeSettings
from .logging_utils import _scraper_event
from .retry_policy import RetriesExhausted, Sleeper, run_with_retries
from .sinks import TagSink
from .user_agents import UserAgentProvider
from .utils import log_line


class TaskOutcome(str, Enum):
    DOWNLOADED = "downloaded"
    SKIPPED_EXISTING = "skipped_existing"
    NOT_FOUND = "not_found"
    FAILED = "failed"


def clean_tags(raw: List[str]) -> List[str]:
    """Collapse whitespace in scraped tag labels and drop empty ones."""

    tags = []
    for value in raw:
        text = " ".join(str(value).split())
        if text:
            tags.append(text)
    return tags


class DownloadTask:
    """Scrape tags for one wallpaper page and trigger its download.

    ``run`` never raises for per-ID problems; every path ends in a
    :class:`TaskOutcome`.
    """

    def __init__(
        self,
        settings: ScrapeSettings,
        user_agents: UserAgentProvider,
        tag_sink: TagSink,
        *,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.user_agents = user_agents
        self.tag_sink = tag_sink
        self._sleep = sleep

    async def run(self, image_id: int, session: PageSession) -> TaskOutcome:
        existing = find_existing_artifact(
            image_id, self.settings.download_dir, self.settings.artifact_extensions
        )
        if existing is not None:
            log_line(f"Skipping existing file: {existing.name}")
            return TaskOutcome.SKIPPED_EXISTING

        label = f"wallpaper with ID {image_id}"

        async def _attempt(attempt_index: int) -> TaskOutcome:
            return await self._attempt(image_id, session, attempt_index)

        try:
            outcome = await run_with_retries(
                _attempt,
                label=label,
                max_retries=self.settings.max_retries,
                base_delay=self.settings.retry_base_delay_seconds,
                sleep=self._sleep,
                error_prefix="Error downloading",
            )
        except RetriesExhausted as exc:
            _scraper_event(
                "error",
                phase="download",
                image_id=image_id,
                error_code=exc.error_code,
                attempts=exc.attempts,
            )
            return TaskOutcome.FAILED
        return outcome

    async def _attempt(
        self, image_id: int, session: PageSession, attempt_index: int
    ) -> TaskOutcome:
        settings = self.settings

        await session.set_user_agent(self.user_agents.pick())

        # Retries wait for network idle to get past slow anti-bot pages.
        readiness = Readiness.CONTENT_LOADED if attempt_index == 0 else Readiness.NETWORK_IDLE
        await session.navigate(settings.page_url(image_id), readiness)

        title = await session.title()
        if settings.not_found_marker and settings.not_found_marker in (title or ""):
            log_line(f"Page with ID {image_id} not found (404 error)")
            return TaskOutcome.NOT_FOUND

        button = settings.download_button(image_id)
        await session.wait_for_element(button, settings.selector_timeout_seconds)

        tags = clean_tags(await session.extract_text(settings.tags_selector))
        self.tag_sink.record(image_id, tags)

        await session.click(button)
        log_line(f"Download initiated for wallpaper with ID {image_id}")

        await self._sleep(settings.download_delay_seconds)
        return TaskOutcome.DOWNLOADED


__all__ = ["DownloadTask", "TaskOutcome", "clean_tags"]
