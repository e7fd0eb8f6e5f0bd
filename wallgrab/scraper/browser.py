"""Playwright worker slots.

Each slot is one long-lived tab in a shared incognito context. The scraper
only talks to tabs through :class:`PageSession`, so tests can swap in a fake
without launching Chromium.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, List, Optional, Protocol, Set

from playwright.async_api import (
    BrowserContext,
    CDPSession,
    Download,
    Error as PWError,
    Page,
    TimeoutError as PWTimeout,
    async_playwright,
)

from . import config
from .config import ScrapeSettings
from .error_codes import ErrorCode
from .logging_utils import _scraper_event
from .utils import ensure_dirs, log_line, short_error_message

STEALTH_INIT_SCRIPT = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"


class Readiness(str, Enum):
    CONTENT_LOADED = "domcontentloaded"
    NETWORK_IDLE = "networkidle"


class BrowserError(Exception):
    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class PageSession(Protocol):
    async def navigate(self, url: str, readiness: Readiness) -> None: ...

    async def title(self) -> str: ...

    async def wait_for_element(self, selector: str, timeout_seconds: float) -> None: ...

    async def extract_text(self, selector: str) -> List[str]: ...

    async def click(self, selector: str) -> None: ...

    async def set_user_agent(self, user_agent: str) -> None: ...


def _translate(exc: PWError, action: str) -> BrowserError:
    if isinstance(exc, PWTimeout):
        return BrowserError(ErrorCode.TIMEOUT, f"{action} timed out: {short_error_message(exc)}")
    return BrowserError(ErrorCode.BROWSER, f"{action} failed: {short_error_message(exc)}")


class PlaywrightPageSession:
    """:class:`PageSession` over a Playwright async ``Page``."""

    def __init__(self, page: Page, *, nav_timeout_seconds: float) -> None:
        self._page = page
        self._nav_timeout_ms = int(nav_timeout_seconds * 1000)
        self._cdp: Optional[CDPSession] = None

    async def navigate(self, url: str, readiness: Readiness) -> None:
        try:
            await self._page.goto(
                url,
                wait_until=Readiness(readiness).value,
                timeout=self._nav_timeout_ms,
            )
        except PWError as exc:
            raise _translate(exc, f"goto({url!r})") from exc

    async def title(self) -> str:
        try:
            return await self._page.title()
        except PWError as exc:
            raise _translate(exc, "title") from exc

    async def wait_for_element(self, selector: str, timeout_seconds: float) -> None:
        try:
            await self._page.wait_for_selector(
                selector, state="visible", timeout=int(timeout_seconds * 1000)
            )
        except PWError as exc:
            raise _translate(exc, f"wait_for_selector({selector!r})") from exc

    async def extract_text(self, selector: str) -> List[str]:
        try:
            values = await self._page.eval_on_selector_all(
                selector, "els => els.map(el => el.textContent || '')"
            )
        except PWError as exc:
            raise _translate(exc, f"extract({selector!r})") from exc
        return [str(v) for v in values or [] if v is not None]

    async def click(self, selector: str) -> None:
        # DOM click so overlays and actionability checks cannot block the trigger.
        try:
            await self._page.eval_on_selector(selector, "el => el.click()")
        except PWError as exc:
            raise _translate(exc, f"click({selector!r})") from exc

    async def set_user_agent(self, user_agent: str) -> None:
        # Overrides both the request header and navigator.userAgent for this tab only.
        try:
            if self._cdp is None:
                self._cdp = await self._page.context.new_cdp_session(self._page)
            await self._cdp.send("Network.setUserAgentOverride", {"userAgent": user_agent})
        except PWError as exc:
            raise _translate(exc, "set_user_agent") from exc


class DownloadSaver:
    """Persist browser-initiated downloads into ``download_dir``.

    Saves run as background tasks; :meth:`drain` waits for them before the
    browser is closed.
    """

    def __init__(self, download_dir: Path) -> None:
        self.download_dir = Path(download_dir)
        self._pending: Set[asyncio.Task] = set()

    def attach(self, context: BrowserContext) -> None:
        context.on("page", lambda page: page.on("download", self.on_download))

    def on_download(self, download: Download) -> None:
        task = asyncio.ensure_future(self._save(download))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _save(self, download: Download) -> Optional[Path]:
        try:
            name = download.suggested_filename
        except Exception:  # noqa: BLE001
            name = "unknown"
        target = self.download_dir / Path(str(name)).name
        try:
            await download.save_as(str(target))
        except PWError as exc:
            log_line(f"[DOWNLOAD][ERROR] Saving {name} failed: {short_error_message(exc)}")
            _scraper_event("error", phase="download", filename=str(name), error=str(exc))
            return None
        log_line(f"Saved download -> {target}")
        return target

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self, timeout_seconds: float) -> None:
        if not self._pending:
            return
        log_line(f"Waiting for {len(self._pending)} download(s) to finish saving...")
        _done, still_pending = await asyncio.wait(set(self._pending), timeout=timeout_seconds)
        if still_pending:
            _scraper_event(
                "state",
                phase="download",
                kind="settle_timeout",
                abandoned=len(still_pending),
                timeout_seconds=timeout_seconds,
            )
            for task in still_pending:
                task.cancel()


@asynccontextmanager
async def open_browser_slots(settings: ScrapeSettings) -> AsyncIterator[List[PageSession]]:
    """Launch Chromium and yield ``settings.pool_size`` page sessions.

    The browser is closed exactly once when the block exits, after pending
    download saves have had up to ``download_settle_timeout_seconds`` to
    finish.
    """

    ensure_dirs(settings.download_dir)
    saver = DownloadSaver(settings.download_dir)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=settings.headless,
            args=config.browser_args(settings.block_images),
        )
        try:
            context = await browser.new_context(
                accept_downloads=True,
                locale="en-US",
                no_viewport=True,
            )
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            saver.attach(context)

            pages = [await context.new_page() for _ in range(settings.pool_size)]
            _scraper_event(
                "state",
                phase="browser",
                kind="slots_opened",
                pool_size=len(pages),
                headless=settings.headless,
            )
            yield [
                PlaywrightPageSession(page, nav_timeout_seconds=settings.nav_timeout_seconds)
                for page in pages
            ]
            await saver.drain(settings.download_settle_timeout_seconds)
        finally:
            await browser.close()
            log_line("Browser closed.")


__all__ = [
    "BrowserError",
    "DownloadSaver",
    "PageSession",
    "PlaywrightPageSession",
    "Readiness",
    "open_browser_slots",
]
