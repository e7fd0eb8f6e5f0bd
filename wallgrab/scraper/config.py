"""Configuration constants for the wallpaper scraper."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Tuple

DATA_DIR: Path = Path(os.getenv("WALLGRAB_DATA_DIR", "."))
DOWNLOAD_DIR: Path = Path(os.getenv("WALLGRAB_DOWNLOAD_DIR", str(DATA_DIR / "wallpapers")))
USER_AGENT_FILE: Path = Path(os.getenv("WALLGRAB_USER_AGENT_FILE", str(DATA_DIR / "user-agent.txt")))
LOG_FILE: Path = Path(os.getenv("WALLGRAB_LOG_FILE", str(DATA_DIR / "log.txt")))
TAGS_FILE: Path = Path(os.getenv("WALLGRAB_TAGS_FILE", str(DATA_DIR / "tags.txt")))

PAGE_URL_TEMPLATE: str = os.getenv(
    "WALLGRAB_PAGE_URL_TEMPLATE", "https://wall.alphacoders.com/big.php?i={image_id}"
)
DOWNLOAD_BUTTON_SELECTOR: str = "#wallpaper_{image_id}_download_button"
TAGS_SELECTOR: str = "#content-organization-container a"
NOT_FOUND_TITLE_MARKER: str = "404"
ARTIFACT_EXTENSIONS: Tuple[str, ...] = (".jpg", ".png", ".jpeg")

TAGS_MODES = ("append", "overwrite")
TIMESTAMP_STYLES = ("iso", "local")


def _optional_int(env_var: str) -> Optional[int]:
    raw = (os.getenv(env_var) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _parse_timeout_seconds(env_var: str, default: float, *, minimum: float = 1) -> float:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = float(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


START_ID: Optional[int] = _optional_int("WALLGRAB_START_ID")
END_ID: Optional[int] = _optional_int("WALLGRAB_END_ID")

# Number of long-lived tabs; also the batch size.
POOL_SIZE: int = int(os.getenv("WALLGRAB_POOL_SIZE", "6"))
BATCH_DELAY_SECONDS: float = float(os.getenv("WALLGRAB_BATCH_DELAY_SECONDS", "5.0"))
DOWNLOAD_DELAY_SECONDS: float = float(os.getenv("WALLGRAB_DOWNLOAD_DELAY_SECONDS", "1.0"))
# Retries after the first attempt; retry k waits RETRY_BASE_DELAY_SECONDS * k.
MAX_RETRIES: int = int(os.getenv("WALLGRAB_MAX_RETRIES", "2"))
RETRY_BASE_DELAY_SECONDS: float = float(os.getenv("WALLGRAB_RETRY_BASE_DELAY_SECONDS", "5.0"))

# Playwright timeouts (seconds)
NAV_TIMEOUT_SECONDS: float = _parse_timeout_seconds("WALLGRAB_NAV_TIMEOUT_SECONDS", 30)
SELECTOR_TIMEOUT_SECONDS: float = _parse_timeout_seconds("WALLGRAB_SELECTOR_TIMEOUT_SECONDS", 30)
# Upper bound on waiting for in-flight download saves before the browser closes.
DOWNLOAD_SETTLE_TIMEOUT_SECONDS: float = _parse_timeout_seconds(
    "WALLGRAB_DOWNLOAD_SETTLE_TIMEOUT_SECONDS", 120
)

HEADLESS: bool = os.getenv("WALLGRAB_HEADLESS", "true").strip().lower() not in {"0", "false", "no"}
BLOCK_IMAGES: bool = os.getenv("WALLGRAB_BLOCK_IMAGES", "true").strip().lower() not in {
    "0",
    "false",
    "no",
}

TAGS_MODE: str = os.getenv("WALLGRAB_TAGS_MODE", "append").strip().lower() or "append"
TIMESTAMP_STYLE: str = os.getenv("WALLGRAB_TIMESTAMP_STYLE", "iso").strip().lower() or "iso"

BROWSER_ARGS: Tuple[str, ...] = (
    "--start-maximized",
    "--disable-web-security",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--no-sandbox",
    "--disable-blink-features=AutomationControlled",
)
BLOCK_IMAGES_ARG = "--blink-settings=imagesEnabled=false"


@dataclass(frozen=True)
class ScrapeSettings:
    """Immutable snapshot of everything a run needs."""

    start_id: Optional[int] = None
    end_id: Optional[int] = None
    pool_size: int = 6
    batch_delay_seconds: float = 5.0
    download_delay_seconds: float = 1.0
    max_retries: int = 2
    retry_base_delay_seconds: float = 5.0
    download_dir: Path = Path("wallpapers")
    user_agent_file: Path = Path("user-agent.txt")
    log_file: Path = Path("log.txt")
    tags_file: Path = Path("tags.txt")
    tags_mode: str = "append"
    timestamp_style: str = "iso"
    page_url_template: str = "https://wall.alphacoders.com/big.php?i={image_id}"
    download_button_selector: str = "#wallpaper_{image_id}_download_button"
    tags_selector: str = "#content-organization-container a"
    not_found_marker: str = "404"
    artifact_extensions: Tuple[str, ...] = field(default=(".jpg", ".png", ".jpeg"))
    nav_timeout_seconds: float = 30
    selector_timeout_seconds: float = 30
    download_settle_timeout_seconds: float = 120
    headless: bool = True
    block_images: bool = True

    @classmethod
    def from_config(cls, **overrides: Any) -> "ScrapeSettings":
        """Build settings from the current module constants plus ``overrides``.

        Overrides set to ``None`` are ignored so argparse defaults can be passed
        straight through.
        """

        values: dict[str, Any] = {
            "start_id": START_ID,
            "end_id": END_ID,
            "pool_size": POOL_SIZE,
            "batch_delay_seconds": BATCH_DELAY_SECONDS,
            "download_delay_seconds": DOWNLOAD_DELAY_SECONDS,
            "max_retries": MAX_RETRIES,
            "retry_base_delay_seconds": RETRY_BASE_DELAY_SECONDS,
            "download_dir": DOWNLOAD_DIR,
            "user_agent_file": USER_AGENT_FILE,
            "log_file": LOG_FILE,
            "tags_file": TAGS_FILE,
            "tags_mode": TAGS_MODE,
            "timestamp_style": TIMESTAMP_STYLE,
            "page_url_template": PAGE_URL_TEMPLATE,
            "download_button_selector": DOWNLOAD_BUTTON_SELECTOR,
            "tags_selector": TAGS_SELECTOR,
            "not_found_marker": NOT_FOUND_TITLE_MARKER,
            "artifact_extensions": tuple(ARTIFACT_EXTENSIONS),
            "nav_timeout_seconds": NAV_TIMEOUT_SECONDS,
            "selector_timeout_seconds": SELECTOR_TIMEOUT_SECONDS,
            "download_settle_timeout_seconds": DOWNLOAD_SETTLE_TIMEOUT_SECONDS,
            "headless": HEADLESS,
            "block_images": BLOCK_IMAGES,
        }
        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown setting: {key}")
            if value is not None:
                values[key] = value

        for path_key in ("download_dir", "user_agent_file", "log_file", "tags_file"):
            values[path_key] = Path(values[path_key])
        return cls(**values)

    def page_url(self, image_id: int) -> str:
        return self.page_url_template.format(image_id=image_id)

    def download_button(self, image_id: int) -> str:
        return self.download_button_selector.format(image_id=image_id)


def browser_args(block_images: bool) -> list[str]:
    """Return Chromium launch flags for a run."""

    args = list(BROWSER_ARGS)
    if block_images:
        args.append(BLOCK_IMAGES_ARG)
    return args
