from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from wallgrab.scraper import utils
from wallgrab.scraper.config import ScrapeSettings


@pytest.fixture(autouse=True)
def _temp_log(tmp_path: Path) -> Path:
    log_path = tmp_path / "log.txt"
    utils.configure_logger(log_path)
    return log_path


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., ScrapeSettings]:
    def _make(**overrides: Any) -> ScrapeSettings:
        values: dict[str, Any] = {
            "start_id": 100,
            "end_id": 105,
            "pool_size": 3,
            "batch_delay_seconds": 5.0,
            "download_delay_seconds": 1.0,
            "max_retries": 2,
            "retry_base_delay_seconds": 5.0,
            "download_dir": tmp_path / "wallpapers",
            "user_agent_file": tmp_path / "user-agent.txt",
            "log_file": tmp_path / "log.txt",
            "tags_file": tmp_path / "tags.txt",
            "page_url_template": "https://example.test/big.php?i={image_id}",
        }
        values.update(overrides)
        return ScrapeSettings(**values)

    return _make
