from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from tests.fake_browser import FakeSession, SleepRecorder, fake_slot_opener
from wallgrab.scraper import config, run, utils
from wallgrab.scraper.user_agents import UserAgentError


def test_run_scrape_sweeps_range_and_closes_once(make_settings) -> None:  # noqa: ANN001
    settings = make_settings(start_id=100, end_id=105, pool_size=3)
    settings.user_agent_file.write_text("UA-1\n\nUA-2\n", encoding="utf-8")
    sessions = [FakeSession(i, titles={104: "404 Not Found"}) for i in range(3)]
    closed: list[bool] = []

    batches = asyncio.run(
        run.run_scrape(
            settings,
            open_slots=fake_slot_opener(sessions, closed),
            sleep=SleepRecorder(),
        )
    )

    assert batches == 2
    assert closed == [True]
    tags = settings.tags_file.read_text(encoding="utf-8").splitlines()
    assert sorted(int(line.split(":")[0]) for line in tags) == [100, 101, 102, 103, 105]
    log_text = settings.log_file.read_text(encoding="utf-8")
    assert "Page with ID 104 not found (404 error)" in log_text


def test_run_scrape_closes_browser_when_all_tasks_fail(make_settings) -> None:  # noqa: ANN001
    settings = make_settings(start_id=1, end_id=2, pool_size=2, max_retries=1)
    settings.user_agent_file.write_text("UA\n", encoding="utf-8")
    sessions = [FakeSession(0, failures={1: 9}), FakeSession(1, failures={2: 9})]
    closed: list[bool] = []

    asyncio.run(
        run.run_scrape(settings, open_slots=fake_slot_opener(sessions, closed), sleep=SleepRecorder())
    )

    assert closed == [True]
    assert "Max retry attempts reached for wallpaper with ID 2" in settings.log_file.read_text(
        encoding="utf-8"
    )


def test_missing_user_agent_file_aborts_before_browser(make_settings) -> None:  # noqa: ANN001
    settings = make_settings()
    closed: list[bool] = []

    with pytest.raises(UserAgentError):
        asyncio.run(
            run.run_scrape(settings, open_slots=fake_slot_opener([], closed), sleep=SleepRecorder())
        )

    assert closed == []


def test_empty_user_agent_file_aborts(make_settings) -> None:  # noqa: ANN001
    settings = make_settings()
    settings.user_agent_file.write_text("\n  \n", encoding="utf-8")

    with pytest.raises(UserAgentError):
        asyncio.run(
            run.run_scrape(settings, open_slots=fake_slot_opener([], []), sleep=SleepRecorder())
        )


def test_overwrite_tags_mode(make_settings) -> None:  # noqa: ANN001
    settings = make_settings(start_id=7, end_id=7, pool_size=1, tags_mode="overwrite")
    settings.user_agent_file.write_text("UA\n", encoding="utf-8")
    settings.tags_file.write_text("1: stale\n", encoding="utf-8")

    asyncio.run(
        run.run_scrape(
            settings,
            open_slots=fake_slot_opener([FakeSession(0, tags=["Blue"])], []),
            sleep=SleepRecorder(),
        )
    )

    assert settings.tags_file.read_text(encoding="utf-8") == "7: Blue\n"


def test_settings_from_args(tmp_path: Path) -> None:
    args = run.build_parser().parse_args(
        [
            "--start",
            "10",
            "--end",
            "20",
            "--pool-size",
            "4",
            "--tags-file",
            str(tmp_path / "t.txt"),
            "--timestamp-style",
            "local",
            "--headed",
        ]
    )

    settings = run.settings_from_args(args)

    assert (settings.start_id, settings.end_id, settings.pool_size) == (10, 20, 4)
    assert settings.tags_file == tmp_path / "t.txt"
    assert settings.timestamp_style == "local"
    assert settings.headless is False


def test_cli_check_reports_failures(tmp_path: Path) -> None:
    code = run._cli_entrypoint(
        [
            "--check",
            "--start",
            "1",
            "--end",
            "2",
            "--user-agents",
            str(tmp_path / "missing.txt"),
            "--download-dir",
            str(tmp_path / "dl"),
        ]
    )
    assert code == 1


def test_cli_invalid_range_exits_non_zero(tmp_path: Path) -> None:
    code = run._cli_entrypoint(
        [
            "--start",
            "5",
            "--end",
            "1",
            "--log-file",
            str(tmp_path / "log.txt"),
        ]
    )
    assert code == 2


@pytest.fixture
def unconfigured_logger(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    default_log = tmp_path / "default-log.txt"
    monkeypatch.setattr(config, "LOG_FILE", default_log)
    monkeypatch.setattr(utils, "_LOGGER_INITIALISED", False)
    return default_log


def test_cli_config_errors_go_to_chosen_log_file(unconfigured_logger: Path, tmp_path: Path) -> None:
    chosen = tmp_path / "run" / "chosen.txt"

    code = run._cli_entrypoint(["--start", "5", "--end", "1", "--log-file", str(chosen)])

    assert code == 2
    text = chosen.read_text(encoding="utf-8")
    assert "[CONFIG] Start ID 5 is greater than end ID 1." in text
    assert "[RUN] Aborted: Start ID 5 is greater than end ID 1." in text
    assert not unconfigured_logger.exists()


def test_cli_check_lines_go_to_chosen_log_file(unconfigured_logger: Path, tmp_path: Path) -> None:
    chosen = tmp_path / "check.txt"

    code = run._cli_entrypoint(
        [
            "--check",
            "--user-agents",
            str(tmp_path / "missing.txt"),
            "--download-dir",
            str(tmp_path / "dl"),
            "--log-file",
            str(chosen),
        ]
    )

    assert code == 1
    assert "[CHECK] user_agents: FAILED" in chosen.read_text(encoding="utf-8")
    assert not unconfigured_logger.exists()
