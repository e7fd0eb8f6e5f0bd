from pathlib import Path

import pytest

from wallgrab.scraper import sinks
from wallgrab.scraper.sinks import TagSink, format_tag_line


def test_format_tag_line() -> None:
    assert format_tag_line(12, ["a", "b c"]) == "12: a, b c\n"
    assert format_tag_line(12, []) == "12: \n"


def test_append_mode_keeps_previous_runs(tmp_path: Path) -> None:
    path = tmp_path / "tags.txt"
    path.write_text("1: old\n", encoding="utf-8")
    sink = TagSink(path, "append")

    sink.prepare()
    sink.record(2, ["new"])

    assert path.read_text(encoding="utf-8") == "1: old\n2: new\n"


def test_overwrite_mode_truncates_once(tmp_path: Path) -> None:
    path = tmp_path / "tags.txt"
    path.write_text("1: old\n", encoding="utf-8")
    sink = TagSink(path, "overwrite")

    sink.prepare()
    sink.record(2, ["x"])
    sink.record(3, ["y"])

    assert path.read_text(encoding="utf-8") == "2: x\n3: y\n"


def test_write_failure_is_best_effort(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lines: list[str] = []
    monkeypatch.setattr(sinks, "log_line", lambda msg: lines.append(msg))
    sink = TagSink(tmp_path / "missing-dir" / "tags.txt")

    assert sink.record(5, ["a"]) is False
    assert lines and lines[0].startswith("[TAGS][WARN]")
