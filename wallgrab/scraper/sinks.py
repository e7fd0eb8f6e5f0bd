from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .utils import log_line, short_error_message


def format_tag_line(image_id: int, tags: Iterable[str]) -> str:
    return f"{image_id}: {', '.join(tags)}\n"


class TagSink:
    """Append-only tag file, one ``<id>: tag, tag`` line per scraped ID.

    In ``overwrite`` mode the file is truncated once by :meth:`prepare` and
    then appended to for the rest of the run. Write failures are logged and
    never raised.
    """

    def __init__(self, path: Path, mode: str = "append") -> None:
        self.path = Path(path)
        self.mode = mode

    def prepare(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.mode == "overwrite":
                self.path.write_text("", encoding="utf-8")
            else:
                self.path.touch(exist_ok=True)
        except OSError as exc:
            log_line(f"[TAGS][WARN] Unable to prepare {self.path}: {short_error_message(exc)}")

    def record(self, image_id: int, tags: Iterable[str]) -> bool:
        line = format_tag_line(image_id, tags)
        try:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line)
            return True
        except OSError as exc:
            log_line(
                f"[TAGS][WARN] Unable to write tags for ID {image_id} to {self.path}: "
                f"{short_error_message(exc)}"
            )
            return False


__all__ = ["TagSink", "format_tag_line"]
