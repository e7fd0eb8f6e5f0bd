from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional


def candidate_paths(image_id: int, directory: Path, extensions: Iterable[str]) -> list[Path]:
    """Return the filenames an artifact for ``image_id`` may be stored under."""

    directory = Path(directory)
    return [directory / f"{image_id}{ext}" for ext in extensions]


def find_existing_artifact(
    image_id: int, directory: Path, extensions: Iterable[str]
) -> Optional[Path]:
    """Return the first non-empty artifact for ``image_id`` in ``directory``.

    Zero-byte files are ignored so an interrupted download does not block a
    later attempt.
    """

    for path in candidate_paths(image_id, directory, extensions):
        try:
            if path.is_file() and path.stat().st_size > 0:
                return path
        except OSError:
            continue
    return None


__all__ = ["candidate_paths", "find_existing_artifact"]
