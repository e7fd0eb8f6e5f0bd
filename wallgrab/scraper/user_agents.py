"""User-agent rotation backed by a newline-delimited text file."""
from __future__ import annotations

import random
from pathlib import Path
from typing import List, Optional, Sequence

from .error_codes import ErrorCode
from .utils import log_line


class UserAgentError(Exception):
    def __init__(self, message: str, *, error_code: str = ErrorCode.NO_USER_AGENTS) -> None:
        super().__init__(message)
        self.error_code = error_code


def parse_user_agents(text: str) -> List[str]:
    """Return the non-blank, trimmed lines of ``text``."""

    return [line.strip() for line in text.splitlines() if line.strip()]


class UserAgentProvider:
    """Pick a uniformly random user agent from a fixed list."""

    def __init__(self, agents: Sequence[str], *, rng: Optional[random.Random] = None) -> None:
        self._agents: List[str] = [a.strip() for a in agents if a and a.strip()]
        self._rng = rng or random.Random()

    @classmethod
    def from_file(cls, path: Path, *, rng: Optional[random.Random] = None) -> "UserAgentProvider":
        """Load agents from ``path``; a missing or unreadable file is fatal."""

        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise UserAgentError(f"Unable to read user-agent file {path}: {exc}") from exc

        provider = cls(parse_user_agents(text), rng=rng)
        log_line(f"Loaded {len(provider)} user agents from {path}")
        return provider

    def __len__(self) -> int:
        return len(self._agents)

    @property
    def agents(self) -> List[str]:
        return list(self._agents)

    def pick(self) -> str:
        if not self._agents:
            raise UserAgentError("No user agents available to pick from")
        return self._rng.choice(self._agents)


__all__ = ["UserAgentError", "UserAgentProvider", "parse_user_agents"]
