from __future__ import annotations

import sys

from wallgrab.scraper.run import _cli_entrypoint


def main() -> None:
    sys.exit(_cli_entrypoint())


if __name__ == "__main__":
    main()
