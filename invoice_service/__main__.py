"""Module entrypoint: queue worker plus HTTP API in one process."""

from __future__ import annotations

import sys

from .app import build_app
from .config import get_settings
from .errors import DependencyError
from .logging_config import setup_logging
from .server import run


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    try:
        app = build_app(settings)
    except DependencyError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc
    run(app)


if __name__ == "__main__":
    main()
