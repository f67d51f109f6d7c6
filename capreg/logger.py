"""Process-wide logging setup for the CLI and the web service."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from capreg.config import Settings

_configured = False


def setup_logging(settings: Settings | None = None) -> None:
    """Configure the root logger once. Later calls are no-ops."""
    global _configured
    if _configured:
        return

    settings = settings or Settings.from_env()
    level = getattr(logging, settings.log_level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    # Avoid duplicate handlers when embedded in a host that configured logging
    if not root.handlers:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        if settings.log_file:
            log_dir = os.path.dirname(settings.log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            fh = RotatingFileHandler(settings.log_file, maxBytes=2 * 1024 * 1024, backupCount=3)
            fh.setLevel(level)
            fh.setFormatter(formatter)
            root.addHandler(fh)

    _configured = True
