"""Runtime configuration, read from the environment.

- ``CAPREG_WISHLIST``: path to wishlist.json (default ``./wishlist.json``)
- ``CAPREG_CATALOG``: path to catalog.json (default ``./catalog.json``)
- ``CAPREG_HOME``: state directory for the audit trail (default ``~/.capreg``)
- ``LOG_LEVEL`` / ``LOG_FILE``: see ``capreg.logger``
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Settings:
    wishlist_path: Path
    catalog_path: Path
    home: Path
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def audit_dir(self) -> Path:
        return self.home / "audit_logs"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            wishlist_path=Path(os.getenv("CAPREG_WISHLIST", "wishlist.json")),
            catalog_path=Path(os.getenv("CAPREG_CATALOG", "catalog.json")),
            home=Path(os.getenv("CAPREG_HOME", str(Path.home() / ".capreg"))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE") or None,
        )
