from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "CAREBOOK_HOME"
APP_ENV_DB = "CAREBOOK_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains carebook/, api/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for carebook.
    Override with CAREBOOK_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".carebook").resolve()


def config_dir() -> Path:
    """Bundled configuration directory (service_rules.yaml lives here)."""
    return project_root() / "config"


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical record DB path.

    Resolution order:
    1. CAREBOOK_DB env var (explicit override)
    2. ~/.carebook/data/carebook.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "carebook.db"
