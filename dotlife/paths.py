from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

APP_DIR_NAME = "DotLife"


def data_directory(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get("DOTLIFE_HOME")
    if override:
        return Path(override).expanduser()

    local_appdata = env.get("LOCALAPPDATA")
    if os.name == "nt" and local_appdata:
        return Path(local_appdata) / APP_DIR_NAME

    xdg_data = env.get("XDG_DATA_HOME")
    base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME.lower()


def database_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / "dotlife.sqlite3"


def photos_directory(base: Path | None = None) -> Path:
    return (base or data_directory()) / "photos"


def thumbnails_directory(base: Path | None = None) -> Path:
    return (base or data_directory()) / "thumbnails"


def ensure_directories(base: Path | None = None) -> None:
    photos_directory(base).mkdir(parents=True, exist_ok=True)
    thumbnails_directory(base).mkdir(parents=True, exist_ok=True)
