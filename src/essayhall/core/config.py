from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from essayhall.core.errors import ConfigurationError


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    data_dir: Path
    db_path: Path
    archive_source: str


DEFAULT_DATA_DIRNAME = ".essayhall"
DEFAULT_ARCHIVE_FILENAME = "archive.csv"


def load_paths(project_root: Path | None = None) -> AppPaths:
    root = (project_root or Path.cwd()).expanduser().resolve()

    home_raw = os.getenv("ESSAYHALL_HOME")
    if home_raw:
        data_dir = Path(home_raw).expanduser().resolve()
        if data_dir.exists() and not data_dir.is_dir():
            raise ConfigurationError(f"ESSAYHALL_HOME is not a directory: {data_dir}")
    else:
        data_dir = root / DEFAULT_DATA_DIRNAME

    source_raw = os.getenv("ESSAYHALL_ARCHIVE_SOURCE")
    archive_source = source_raw.strip() if source_raw and source_raw.strip() else str(root / DEFAULT_ARCHIVE_FILENAME)

    return AppPaths(
        project_root=root,
        data_dir=data_dir,
        db_path=data_dir / "essayhall.db",
        archive_source=archive_source,
    )
