"""Zip archives of collected target resources."""

from __future__ import annotations

import logging
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = "zip"


def archive_name(artifact_id: str, version: str, target: str) -> str:
    """Deterministic archive file name: <artifactId>-<version>-<target>.zip."""
    return f"{artifact_id}-{version}-{target}.{ARCHIVE_EXTENSION}"


def create_archive(source_dir: Path, archive_path: Path) -> Path:
    """Zip every file below source_dir into archive_path.

    Entries are written in sorted order with paths relative to source_dir.

    Raises:
        FileNotFoundError: If source_dir does not exist.
    """
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Archive source directory not found: {source_dir}")

    archive_path.parent.mkdir(parents=True, exist_ok=True)
    with ZipFile(archive_path, "w", compression=ZIP_DEFLATED) as archive:
        for path in sorted(source_dir.rglob("*")):
            if path.is_file():
                archive.write(path, path.relative_to(source_dir).as_posix())

    logger.info("Created archive %s", archive_path)
    return archive_path
