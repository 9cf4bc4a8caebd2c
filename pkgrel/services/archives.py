"""Source archive creation.

Each archive contains the snapshot directory itself, so unpacking
``pkg-1.2.3.tar.gz`` yields ``pkg-1.2.3/``.
"""

from __future__ import annotations

import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import Literal
from zipfile import ZIP_DEFLATED, ZipFile

from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result

__all__ = [
    "ARCHIVE_FORMATS",
    "ArchiveFormat",
    "SUPPORTED_SUFFIXES",
    "build_archive",
    "content_type_for",
]


@dataclass(frozen=True, slots=True)
class ArchiveFormat:
    suffix: str
    kind: Literal["tar", "zip"]
    content_type: str
    tar_mode: Literal["w:gz", "w:bz2"] | None = None


ARCHIVE_FORMATS: dict[str, ArchiveFormat] = {
    ".tar.gz": ArchiveFormat(".tar.gz", "tar", "application/gzip", "w:gz"),
    ".tar.bz2": ArchiveFormat(".tar.bz2", "tar", "application/x-bzip2", "w:bz2"),
    ".zip": ArchiveFormat(".zip", "zip", "application/zip"),
}

SUPPORTED_SUFFIXES: tuple[str, ...] = tuple(ARCHIVE_FORMATS)


def content_type_for(suffix: str) -> str | None:
    fmt = ARCHIVE_FORMATS.get(suffix)
    return fmt.content_type if fmt else None


def _collect(root: Path) -> list[tuple[Path, str]]:
    base = root.parent
    entries: list[tuple[Path, str]] = [(root, root.name)]
    for p in sorted(root.rglob("*")):
        entries.append((p, p.relative_to(base).as_posix()))
    return entries


def _write_tar(archive: Path, snapshot: Path, mode: Literal["w:gz", "w:bz2"]) -> None:
    with tarfile.open(archive, mode) as tf:
        for src, arc in _collect(snapshot):
            tf.add(src, arcname=arc, recursive=False)


def _write_zip(archive: Path, snapshot: Path) -> None:
    # Files exported from git may carry timestamps the ZIP format cannot
    # represent (before 1980).
    with ZipFile(archive, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
        for src, arc in _collect(snapshot):
            if src.is_dir():
                zf.write(src, arcname=arc + "/")
            else:
                zf.write(src, arcname=arc)


def build_archive(
    *,
    snapshot: Path,
    out_dir: Path,
    basename: str,
    suffix: str,
) -> Result[Path | None, ReleaseError]:
    """Pack ``snapshot`` as ``<out_dir>/<basename><suffix>``.

    Returns:
        Ok(path) once the file exists, Ok(None) for an unsupported suffix,
        Err when writing fails or the file is missing afterwards.
    """
    fmt = ARCHIVE_FORMATS.get(suffix)
    if fmt is None:
        return Ok(None)

    archive = out_dir / f"{basename}{suffix}"
    archive.unlink(missing_ok=True)
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        if fmt.tar_mode is not None:
            _write_tar(archive, snapshot, fmt.tar_mode)
        else:
            _write_zip(archive, snapshot)
    except (OSError, tarfile.TarError) as e:
        return Err(ReleaseError(kind="tool_failed", message=f"cannot write {archive.name}: {e}"))

    if not archive.is_file():
        return Err(ReleaseError(kind="tool_failed", message=f"archive not created: {archive}"))
    return Ok(archive)
