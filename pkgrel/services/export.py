"""Clean source snapshot of the release tag.

The snapshot comes from ``git archive``, never from the working tree, so
uncommitted edits and ignored build products cannot leak into a release.
After export the tree is prepared for distribution: VCS metadata files are
removed, build files are generated, documentation is built and everything
is made world-readable.
"""

from __future__ import annotations

import os
import shutil
import stat
import tarfile
from dataclasses import dataclass
from pathlib import Path

from pkgrel.core.config import Config
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.git.repository import Repository
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.platform.process import run_silent
from pkgrel.services.docs import build_docs
from pkgrel.services.interpreter import InterpreterRunner

__all__ = ["Snapshot", "export_snapshot", "make_world_readable", "strip_vcs_files"]

_READ_ALL = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
_EXEC_ALL = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Exported release tree.

    Attributes:
        root: ``<tmpdir>/<basename>``.
        docs_built: True when the archival documentation marker file exists.
    """

    root: Path
    docs_built: bool


def strip_vcs_files(root: Path, names: tuple[str, ...]) -> list[Path]:
    """Delete files such as ``.gitignore`` anywhere below ``root``."""
    removed: list[Path] = []
    wanted = set(names)
    for p in sorted(root.rglob("*")):
        if p.name in wanted and (p.is_file() or p.is_symlink()):
            p.unlink()
            removed.append(p)
    return removed


def make_world_readable(root: Path) -> None:
    """Equivalent of ``chmod -R a+rX``."""
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        mode = current.stat().st_mode
        current.chmod(stat.S_IMODE(mode) | _READ_ALL | _EXEC_ALL)
        for name in filenames:
            p = current / name
            if p.is_symlink():
                continue
            mode = stat.S_IMODE(p.stat().st_mode)
            new_mode = mode | _READ_ALL
            if mode & _EXEC_ALL:
                new_mode |= _EXEC_ALL
            p.chmod(new_mode)
        dirnames.sort()


def _extract(tar_path: Path, dest: Path) -> Result[None, ReleaseError]:
    try:
        with tarfile.open(tar_path) as tf:
            tf.extractall(dest, filter="data")
    except (OSError, tarfile.TarError) as e:
        return Err(ReleaseError(kind="tool_failed", message=f"cannot unpack {tar_path}: {e}"))
    finally:
        tar_path.unlink(missing_ok=True)
    return Ok(None)


def _run_generate_script(
    root: Path, config: Config, console: ConsoleProtocol
) -> Result[None, ReleaseError]:
    script = root / config.export.generate_script
    if not script.is_file():
        return Ok(None)

    workdir = script.parent
    console.print(f"sh -e {config.export.generate_script}", Style.DIM)
    result = run_silent(["sh", "-e", script.name], cwd=workdir)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="tool_failed",
                message=f"{config.export.generate_script} failed (exit {result.error.returncode})",
            )
        )
    shutil.rmtree(workdir / config.export.generate_cache, ignore_errors=True)
    return Ok(None)


def export_snapshot(
    *,
    repo: Repository,
    tag: str,
    basename: str,
    tmpdir: Path,
    config: Config,
    interpreter: InterpreterRunner,
    console: ConsoleProtocol,
) -> Result[Snapshot, ReleaseError]:
    root = tmpdir / basename
    if root.exists():
        shutil.rmtree(root)
    tmpdir.mkdir(parents=True, exist_ok=True)

    tar_path = tmpdir / f"{basename}.export.tar"
    console.print(f"git archive --prefix={basename}/ {tag}", Style.DIM)
    archived = repo.archive(tag, prefix=f"{basename}/", output=tar_path)
    if isinstance(archived, Err):
        return Err(
            ReleaseError(
                kind="tool_failed",
                message=f"cannot export {tag}",
                hint=archived.error.message,
            )
        )

    extracted = _extract(tar_path, tmpdir)
    if isinstance(extracted, Err):
        return extracted
    if not root.is_dir():
        return Err(ReleaseError(kind="tool_failed", message=f"export produced no {root}"))

    strip_vcs_files(root, config.export.strip)

    generated = _run_generate_script(root, config, console)
    if isinstance(generated, Err):
        return generated

    docs_out = root / config.docs.output
    built = build_docs(
        root=root,
        output=docs_out,
        docs=config.docs,
        interp=config.interpreter,
        interpreter=interpreter,
        console=console,
    )
    if isinstance(built, Err):
        return built

    make_world_readable(root)

    return Ok(Snapshot(root=root, docs_built=(docs_out / config.docs.marker).is_file()))
