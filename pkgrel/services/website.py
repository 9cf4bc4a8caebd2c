"""Companion website update.

The website is a separate working tree (a checkout of the publishing
branch). A release copies README and DESCRIPTION from the snapshot,
replaces the documentation and asset directories, runs the site script and
commits. Pushing is opt-in.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from pkgrel.core.config import Config
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.git.repository import Repository
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.services.export import Snapshot
from pkgrel.services.interpreter import InterpreterRunner, quote_string
from pkgrel.services.metadata import PackageMetadata

__all__ = ["check_website", "update_website"]


def check_website(webdir: Path, config: Config) -> Result[Repository, ReleaseError]:
    """Fail early, before any tag or release exists, if the website is unusable."""
    repo = Repository(webdir)
    if not webdir.is_dir() or not repo.exists():
        return Err(
            ReleaseError(
                kind="precondition",
                message=f"website directory is not a git working tree: {webdir}",
                hint="clone the publishing branch there or pass --webdir",
            )
        )
    if not (webdir / config.website.site_script).is_file():
        return Err(
            ReleaseError(
                kind="precondition",
                message=f"site script {config.website.site_script} missing in {webdir}",
            )
        )
    return Ok(repo)


def _replace_dir(src: Path, dest: Path, console: ConsoleProtocol) -> None:
    console.print(f"{src} -> {dest}", Style.DIM)
    if dest.exists():
        shutil.rmtree(dest)
    shutil.copytree(src, dest)


def _copy_files(snapshot: Snapshot, webdir: Path, config: Config) -> Result[None, ReleaseError]:
    candidates = [snapshot.root / name for name in config.website.readme]
    readme = next((p for p in candidates if p.is_file()), None)
    if readme is None:
        return Err(
            ReleaseError(
                kind="precondition",
                message=f"no README in export ({', '.join(config.website.readme)})",
            )
        )
    try:
        shutil.copy2(readme, webdir / readme.name)
        description = config.package.description
        shutil.copy2(snapshot.root / description, webdir / description)
    except OSError as e:
        return Err(ReleaseError(kind="tool_failed", message=f"cannot copy into {webdir}: {e}"))
    return Ok(None)


def update_website(
    *,
    repo: Repository,
    snapshot: Snapshot,
    metadata: PackageMetadata,
    config: Config,
    interpreter: InterpreterRunner,
    push: bool,
    remote: str,
    console: ConsoleProtocol,
) -> Result[bool, ReleaseError]:
    """Update, commit and optionally push the website.

    Returns:
        Ok(True) if a commit was made, Ok(False) if nothing changed.
    """
    webdir = repo.path
    console.print("git pull --ff-only", Style.DIM)
    pulled = repo.pull_ff()
    if isinstance(pulled, Err):
        return Err(
            ReleaseError(
                kind="tool_failed",
                message=f"cannot fast-forward website in {webdir}",
                hint=pulled.error.message,
            )
        )

    copied = _copy_files(snapshot, webdir, config)
    if isinstance(copied, Err):
        return copied

    if snapshot.docs_built:
        _replace_dir(snapshot.root / config.docs.output, webdir / config.website.docs_dir, console)
    assets = snapshot.root / config.website.assets_dir
    if assets.is_dir():
        _replace_dir(assets, webdir / config.website.assets_dir, console)

    code = f"run({quote_string(config.website.site_script)});"
    ran = interpreter.eval(code, cwd=webdir, what="website update")
    if isinstance(ran, Err):
        return ran

    added = repo.add_all()
    if isinstance(added, Err):
        return Err(ReleaseError(kind="tool_failed", message=added.error.message))

    clean = repo.is_clean()
    if isinstance(clean, Err):
        return Err(ReleaseError(kind="tool_failed", message=clean.error.message))
    if clean.value:
        console.warning("website unchanged, nothing to commit")
        return Ok(False)

    message = config.website.commit_message.format(name=metadata.name, version=metadata.version)
    console.print(f"git commit -m '{message}'", Style.DIM)
    committed = repo.commit(message)
    if isinstance(committed, Err):
        return Err(
            ReleaseError(
                kind="tool_failed",
                message="website commit failed",
                hint=committed.error.message,
            )
        )

    if push:
        console.print(f"git push {remote} HEAD", Style.DIM)
        pushed = repo.push(remote, "HEAD")
        if isinstance(pushed, Err):
            return Err(
                ReleaseError(
                    kind="tool_failed",
                    message=f"cannot push website to {remote}",
                    hint=pushed.error.message,
                )
            )
    else:
        console.info(f"website committed but not pushed; run 'git push' in {webdir}")

    return Ok(True)
