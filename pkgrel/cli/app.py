from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from pkgrel import __version__
from pkgrel.core.config import Config, load_project_config
from pkgrel.core.errors import ErrorCode, ReleaseError
from pkgrel.core.result import Err
from pkgrel.github.http import RealHttpClient
from pkgrel.output.console import ConsoleProtocol, RichConsole, Style
from pkgrel.services.pipeline import ReleaseOptions, ReleasePipeline

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def exit_release(console: ConsoleProtocol, error: ReleaseError) -> NoReturn:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(ErrorCode.FAILURE))


def _work_dir(flag: Path | None, configured: str | None, srcdir: Path, suffix: str) -> Path:
    if flag is not None:
        return flag.expanduser().resolve()
    if configured:
        return (srcdir / Path(configured).expanduser()).resolve()
    return srcdir.parent / f"{srcdir.name}-{suffix}"


def build_options(
    *,
    config: Config,
    srcdir: Path,
    tmpdir: Path | None,
    webdir: Path | None,
    tag: str | None,
    repo: str | None,
    token: str | None,
    remote: str | None,
    push: bool,
    force: bool,
) -> ReleaseOptions:
    return ReleaseOptions(
        srcdir=srcdir,
        tmpdir=_work_dir(tmpdir, config.paths.tmpdir, srcdir, "release"),
        webdir=_work_dir(webdir, config.paths.webdir, srcdir, "web"),
        tag=tag,
        repository=repo,
        token=token,
        remote=remote or config.release.remote,
        push=push,
        force=force,
    )


@app.command()
def release(
    push: bool = typer.Option(
        False, "--push/--no-push", help="Push the website commit when done."
    ),
    force: bool = typer.Option(
        False, "--force/--no-force", help="Replace an existing GitHub release for the tag."
    ),
    srcdir: Path = typer.Option(Path("."), "--srcdir", help="Package source tree."),
    tmpdir: Path | None = typer.Option(
        None, "--tmpdir", help="Work directory (default: ../<src>-release)."
    ),
    webdir: Path | None = typer.Option(
        None, "--webdir", help="Website working tree (default: ../<src>-web)."
    ),
    tag: str | None = typer.Option(None, "--tag", help="Release tag (default: from metadata)."),
    repo: str | None = typer.Option(None, "--repo", help="GitHub repository OWNER/NAME."),
    token: str | None = typer.Option(None, "--token", help="GitHub API token."),
    remote: str | None = typer.Option(None, "--remote", help="Git remote for tag/website pushes."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Tag, package and publish a release, then update the website."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ErrorCode.OK))

    console = RichConsole()
    src = srcdir.expanduser().resolve()

    config_r = load_project_config(src)
    if isinstance(config_r, Err):
        exit_release(console, ReleaseError(kind="usage", message=config_r.error.message))

    options = build_options(
        config=config_r.value,
        srcdir=src,
        tmpdir=tmpdir,
        webdir=webdir,
        tag=tag,
        repo=repo,
        token=token,
        remote=remote,
        push=push,
        force=force,
    )
    pipeline = ReleasePipeline(
        options=options,
        config=config_r.value,
        console=console,
        http=RealHttpClient(user_agent=f"pkgrel/{__version__}"),
    )
    result = pipeline.run()
    if isinstance(result, Err):
        exit_release(console, result.error)

    summary = result.value
    console.success(
        f"released {summary.name} {summary.version} ({summary.tag}) on {summary.repository}"
    )
    for asset in summary.assets:
        console.print(f"  {asset}", Style.DIM)


def main() -> None:
    # click reports usage errors with exit code 2; every failure here is 1.
    try:
        app()
    except SystemExit as e:
        if e.code == 2:
            raise SystemExit(int(ErrorCode.FAILURE)) from None
        raise
