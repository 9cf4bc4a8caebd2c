"""The release pipeline.

Steps run strictly in order and the first failure ends the run:

    metadata -> tag checks -> docs -> tag -> export -> validate
             -> publish -> website

Everything that can be checked without side effects (metadata, repository,
token, website tree, tag consistency) is checked before the first tag is
created or anything is sent to GitHub.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pkgrel.core.config import Config
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.git.repository import Repository
from pkgrel.github.http import HttpClient
from pkgrel.github.releases import ReleasesApi
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.services.docs import build_docs
from pkgrel.services.export import export_snapshot
from pkgrel.services.interpreter import LOG_FILENAME, Interpreter
from pkgrel.services.metadata import extract_metadata
from pkgrel.services.publish import create_release, upload_archives
from pkgrel.services.tagging import ensure_clean, ensure_release_tag, resolve_tag
from pkgrel.services.token import resolve_token
from pkgrel.services.validate import validate_description
from pkgrel.services.website import check_website, update_website

__all__ = ["ReleaseOptions", "ReleasePipeline", "ReleaseSummary"]


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """Resolved command-line settings (directories are absolute)."""

    srcdir: Path
    tmpdir: Path
    webdir: Path
    tag: str | None = None
    repository: str | None = None
    token: str | None = None
    remote: str = "origin"
    push: bool = False
    force: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseSummary:
    name: str
    version: str
    tag: str
    repository: str
    release_id: int
    assets: tuple[str, ...]
    website_committed: bool


@dataclass
class ReleasePipeline:
    options: ReleaseOptions
    config: Config
    console: ConsoleProtocol
    http: HttpClient

    def run(self) -> Result[ReleaseSummary, ReleaseError]:
        opts = self.options
        cfg = self.config
        console = self.console

        src = Repository(opts.srcdir)
        if not src.exists():
            return Err(
                ReleaseError(
                    kind="precondition",
                    message=f"source directory is not a git working tree: {opts.srcdir}",
                )
            )

        opts.tmpdir.mkdir(parents=True, exist_ok=True)
        interpreter = Interpreter(cfg.interpreter, opts.tmpdir / LOG_FILENAME)

        console.header("Reading package metadata")
        meta_r = extract_metadata(
            srcdir=opts.srcdir,
            description=cfg.package.description,
            interpreter=interpreter,
        )
        if isinstance(meta_r, Err):
            return meta_r
        meta = meta_r.value
        console.print(f"{meta.name} {meta.version} ({', '.join(meta.archive_formats)})", Style.DIM)

        repository = opts.repository or meta.repository
        if not repository:
            return Err(
                ReleaseError(
                    kind="usage",
                    message="GitHub repository unknown",
                    hint="declare a GitHub download URL in the description or pass --repo",
                )
            )

        token_r = resolve_token(explicit=opts.token, repo=src, github=cfg.github)
        if isinstance(token_r, Err):
            return token_r

        web_r = check_website(opts.webdir, cfg)
        if isinstance(web_r, Err):
            return web_r

        console.header("Checking release tag")
        clean = ensure_clean(src, when="before release")
        if isinstance(clean, Err):
            return clean
        tag_r = resolve_tag(explicit=opts.tag, metadata=meta)
        if isinstance(tag_r, Err):
            return tag_r
        tag = tag_r.value

        console.header("Building documentation")
        docs_r = build_docs(
            root=opts.srcdir,
            output=opts.tmpdir / "doc-check",
            docs=cfg.docs,
            interp=cfg.interpreter,
            interpreter=interpreter,
            console=console,
        )
        if isinstance(docs_r, Err):
            return docs_r
        clean = ensure_clean(src, when="after building documentation")
        if isinstance(clean, Err):
            return clean

        console.header(f"Tagging {tag}")
        commit_r = ensure_release_tag(repo=src, tag=tag, metadata=meta, console=console)
        if isinstance(commit_r, Err):
            return commit_r

        console.header(f"Exporting {meta.basename}")
        snap_r = export_snapshot(
            repo=src,
            tag=tag,
            basename=meta.basename,
            tmpdir=opts.tmpdir,
            config=cfg,
            interpreter=interpreter,
            console=console,
        )
        if isinstance(snap_r, Err):
            return snap_r
        snapshot = snap_r.value

        console.header("Validating package description")
        valid = validate_description(
            root=snapshot.root,
            description=cfg.package.description,
            interpreter=interpreter,
        )
        if isinstance(valid, Err):
            return valid

        console.header(f"Publishing {tag} to {repository}")
        console.print(f"git push {opts.remote} {tag}", Style.DIM)
        pushed = src.push(opts.remote, f"refs/tags/{tag}")
        if isinstance(pushed, Err):
            return Err(
                ReleaseError(
                    kind="tool_failed",
                    message=f"cannot push tag {tag} to {opts.remote}",
                    hint=pushed.error.message,
                )
            )

        api = ReleasesApi(
            client=self.http,
            repo=repository,
            token=token_r.value,
            api_url=cfg.github.api_url,
            upload_url=cfg.github.upload_url,
            auth=cfg.github.auth,
        )
        release_r = create_release(
            api=api, metadata=meta, tag=tag, force=opts.force, console=console
        )
        if isinstance(release_r, Err):
            return release_r
        uploads_r = upload_archives(
            api=api,
            release_id=release_r.value,
            snapshot=snapshot.root,
            out_dir=opts.tmpdir,
            metadata=meta,
            console=console,
        )
        if isinstance(uploads_r, Err):
            return uploads_r

        console.header("Updating website")
        site_r = update_website(
            repo=web_r.value,
            snapshot=snapshot,
            metadata=meta,
            config=cfg,
            interpreter=interpreter,
            push=opts.push,
            remote=opts.remote,
            console=console,
        )
        if isinstance(site_r, Err):
            return site_r

        return Ok(
            ReleaseSummary(
                name=meta.name,
                version=meta.version,
                tag=tag,
                repository=repository,
                release_id=release_r.value,
                assets=tuple(a.name for a in uploads_r.value),
                website_committed=site_r.value,
            )
        )
