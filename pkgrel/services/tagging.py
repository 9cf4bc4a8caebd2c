"""Release tag checks and creation."""

from __future__ import annotations

from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.git.repository import Repository
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.services.metadata import PackageMetadata

__all__ = ["ensure_clean", "ensure_release_tag", "resolve_tag"]


def ensure_clean(repo: Repository, *, when: str) -> Result[None, ReleaseError]:
    """Fail if tracked files in ``repo`` have uncommitted changes."""
    clean = repo.is_clean()
    if isinstance(clean, Err):
        return Err(
            ReleaseError(
                kind="tool_failed",
                message=f"cannot check working tree of {repo.path}",
                hint=clean.error.message,
            )
        )
    if not clean.value:
        return Err(
            ReleaseError(
                kind="precondition",
                message=f"uncommitted changes in {repo.path} {when}",
                hint="commit or stash them, then retry",
            )
        )
    return Ok(None)


def resolve_tag(*, explicit: str | None, metadata: PackageMetadata) -> Result[str, ReleaseError]:
    """Pick the release tag: ``--tag``, then the download URL's tag, then ``v<version>``.

    An explicit tag that contradicts the download URL is rejected.
    """
    if explicit:
        if metadata.tag is not None and explicit != metadata.tag:
            return Err(
                ReleaseError(
                    kind="usage",
                    message=(
                        f"tag {explicit} does not match {metadata.tag} "
                        "from the package download URL"
                    ),
                )
            )
        return Ok(explicit)
    if metadata.tag is not None:
        return Ok(metadata.tag)
    return Ok(f"v{metadata.version}")


def ensure_release_tag(
    *,
    repo: Repository,
    tag: str,
    metadata: PackageMetadata,
    console: ConsoleProtocol,
) -> Result[str, ReleaseError]:
    """Reuse or create ``tag`` and check it points at HEAD.

    Returns:
        Ok(commit) of the tag.
    """
    existing = repo.tag_commit(tag)
    if isinstance(existing, Err):
        return Err(ReleaseError(kind="tool_failed", message=existing.error.message))

    if existing.value is None:
        console.print(f"git tag -a {tag}", Style.DIM)
        created = repo.create_tag(tag, message=f"{metadata.name} {metadata.version}")
        if isinstance(created, Err):
            return Err(
                ReleaseError(
                    kind="tool_failed",
                    message=f"cannot create tag {tag}",
                    hint=created.error.message,
                )
            )
    else:
        console.print(f"tag {tag} exists", Style.DIM)

    tag_commit = repo.tag_commit(tag)
    if isinstance(tag_commit, Err):
        return Err(ReleaseError(kind="tool_failed", message=tag_commit.error.message))
    head = repo.head_commit()
    if isinstance(head, Err):
        return Err(ReleaseError(kind="tool_failed", message=head.error.message))

    if tag_commit.value != head.value:
        return Err(
            ReleaseError(
                kind="precondition",
                message=f"tag {tag} ({tag_commit.value}) is not the current commit ({head.value})",
                hint="check out the tagged commit or delete the stale tag",
            )
        )
    return Ok(head.value)
