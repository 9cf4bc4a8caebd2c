"""Tests for services/tagging.py."""

from __future__ import annotations

from pathlib import Path

from pkgrel.core.result import Err, Ok
from pkgrel.git.repository import Repository
from pkgrel.output.console import MockConsole
from pkgrel.services.metadata import PackageMetadata
from pkgrel.services.tagging import ensure_clean, ensure_release_tag, resolve_tag
from pkgrel.test._helpers import git, requires_git


def _meta(tag: str | None = "v1.2.3") -> PackageMetadata:
    return PackageMetadata(
        name="pkg",
        version="1.2.3",
        archive_formats=(".tar.gz",),
        repository="user/pkg" if tag else None,
        tag=tag,
        basename="pkg-1.2.3",
    )


class TestResolveTag:
    def test_explicit_matching_tag(self) -> None:
        assert resolve_tag(explicit="v1.2.3", metadata=_meta()) == Ok("v1.2.3")

    def test_explicit_mismatch_is_usage_error(self) -> None:
        result = resolve_tag(explicit="v9", metadata=_meta())
        assert isinstance(result, Err)
        assert result.error.kind == "usage"
        assert "v9" in result.error.message
        assert "v1.2.3" in result.error.message

    def test_from_download_url(self) -> None:
        assert resolve_tag(explicit=None, metadata=_meta()) == Ok("v1.2.3")

    def test_explicit_without_url(self) -> None:
        assert resolve_tag(explicit="release-1", metadata=_meta(tag=None)) == Ok("release-1")

    def test_version_fallback(self) -> None:
        assert resolve_tag(explicit=None, metadata=_meta(tag=None)) == Ok("v1.2.3")


@requires_git
class TestEnsureClean:
    def test_clean(self, package_repo: Path) -> None:
        assert ensure_clean(Repository(package_repo), when="before release") == Ok(None)

    def test_dirty(self, package_repo: Path) -> None:
        (package_repo / "README.md").write_text("edited\n", encoding="utf-8")
        result = ensure_clean(Repository(package_repo), when="before release")
        assert isinstance(result, Err)
        assert result.error.kind == "precondition"
        assert result.error.message.endswith("before release")

    def test_not_a_repository(self, tmp_path: Path) -> None:
        result = ensure_clean(Repository(tmp_path), when="x")
        assert isinstance(result, Err)
        assert result.error.kind == "tool_failed"


@requires_git
class TestEnsureReleaseTag:
    def test_creates_annotated_tag(self, package_repo: Path) -> None:
        repo = Repository(package_repo)
        console = MockConsole()

        result = ensure_release_tag(repo=repo, tag="v1.2.3", metadata=_meta(), console=console)

        assert result == repo.head_commit()
        assert git(package_repo, "tag", "-l", "--format=%(contents:subject)", "v1.2.3") == (
            "pkg 1.2.3"
        )
        assert console.find("git tag -a v1.2.3")

    def test_rerun_reuses_tag(self, package_repo: Path) -> None:
        repo = Repository(package_repo)
        ensure_release_tag(repo=repo, tag="v1.2.3", metadata=_meta(), console=MockConsole())
        console = MockConsole()

        result = ensure_release_tag(repo=repo, tag="v1.2.3", metadata=_meta(), console=console)

        assert isinstance(result, Ok)
        assert console.find("tag v1.2.3 exists")
        assert git(package_repo, "tag", "-l") == "v1.2.3"

    def test_stale_tag_is_rejected(self, package_repo: Path) -> None:
        repo = Repository(package_repo)
        git(package_repo, "tag", "-a", "v1.2.3", "-m", "old")
        (package_repo / "README.md").write_text("# pkg\nmore\n", encoding="utf-8")
        git(package_repo, "commit", "-qam", "after tag")

        result = ensure_release_tag(
            repo=repo, tag="v1.2.3", metadata=_meta(), console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error.kind == "precondition"
        assert "is not the current commit" in result.error.message
