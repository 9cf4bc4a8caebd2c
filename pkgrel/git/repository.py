"""Git repository abstraction.

Thin wrappers over the git commands a release needs. Every operation that
can fail returns a Result; none of them raise.

Usage:
    repo = Repository(Path("/path/to/package"))

    match repo.is_clean():
        case Ok(True):
            print("clean")
        case Ok(False):
            print("uncommitted changes")
        case Err(e):
            print(f"git status failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pkgrel.core.result import Err, Ok, Result
from pkgrel.platform.process import ProcessError
from pkgrel.platform.process import run as run_process

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message (stderr when available)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    message = error.stderr.strip() or error.stdout.strip() or fallback
    return GitError(command=command, message=message, returncode=error.returncode)


class Repository:
    """A git working tree.

    Attributes:
        path: Path to the working tree root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a git working tree (``.git`` dir or file)."""
        return (self.path / ".git").exists()

    def is_clean(self) -> Result[bool, GitError]:
        """Whether tracked files have no staged or unstaged changes.

        Untracked files are ignored. A failing ``git status`` is reported as
        an error, never as "clean".
        """
        result = self._run(["status", "--porcelain", "--untracked-files=no"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(stdout.strip() == "")

    def head_commit(self) -> Result[str, GitError]:
        result = self._run(["rev-parse", "--verify", "HEAD^{commit}"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, "cannot resolve HEAD"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def tag_commit(self, tag: str) -> Result[str | None, GitError]:
        """Commit a tag points at, or None when the tag does not exist."""
        result = self._run(["rev-parse", "-q", "--verify", f"refs/tags/{tag}^{{commit}}"])
        match result:
            case Err(e) if e.returncode == 1 and not e.stderr.strip():
                return Ok(None)
            case Err(e):
                return Err(_git_error("rev-parse", e, f"cannot resolve tag {tag}"))
            case Ok(stdout):
                return Ok(stdout.strip() or None)

    def create_tag(self, tag: str, *, message: str) -> Result[None, GitError]:
        """Create an annotated tag at HEAD."""
        result = self._run(["tag", "-a", tag, "-m", message])
        if isinstance(result, Err):
            return Err(_git_error("tag", result.error, f"cannot create tag {tag}"))
        return Ok(None)

    def archive(self, ref: str, *, prefix: str, output: Path) -> Result[None, GitError]:
        """Write a tar of the committed tree at ``ref``, every path under ``prefix``."""
        result = self._run(
            ["archive", "--format=tar", f"--prefix={prefix}", "-o", str(output), ref]
        )
        if isinstance(result, Err):
            return Err(_git_error("archive", result.error, f"cannot export {ref}"))
        return Ok(None)

    def config_get(self, key: str) -> str | None:
        """Value of a git config key, or None when unset."""
        result = self._run(["config", "--get", key])
        match result:
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def pull_ff(self) -> Result[str, GitError]:
        """Pull with fast-forward only."""
        result = self._run(["pull", "--ff-only"])
        match result:
            case Err(e):
                return Err(_git_error("pull --ff-only", e, "pull failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def add_all(self) -> Result[None, GitError]:
        result = self._run(["add", "-A"])
        if isinstance(result, Err):
            return Err(_git_error("add", result.error, "git add failed"))
        return Ok(None)

    def commit(self, message: str) -> Result[str, GitError]:
        result = self._run(["commit", "-m", message])
        match result:
            case Err(e):
                return Err(_git_error("commit", e, "git commit failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def push(self, remote: str, ref: str) -> Result[str, GitError]:
        result = self._run(["push", remote, ref])
        match result:
            case Err(e):
                return Err(_git_error("push", e, f"push to {remote} failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)
