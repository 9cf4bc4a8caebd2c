"""GitHub token lookup.

Sources, first match wins:
1. ``--token``
2. git config of the source repository (``github.token``)
3. ``<user-config-dir>/github-token``
"""

from __future__ import annotations

from pkgrel.core.config import GitHubConfig
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.git.repository import Repository
from pkgrel.platform.paths import user_config_dir

__all__ = ["resolve_token"]


def resolve_token(
    *,
    explicit: str | None,
    repo: Repository,
    github: GitHubConfig,
) -> Result[str, ReleaseError]:
    if explicit and explicit.strip():
        return Ok(explicit.strip())

    from_git = repo.config_get(github.token_git_key)
    if from_git:
        return Ok(from_git)

    token_file = user_config_dir() / github.token_file
    try:
        text = token_file.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        text = ""
    except OSError as e:
        return Err(ReleaseError(kind="precondition", message=f"cannot read {token_file}: {e}"))
    if text:
        return Ok(text.splitlines()[0].strip())

    return Err(
        ReleaseError(
            kind="precondition",
            message="no GitHub token",
            hint=(
                f"pass --token, run 'git config {github.token_git_key} TOKEN', "
                f"or write it to {token_file}"
            ),
        )
    )
