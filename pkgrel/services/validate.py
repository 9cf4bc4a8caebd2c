"""Description file validation inside the exported tree."""

from __future__ import annotations

from pathlib import Path

from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.services.interpreter import InterpreterRunner, quote_string

__all__ = ["REQUIRED_FIELDS", "validate_description"]

REQUIRED_FIELDS: tuple[str, ...] = (
    "Name",
    "Version",
    "Date",
    "Author",
    "Maintainer",
    "Title",
    "Description",
    "License",
)


def _check_code(description: str) -> str:
    required = ", ".join(quote_string(f) for f in REQUIRED_FIELDS)
    return (
        f"text = fileread({quote_string(description)}); "
        f"required = {{{required}}}; "
        "for i = 1:numel(required), "
        "if isempty(regexp(text, ['^' required{i} ':'], 'once', 'lineanchors')), "
        f"error({quote_string(description + ' has no %s field')}, required{{i}}); "
        "end, end"
    )


def validate_description(
    *,
    root: Path,
    description: str,
    interpreter: InterpreterRunner,
) -> Result[None, ReleaseError]:
    if not (root / description).is_file():
        return Err(ReleaseError(kind="precondition", message=f"{description} missing from export"))

    result = interpreter.eval(_check_code(description), cwd=root, what="description validation")
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="tool_failed",
                message=f"{description} validation failed",
                hint=result.error.hint,
            )
        )
    return Ok(None)
