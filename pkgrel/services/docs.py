"""Documentation build.

Two generators are recognised, checked in order:

1. an interpreter entry point (``doc/make_doc.m``), called as a function with
   the output directory after the package's load path is set up;
2. a shell script (``doc/build_doc.sh``) taking the output directory.

A package with neither gets a warning and no documentation.
"""

from __future__ import annotations

from pathlib import Path

from pkgrel.core.config import DocsConfig, InterpreterConfig
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.output.console import ConsoleProtocol, Style
from pkgrel.platform.process import run_silent
from pkgrel.services.interpreter import InterpreterRunner, quote_string

__all__ = ["build_docs"]


def _entry_code(root: Path, entry: Path, output: Path, load_path: tuple[str, ...]) -> str:
    dirs = [root / p for p in load_path] + [entry.parent]
    adds = " ".join(f"addpath({quote_string(str(d))});" for d in dirs)
    return f"{adds} {entry.stem}({quote_string(str(output))});"


def build_docs(
    *,
    root: Path,
    output: Path,
    docs: DocsConfig,
    interp: InterpreterConfig,
    interpreter: InterpreterRunner,
    console: ConsoleProtocol,
) -> Result[bool, ReleaseError]:
    """Build documentation for the tree at ``root`` into ``output``.

    Paths handed to the generator are absolute, so the same call works for
    the source tree and for the nested export.

    Returns:
        Ok(True) if documentation was built, Ok(False) if no generator exists.
    """
    entry = root / docs.entry
    script = root / docs.script

    if entry.is_file():
        output.mkdir(parents=True, exist_ok=True)
        console.print(f"{entry.stem}('{output}')", Style.DIM)
        code = _entry_code(root, entry, output, interp.load_path)
        result = interpreter.eval(code, cwd=root, what="documentation build")
        if isinstance(result, Err):
            return result
        return Ok(True)

    if script.is_file():
        output.mkdir(parents=True, exist_ok=True)
        console.print(f"sh -e {docs.script} {output}", Style.DIM)
        built = run_silent(["sh", "-e", str(script), str(output)], cwd=root)
        if isinstance(built, Err):
            return Err(
                ReleaseError(
                    kind="tool_failed",
                    message=f"documentation build failed: {built.error}",
                )
            )
        return Ok(True)

    console.warning(f"no documentation generator in {root} ({docs.entry} or {docs.script})")
    return Ok(False)
