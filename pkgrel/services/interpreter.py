"""Package interpreter invocation.

Metadata extraction, validation, documentation and the website script all
run code through the package interpreter (``octave --eval``). Its combined
output is appended to a log file in the temp directory; the interpreter
reports problems on its output rather than through its exit code, so the
output is scanned for error markers as well.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pkgrel.core.config import InterpreterConfig
from pkgrel.core.errors import ReleaseError
from pkgrel.core.result import Err, Ok, Result
from pkgrel.platform.process import run_combined

__all__ = ["DATA_PREFIX", "Interpreter", "InterpreterRunner", "LOG_FILENAME", "quote_string"]

LOG_FILENAME = "pkgrel.log"

# Lines our own snippets print as data; never scanned for error markers.
DATA_PREFIX = "@pkgrel "


def quote_string(value: str) -> str:
    """Single-quoted string literal for interpreter code."""
    return "'" + value.replace("'", "''") + "'"


class InterpreterRunner(Protocol):
    def eval(self, code: str, *, cwd: Path, what: str) -> Result[str, ReleaseError]:
        """Evaluate ``code`` in ``cwd``; ``what`` names the step in error messages."""
        ...


@dataclass(frozen=True, slots=True)
class Interpreter:
    config: InterpreterConfig
    log_path: Path

    def eval(self, code: str, *, cwd: Path, what: str) -> Result[str, ReleaseError]:
        cmd = [*self.config.command, self.config.eval_flag, code]
        result = run_combined(cmd, cwd=cwd)
        if isinstance(result, Ok):
            output = result.value
        else:
            output = result.error.stdout or result.error.stderr
            if result.error.not_found:
                return Err(
                    ReleaseError(
                        kind="precondition",
                        message=f"interpreter not found: {self.config.command[0]}",
                        hint=result.error.stderr.strip() or None,
                    )
                )

        self._log(cmd, cwd, output)

        if isinstance(result, Err) or self.has_error_marker(output):
            return Err(
                ReleaseError(
                    kind="tool_failed",
                    message=f"{what} failed",
                    hint=f"see {self.log_path}",
                )
            )
        return Ok(output)

    def has_error_marker(self, output: str) -> bool:
        return any(
            marker in line
            for line in output.splitlines()
            if not line.startswith(DATA_PREFIX)
            for marker in self.config.error_markers
        )

    def _log(self, cmd: list[str], cwd: Path, output: str) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with self.log_path.open("a", encoding="utf-8") as log:
            log.write(f"$ cd {cwd}\n$ {shlex.join(cmd)}\n")
            log.write(output)
            if output and not output.endswith("\n"):
                log.write("\n")
