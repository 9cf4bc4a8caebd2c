"""Tests for pkgrel.output.console module."""

from __future__ import annotations

from pkgrel.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.WARNING) == "warning"
        assert str(Style.HEADER) == "header"


class TestMockConsole:
    def test_records_styles(self) -> None:
        console = MockConsole()
        console.print("plain")
        console.success("done")
        console.error("broken")
        console.warning("careful")
        console.info("fyi")
        console.header("Step")

        assert console.messages == [
            "plain",
            "OK done",
            "error: broken",
            "warning: careful",
            "info: fyi",
            "Step",
        ]
        assert console.has_error()
        assert console.has_warning()

    def test_find(self) -> None:
        console = MockConsole()
        console.warning("unsupported archive format .7z, skipped")
        console.print("other")
        assert len(console.find(".7z")) == 1
        assert console.find("missing") == []

    def test_implements_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.info("typed")


def test_rich_console_does_not_interpret_markup(capsys) -> None:  # type: ignore[no-untyped-def]
    console = RichConsole()
    console.warning("[bold]literal[/bold]")
    console.print("[dim]also literal[/dim]", Style.DIM)
    out = capsys.readouterr().out
    assert "[bold]literal[/bold]" in out
    assert "[dim]also literal[/dim]" in out
