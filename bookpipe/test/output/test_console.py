"""Tests for console output."""

from __future__ import annotations

import pytest

from bookpipe.output.console import MockConsole, RichConsole, Style


class TestMockConsole:
    def test_captures_styles(self) -> None:
        console = MockConsole()

        console.success("built")
        console.error("failed")
        console.warning("careful")
        console.info("note")
        console.header("Build")
        console.log("! Undefined control sequence.")
        console.newline()

        assert [o.style for o in console.outputs] == [
            Style.SUCCESS,
            Style.ERROR,
            Style.WARNING,
            Style.INFO,
            Style.HEADER,
            Style.LOG,
            Style.DEFAULT,
        ]
        assert console.has_error()
        assert console.has_success()

    def test_find(self) -> None:
        console = MockConsole()
        console.print("tectonic -Z shell-escape main.tex", Style.DIM)
        console.print("other")

        assert len(console.find("shell-escape")) == 1
        assert console.text == "tectonic -Z shell-escape main.tex\nother"


class TestRichConsole:
    def test_markup_in_messages_is_literal(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()

        console.error("missing [bold]file[/bold]")
        console.log("\\includeonly{[ch01]}")

        out = capsys.readouterr().out
        assert "missing [bold]file[/bold]" in out
        assert "\\includeonly{[ch01]}" in out

    def test_style_names(self) -> None:
        assert str(Style.LOG) == "log"
