"""Tests for the CLI module: arg parsing, exit codes, error reporting."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagtree.cli import (
    DEFAULT_MAX_ERRORS,
    CliOptions,
    build_parser,
    check_file,
    main,
    report,
)

# ---------------------------------------------------------------------------
# Arg parsing via build_parser
# ---------------------------------------------------------------------------


class TestArgParsing:
    def test_input_only(self) -> None:
        ns = build_parser().parse_args(["check", "page.tt"])
        assert ns.command == "check"
        assert ns.input == "page.tt"
        assert ns.max_errors is None
        assert ns.config is None

    def test_flags(self) -> None:
        ns = build_parser().parse_args(
            ["check", "page.tt", "--max-errors", "3", "--debug", "-v", "--config", "x.toml"]
        )
        assert ns.max_errors == 3
        assert ns.debug is True
        assert ns.verbose is True
        assert ns.config == "x.toml"

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_max_errors_must_be_int(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["check", "page.tt", "--max-errors", "many"])


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class TestExitCodes:
    def test_clean_template_returns_0(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "ok.tt"
        doc.write_text('html { body { h1.title { "Hello" } } }\n')
        assert main(["check", str(doc)]) == 0
        assert capsys.readouterr().err == ""

    def test_parse_errors_return_1(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "bad.tt"
        doc.write_text("div .foo #bar => { }\n")
        assert main(["check", str(doc)]) == 1
        err = capsys.readouterr().err
        assert "error: expected attribute, found '=>'" in err
        assert f"--> {doc}:1:15" in err
        assert f"{doc}: 1 error" in err

    def test_lex_error_returns_1(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "lex.tt"
        doc.write_text('p { "a\\z" }\n')
        assert main(["check", str(doc)]) == 1
        err = capsys.readouterr().err
        assert "invalid string escape sequence '\\z'" in err
        assert str(doc) in err

    def test_unclosed_delimiter_returns_1(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "open.tt"
        doc.write_text("div {\n")
        assert main(["check", str(doc)]) == 1
        assert "unclosed delimiter '{'" in capsys.readouterr().err

    def test_missing_file_returns_2(self, tmp_path: Path, capsys) -> None:
        assert main(["check", str(tmp_path / "nope.tt")]) == 2
        assert "error:" in capsys.readouterr().err

    def test_invalid_utf8_returns_2(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "latin1.tt"
        doc.write_bytes(b'p { "\xff" }\n')
        assert main(["check", str(doc)]) == 2
        assert "not valid UTF-8" in capsys.readouterr().err

    def test_negative_max_errors_returns_2(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "ok.tt"
        doc.write_text("br;")
        assert main(["check", str(doc), "--max-errors", "-1"]) == 2
        assert "must not be negative" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _options(path: Path, max_errors: int = DEFAULT_MAX_ERRORS, debug: bool = False) -> CliOptions:
    return CliOptions(input_file=path, max_errors=max_errors, debug=debug, verbose=False)


class TestReport:
    def test_every_error_reported(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "many.tt"
        doc.write_text("div => {} span { ~ } a href=;\n")
        assert main(["check", str(doc)]) == 1
        err = capsys.readouterr().err
        assert err.count("error:") == 3
        assert f"{doc}: 3 errors" in err

    def test_max_errors_truncates(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "many.tt"
        doc.write_text("div => {} span { ~ } a href=;\n")
        source, diagnostics = check_file(_options(doc))
        report(diagnostics, source, _options(doc, max_errors=1))
        err = capsys.readouterr().err
        assert err.count("error:") == 1
        assert "... 2 more error(s) not shown" in err
        assert f"{doc}: 3 errors" in err

    def test_zero_means_no_limit(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "many.tt"
        doc.write_text("div => {} span { ~ } a href=;\n")
        assert main(["check", str(doc), "--max-errors", "0"]) == 1
        err = capsys.readouterr().err
        assert err.count("error:") == 3
        assert "not shown" not in err


# ---------------------------------------------------------------------------
# check_file / --debug
# ---------------------------------------------------------------------------


class TestCheckFile:
    def test_returns_source_and_diagnostics(self, tmp_path: Path) -> None:
        doc = tmp_path / "page.tt"
        doc.write_text("p ~ {}")
        source, diagnostics = check_file(_options(doc))
        assert source == "p ~ {}"
        assert len(diagnostics) == 1

    def test_debug_dumps_ast(self, tmp_path: Path, capsys) -> None:
        doc = tmp_path / "page.tt"
        doc.write_text("br;")
        assert main(["check", str(doc), "--debug"]) == 0
        err = capsys.readouterr().err
        assert "Template @1:1-1:4" in err
        assert "Element br" in err
        assert "Void @1:3-1:4" in err
