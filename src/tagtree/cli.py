"""Command-line interface for tagtree."""

from __future__ import annotations

import argparse
import logging
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tagtree.errors import Diagnostic, LexError

log = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 20


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    max_errors: int
    debug: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="tagtree",
        description="Check markup templates and report parse diagnostics",
    )
    sub = p.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Parse a template and report every error")
    check.add_argument("input", help="Input template file")
    check.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover tagtree.toml)",
    )
    check.add_argument(
        "--max-errors",
        type=int,
        default=None,
        metavar="N",
        help=f"Stop reporting after N diagnostics (default: {DEFAULT_MAX_ERRORS}, 0 = no limit)",
    )
    check.add_argument("--debug", action="store_true", help="Dump AST to stderr")
    check.add_argument("-v", "--verbose", action="store_true", help="Log parser recovery")
    return p


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "tagtree.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    max_errors = DEFAULT_MAX_ERRORS
    cfg_check = config.get("check")
    if isinstance(cfg_check, dict):
        cfg_max = cfg_check.get("max_errors")
        if isinstance(cfg_max, int) and not isinstance(cfg_max, bool):
            max_errors = cfg_max
    if args.max_errors is not None:
        max_errors = args.max_errors
    if max_errors < 0:
        raise argparse.ArgumentTypeError(f"max-errors must not be negative: {max_errors}")

    return CliOptions(
        input_file=input_file,
        max_errors=max_errors,
        debug=args.debug,
        verbose=args.verbose,
    )


def check_file(options: CliOptions) -> tuple[str, list[Diagnostic]]:
    """Read and parse a template; return its source and every diagnostic."""
    from tagtree.debug import dump_ast
    from tagtree.parser import parse

    source = options.input_file.read_text(encoding="utf-8")
    template, diagnostics = parse(source, str(options.input_file))
    log.debug("parsed %s: %d diagnostics", options.input_file, len(diagnostics))

    if options.debug:
        dump_ast(template)

    return source, diagnostics


def report(diagnostics: list[Diagnostic], source: str, options: CliOptions) -> None:
    """Print diagnostics to stderr, honouring the max-errors limit."""
    shown = diagnostics
    if options.max_errors and len(diagnostics) > options.max_errors:
        shown = diagnostics[: options.max_errors]

    for diag in shown:
        print(diag.format(source, str(options.input_file)), file=sys.stderr)
        print(file=sys.stderr)

    hidden = len(diagnostics) - len(shown)
    if hidden:
        print(f"... {hidden} more error(s) not shown", file=sys.stderr)
    noun = "error" if len(diagnostics) == 1 else "errors"
    print(f"{options.input_file}: {len(diagnostics)} {noun}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except tomllib.TOMLDecodeError as exc:
        print(f"error: invalid config file: {exc}", file=sys.stderr)
        return 2

    if options.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        source, diagnostics = check_file(options)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except UnicodeDecodeError as exc:
        print(f"error: {options.input_file} is not valid UTF-8: {exc}", file=sys.stderr)
        return 2
    except LexError as exc:
        print(exc.format(str(options.input_file)), file=sys.stderr)
        return 1

    if diagnostics:
        report(diagnostics, source, options)
        return 1

    return 0


def run() -> None:
    """Console-script wrapper around main()."""
    sys.exit(main())
