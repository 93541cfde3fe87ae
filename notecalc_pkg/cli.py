"""Command-line interface for Notecalc: one-shot lines, documents and an interactive notepad."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Any, TextIO

from .api import Notepad, evaluate, evaluate_document
from .config import VERSION
from .formatting import DEFAULT_OPTIONS, DisplayOptions
from .logging_config import get_logger, setup_logging

logger = get_logger("cli")

QUIT_COMMANDS = ("quit", "exit")
HELP_TEXT = """Notecalc - a notepad calculator.

Type a line and press Enter. Lines ending in "=>" show their result:
  price = 100
  total = price + 10% =>
  20% of 100 =>
  50 m + 20 ft to m =>
  today + 3 business days =>
  solve x in y = 2*x + 3, y = 11 =>

Commands:
  vars    list variables
  reset   forget all variables and functions
  help    show this text
  quit    leave
"""


def print_result(data: dict[str, Any], output_format: str = "human", out: TextIO | None = None) -> None:
    """Print one result dictionary.

    Args:
        data: Result in dictionary form (EvalResult/DocumentResult/RenderNode ``to_dict``)
        output_format: "json" or "human"
        out: Stream to write to (stdout by default)
    """
    out = out or sys.stdout
    if output_format == "json":
        print(json.dumps(data, ensure_ascii=False), file=out)
        return
    if "lines" in data:
        for line in data["lines"]:
            print(line["display_text"], file=out)
        return
    if "display_text" in data:
        print(data["display_text"], file=out)
        return
    if not data.get("ok"):
        print(f"Error: {data.get('error')}", file=out)
    elif data.get("result") is not None:
        print(data["result"], file=out)


def repl_loop(options: DisplayOptions, output_format: str = "human") -> None:
    """Interactive notepad: each line shares state with the lines before it."""
    try:
        import readline  # noqa: F401
    except ImportError:
        # readline not available on Windows - that's fine
        pass

    pad = Notepad(options)
    print("Notecalc - type 'help' for commands, 'quit' to exit.")
    while True:
        try:
            text = input(">>> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        command = text.strip().lower()
        if command in QUIT_COMMANDS:
            break
        if command == "help":
            print(HELP_TEXT)
            continue
        if command == "reset":
            pad.reset()
            print("All variables and functions cleared.")
            continue
        if command == "vars":
            snapshot = pad.variable_snapshot()
            if output_format == "json":
                print(json.dumps(snapshot, ensure_ascii=False))
            elif not snapshot:
                print("No variables defined.")
            else:
                for name, value in snapshot.items():
                    print(f"{name} = {value}")
            continue
        try:
            node = pad.evaluate_line(text)
        except Exception as e:
            logger.error(f"Unexpected error in REPL: {e}", exc_info=True)
            print(f"Error: {e}")
            continue
        print_result(node.to_dict(), output_format)


def _read_document(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as handle:
        return handle.read()


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for Notecalc CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="notecalc")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one line and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=str,
        help="Evaluate a notepad document ('-' reads stdin)",
        dest="file_path",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (decimal places)"
    )
    parser.add_argument(
        "--date-order",
        type=str,
        choices=["mdy", "dmy"],
        help="How to read numeric dates such as 03/04/2024",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.version:
        print(VERSION)
        return 0

    options = DEFAULT_OPTIONS
    if args.precision is not None and args.precision >= 0:
        options = options.with_precision(args.precision)
    if args.date_order:
        options = replace(options, date_order=args.date_order)

    if args.eval_expr is not None:
        expr = args.eval_expr.strip()
        if not expr:
            print("Error: Empty input. Please enter a line to evaluate.")
            return 1
        result = evaluate(expr, options)
        print_result(result.to_dict(), args.format)
        return 0 if result.ok else 1

    if args.file_path:
        try:
            text = _read_document(args.file_path)
        except OSError as e:
            logger.error(f"Cannot read {args.file_path}: {e}")
            print(f"Error: cannot read {args.file_path}: {e}")
            return 2
        document = evaluate_document(text, options)
        print_result(document.to_dict(), args.format)
        return 0 if document.ok else 1

    repl_loop(options, args.format)
    return 0
