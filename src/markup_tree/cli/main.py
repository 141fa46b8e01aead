"""Main CLI entry point for the markup-tree command-line tool.

Provides commands to parse markup files into JSON trees, render JSON trees
back into markup, and round-trip markup through both.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from markup_tree import __version__
from markup_tree.api import parse_with_diagnostics
from markup_tree.rendering import MarkupRenderer
from markup_tree.shared import DEFAULT_SELF_CLOSING_TAGS, ParserOptions, RenderOptions
from markup_tree.tree import ParseResult

STDIN_PATH = "-"


def read_source(path: str) -> str:
    """Read a file as UTF-8 text, or standard input for '-'."""
    if path == STDIN_PATH:
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _parser_options(args: argparse.Namespace) -> ParserOptions:
    return ParserOptions(
        ignore=tuple(args.ignore or ()),
        preserve_whitespace=getattr(args, "preserve_whitespace", False),
    )


def _render_options(args: argparse.Namespace) -> RenderOptions:
    return RenderOptions(
        pretty=args.pretty,
        indent=getattr(args, "indent", None),
        xml_mode=args.xml_mode,
        self_closing_tags=tuple(
            getattr(args, "self_closing", None) or DEFAULT_SELF_CLOSING_TAGS
        ),
    )


def _parse_sources(
    paths: List[str], options: ParserOptions
) -> Tuple[List[Tuple[str, ParseResult]], int]:
    """Parse every path, reporting unreadable ones on stderr.

    Returns:
        Parsed (path, result) pairs and the number of unreadable paths
    """
    parsed = []
    failures = 0
    for path in paths:
        try:
            markup = read_source(path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            failures += 1
            continue
        parsed.append((path, parse_with_diagnostics(markup, options)))
    return parsed, failures


def _write_output(text: str, output: Optional[Path]) -> int:
    if output is None:
        print(text)
        return 0
    try:
        output.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1
    print(f"Results written to {output}", file=sys.stderr)
    return 0


def format_warnings(path: str, result: ParseResult) -> List[str]:
    """Format the warnings of a parse as 'path:offset: message' lines."""
    return [f"{path}:{warning.offset}: {warning.message}" for warning in result.warnings]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="markup-tree",
        description="Convert HTML/XML markup to JSON node trees and back"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse markup files into JSON trees")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        help="Markup files to parse ('-' reads standard input)"
    )
    parse_parser.add_argument(
        "--ignore",
        nargs="+",
        metavar="TAG",
        help="Drop these tags and everything inside them"
    )
    parse_parser.add_argument(
        "--preserve-whitespace",
        action="store_true",
        help="Keep line breaks and indentation in text"
    )
    parse_parser.add_argument(
        "--warnings",
        action="store_true",
        help="Output the {result, warnings, errors} envelope instead of the bare tree"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Render command
    render_parser = subparsers.add_parser("render", help="Render a JSON tree as markup")
    render_parser.add_argument(
        "path",
        help="JSON tree file ('-' reads standard input)"
    )
    render_parser.add_argument(
        "--pretty", "-p",
        action="store_true",
        help="Indent nested elements"
    )
    render_parser.add_argument(
        "--indent",
        help="Indentation unit for --pretty (default: two spaces)"
    )
    render_parser.add_argument(
        "--xml-mode",
        action="store_true",
        help="Self-close every empty element"
    )
    render_parser.add_argument(
        "--self-closing",
        nargs="+",
        metavar="TAG",
        help="Void elements rendered as <tag /> (default: HTML void elements)"
    )
    render_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Roundtrip command
    roundtrip_parser = subparsers.add_parser(
        "roundtrip", help="Parse markup files and render them again"
    )
    roundtrip_parser.add_argument(
        "paths",
        nargs="+",
        help="Markup files to process ('-' reads standard input)"
    )
    roundtrip_parser.add_argument(
        "--ignore",
        nargs="+",
        metavar="TAG",
        help="Drop these tags and everything inside them"
    )
    roundtrip_parser.add_argument(
        "--pretty", "-p",
        action="store_true",
        help="Indent nested elements"
    )
    roundtrip_parser.add_argument(
        "--xml-mode",
        action="store_true",
        help="Self-close every empty element"
    )
    roundtrip_parser.add_argument(
        "--check",
        action="store_true",
        help="Report structural warnings and exit with 1 if there are any"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    options = _parser_options(args)
    parsed, failures = _parse_sources(args.paths, options)

    outputs: Dict[str, Any] = {}
    for path, result in parsed:
        if args.warnings:
            outputs[path] = result.to_dict()
        else:
            outputs[path] = result.result.to_dict() if result.result is not None else None

    if not outputs:
        return 1

    # A single file prints its tree directly
    payload = next(iter(outputs.values())) if len(args.paths) == 1 else outputs
    try:
        serialized = json.dumps(payload, indent=2, ensure_ascii=False)
    except RecursionError:
        print("Error serializing output: tree is nested too deeply for JSON", file=sys.stderr)
        return 1
    status = _write_output(serialized, args.output)
    return 1 if failures or status else 0


def cmd_render(args: argparse.Namespace) -> int:
    """Handle render command."""
    try:
        tree = json.loads(read_source(args.path))
    except (OSError, UnicodeDecodeError, ValueError, RecursionError) as e:
        print(f"Error loading {args.path}: {e}", file=sys.stderr)
        return 1

    # Accept the envelope written by 'parse --warnings'
    if isinstance(tree, dict) and "type" not in tree and "result" in tree:
        tree = tree["result"]

    renderer = MarkupRenderer(_render_options(args))
    return _write_output(renderer.render(tree), args.output)


def cmd_roundtrip(args: argparse.Namespace) -> int:
    """Handle roundtrip command."""
    parsed, failures = _parse_sources(args.paths, _parser_options(args))
    renderer = MarkupRenderer(_render_options(args))

    flagged = 0
    for path, result in parsed:
        if len(args.paths) > 1:
            print(f"==> {path} <==")
        print(renderer.render(result.result))

        if args.check and result.has_warnings():
            flagged += 1
            for line in format_warnings(path, result):
                print(line, file=sys.stderr)

    if args.check:
        print(
            f"{flagged} of {len(parsed)} file(s) have structural warnings",
            file=sys.stderr
        )
    return 1 if failures or flagged else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "parse":
            return cmd_parse(args)
        elif args.command == "render":
            return cmd_render(args)
        elif args.command == "roundtrip":
            return cmd_roundtrip(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
