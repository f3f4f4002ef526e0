"""Command-line interface for patch-graph."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from patch_graph.compile import compile_graph, compile_graph_to_file
from patch_graph.config import get_settings
from patch_graph.graphs import Instrument, Sequence, parse_graph
from patch_graph.loader import load_instrument
from patch_graph.log import configure_logging
from patch_graph.validate import validate_graph
from patch_graph.visualize import graph_to_dot, graph_to_dot_file

logger = logging.getLogger(__name__)


def _read_json(path: str) -> Any:
    return json.loads(Path(path).read_text())


def _load_graph(path: str) -> Instrument | Sequence:
    """Load and parse a graph JSON file."""
    return parse_graph(_read_json(path))


def _indent() -> int | None:
    return get_settings().json_indent or None


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_compile(args: argparse.Namespace) -> int:
    graph = _load_graph(args.file)
    if args.output:
        path = compile_graph_to_file(graph, args.output, indent=_indent())
        logger.info("Wrote %s", path)
    else:
        sys.stdout.write(json.dumps(compile_graph(graph), indent=_indent()) + "\n")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    graph = _load_graph(args.file)
    errors = validate_graph(graph)

    has_errors = any(e.severity == "error" for e in errors)
    has_warnings = any(e.severity == "warning" for e in errors)

    for err in errors:
        prefix = "warning" if err.severity == "warning" else "error"
        print(f"{prefix}: {err}", file=sys.stderr)

    if has_errors:
        return 1
    if has_warnings:
        print("valid (with warnings)")
    else:
        print("valid")
    return 0


def _cmd_dot(args: argparse.Namespace) -> int:
    graph = _load_graph(args.file)
    if args.output:
        graph_to_dot_file(graph, args.output)
    else:
        sys.stdout.write(graph_to_dot(graph))
    return 0


def _cmd_load(args: argparse.Namespace) -> int:
    instrument = load_instrument(_read_json(args.file))
    text = instrument.model_dump_json(indent=_indent()) + "\n"
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text)
        logger.info("Wrote %s", out)
    else:
        sys.stdout.write(text)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the patch-graph CLI."""
    parser = argparse.ArgumentParser(
        prog="patch-graph",
        description="Compile, validate, and visualize instrument and sequence patch graphs.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # compile
    p_compile = sub.add_parser("compile", help="Compile graph to its engine document")
    p_compile.add_argument("file", help="Graph JSON file")
    p_compile.add_argument("-o", "--output", help="Output directory")

    # validate
    p_validate = sub.add_parser("validate", help="Validate graph JSON")
    p_validate.add_argument("file", help="Graph JSON file")

    # dot
    p_dot = sub.add_parser("dot", help="Generate DOT visualization")
    p_dot.add_argument("file", help="Graph JSON file")
    p_dot.add_argument("-o", "--output", help="Output directory")

    # load
    p_load = sub.add_parser("load", help="Build an instrument graph from a definition")
    p_load.add_argument("file", help="Instrument definition JSON file")
    p_load.add_argument("-o", "--output", help="Output graph JSON file")

    args = parser.parse_args(argv)
    configure_logging(args.debug or get_settings().debug)

    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    try:
        if args.command == "compile":
            return _cmd_compile(args)
        elif args.command == "validate":
            return _cmd_validate(args)
        elif args.command == "dot":
            return _cmd_dot(args)
        elif args.command == "load":
            return _cmd_load(args)
    except FileNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"error: invalid JSON: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"error: invalid graph: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0  # pragma: no cover


if __name__ == "__main__":
    sys.exit(main())
