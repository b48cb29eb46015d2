"""Command-line interface for installgate.

This module provides the CLI for inspecting installer conditions from the
command line.

Usage:
    installgate check --spec <path-or-json> [--var NAME=VALUE]... [--select PACK]... [--explain] <condition>
    installgate gates --spec <path-or-json> [--var NAME=VALUE]... [--select PACK]...
    installgate dump --spec <path-or-json>

Commands:
    check   Evaluate a condition id or expression.
    gates   Print the panel and pack gate decisions as JSON.
    dump    Print every condition and gate in declaration form as JSON.

Exit codes:
    0: Success (condition true for ``check``)
    1: The specification could not be loaded
    2: Unknown command or invalid arguments
    3: Condition false (``check`` only)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .context import EvaluationContext
from .engine import GateEvaluator
from .errors import InstallGateError
from .loader import build_registry, load_spec
from .registry import ConditionRegistry

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _session_parser(prog: str) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=prog)
    p.add_argument("--spec", required=True, help="Specification file path (JSON or YAML) or inline JSON")
    p.add_argument("--var", action="append", default=[], metavar="NAME=VALUE", help="Set an installer variable")
    p.add_argument("--select", action="append", default=[], metavar="PACK", help="Mark a pack as selected")
    p.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: WARNING)",
    )
    return p


def _load(args: argparse.Namespace) -> ConditionRegistry:
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    context = EvaluationContext()
    for item in args.var:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise InstallGateError(f"--var expects NAME=VALUE, got '{item}'")
        context.set_var(name.strip(), value)
    context.set_selection(args.select)
    return build_registry(load_spec(args.spec), context)


def _cmd_check(argv: list[str]) -> int:
    """Execute the 'check' command.

    Returns:
        int: Exit code (0 if the condition is true, 3 if false).
    """
    p = _session_parser("installgate check")
    p.add_argument("--explain", action="store_true")
    p.add_argument("condition", help="Condition id, simple expression, or @complex expression")
    args = p.parse_args(argv)

    registry = _load(args)
    result = registry.is_true(args.condition)
    if args.explain:
        print(json.dumps(registry.explain(args.condition), indent=2, sort_keys=True))
    else:
        print("true" if result else "false")
    return 0 if result else 3


def _cmd_gates(argv: list[str]) -> int:
    args = _session_parser("installgate gates").parse_args(argv)
    gates = GateEvaluator(_load(args))
    print(json.dumps(gates.evaluate_all(), indent=2, sort_keys=True))
    return 0


def _cmd_dump(argv: list[str]) -> int:
    args = _session_parser("installgate dump").parse_args(argv)
    print(json.dumps(_load(args).serialize_all(), indent=2))
    return 0


COMMANDS = {"check": _cmd_check, "gates": _cmd_gates, "dump": _cmd_dump}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the installgate CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        int: Exit code (see module docstring).
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] in {"-h", "--help"}:
        print("Usage: installgate <command> [args]\n\nCommands:\n  check\n  gates\n  dump")
        return 0

    cmd, rest = argv[0], argv[1:]
    if cmd not in COMMANDS:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        return 2
    try:
        return COMMANDS[cmd](rest)
    except InstallGateError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
