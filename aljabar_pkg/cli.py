"""Command-line front end.

Sub-commands:
    solve     classify and solve one equation
    system    solve comma-separated equations
    classify  report the equation family only
    eval      evaluate a registered function
    functions list the registered functions

Every sub-command is a thin layer over ``api``; output is human-readable text
or JSON (``--format json``).
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from . import config as _config
from .api import classify_equation, evaluate_function, solve_equation, solve_system
from .config import VERSION
from .logging_config import get_logger, setup_logging
from .registry import default_registry

logger = get_logger("cli")


def _split_names(value: str | None) -> list[str]:
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def print_result_pretty(res: dict[str, Any], output_format: str = "human", show_steps: bool = False) -> None:
    """Print a report dictionary as JSON or as readable text."""
    if output_format == "json":
        print(json.dumps(res))
        return
    if not res.get("ok"):
        print(f"Error: {res.get('error', 'unknown error')}")
        return

    if "name" in res:
        value = res.get("exact")
        if value is None and res.get("numeric") is not None:
            value = f"{res['numeric']:.{_config.OUTPUT_PRECISION}g}"
        if value is None:
            value = "unevaluated"
        print(f"{res['name']} = {value}")
        if res.get("exact") is not None and res.get("numeric") is not None:
            print(f"  ~ {res['numeric']:.{_config.OUTPUT_PRECISION}g}")
        return

    if "equation_type" in res:
        print(f"Type: {res['equation_type']}")
    if "description" in res:
        print(res["description"])
    if "type" in res:
        print(f"Result: {res['type']}")
    if res.get("points"):
        for index, point in enumerate(res["points"], start=1):
            values = ", ".join(f"{name} = {value}" for name, value in point.items())
            print(f"  {index}. {values}")
    elif res.get("exact"):
        approx = res.get("approx") or [None] * len(res["exact"])
        for exact, numeric in zip(res["exact"], approx):
            if numeric is not None and numeric != exact:
                print(f"  {exact}  (~ {numeric})")
            else:
                print(f"  {exact}")
    if res.get("reason"):
        print(f"Note: {res['reason']}")
    if show_steps and res.get("steps"):
        print("Steps:")
        for index, step in enumerate(res["steps"], start=1):
            print(f"  {index}. {step['title']}: {step['body']}")


def _coerce_argument(text: str) -> str | int | float:
    """Integers and floats are passed as numbers, anything else as an expression."""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aljabar", description="Classify and solve equations"
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "--no-numeric-fallback",
        action="store_true",
        help="Disable numeric root-finding fallback",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (significant digits)"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=_config.LOG_LEVEL,
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, default=_config.LOG_FILE, help="Write logs to file")

    commands = parser.add_subparsers(dest="command")

    symbol_options = argparse.ArgumentParser(add_help=False)
    symbol_options.add_argument(
        "--matrices", type=str, help="Comma-separated names of matrix symbols"
    )
    symbol_options.add_argument(
        "--operators", type=str, help="Comma-separated names of operator symbols"
    )

    solve = commands.add_parser("solve", parents=[symbol_options], help="Solve one equation")
    solve.add_argument("equation", help='Equation, e.g. "x^2 - 5x + 6 = 0"')
    solve.add_argument("--var", type=str, help="Variable to solve for")
    solve.add_argument("--steps", action="store_true", help="Show the explanation steps")

    system = commands.add_parser("system", parents=[symbol_options], help="Solve a system")
    system.add_argument("equations", help='Comma-separated equations, e.g. "x+y=3, x-y=1"')
    system.add_argument("--vars", type=str, help="Comma-separated unknowns")
    system.add_argument("--steps", action="store_true", help="Show the explanation steps")

    classify = commands.add_parser(
        "classify", parents=[symbol_options], help="Report the equation type"
    )
    classify.add_argument("equation")
    classify.add_argument("--var", type=str, help="Variable of interest")

    evaluate = commands.add_parser("eval", help="Evaluate a registered function")
    evaluate.add_argument("name", help="Function name, e.g. gamma")
    evaluate.add_argument("args", nargs="*", help="Arguments, e.g. 5 or 1/2")

    commands.add_parser("functions", help="List the registered functions")
    return parser


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for the Aljabar CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.version:
        print(VERSION)
        return 0
    if args.precision and args.precision > 0:
        _config.OUTPUT_PRECISION = int(args.precision)
    precision = _config.OUTPUT_PRECISION
    numeric_fallback = _config.NUMERIC_FALLBACK_ENABLED and not args.no_numeric_fallback

    if args.command == "solve":
        report = solve_equation(
            args.equation,
            args.var,
            matrices=_split_names(args.matrices),
            operators=_split_names(args.operators),
            precision=precision,
            numeric_fallback=numeric_fallback,
        )
        print_result_pretty(report.to_dict(), args.format, args.steps)
    elif args.command == "system":
        report = solve_system(
            args.equations,
            _split_names(args.vars) or None,
            matrices=_split_names(args.matrices),
            operators=_split_names(args.operators),
            precision=precision,
            numeric_fallback=numeric_fallback,
        )
        print_result_pretty(report.to_dict(), args.format, args.steps)
    elif args.command == "classify":
        report = classify_equation(
            args.equation,
            args.var,
            matrices=_split_names(args.matrices),
            operators=_split_names(args.operators),
        )
        print_result_pretty(report.to_dict(), args.format)
    elif args.command == "eval":
        report = evaluate_function(args.name, [_coerce_argument(a) for a in args.args])
        print_result_pretty(report.to_dict(), args.format)
    elif args.command == "functions":
        names = list(default_registry().names())
        if args.format == "json":
            print(json.dumps({"ok": True, "functions": names}))
        else:
            print(", ".join(names))
        return 0
    else:
        parser.print_help()
        return 1

    logger.debug("Command %s finished: ok=%s", args.command, report.ok)
    return 0 if report.ok else 1
