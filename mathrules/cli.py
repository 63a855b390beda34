#!/usr/bin/env python3
"""
MATHRULES Command-Line Interface

Applies catalog rules or an ad-hoc pattern rule to expressions.

Usage:
    mathrules --list                                  # List catalog rules
    mathrules -e "2 * (x + 0)" -r REMOVE_ADDING_ZERO  # Apply one rule once
    mathrules -e "x + 0 + 0" -r remove-adding-zero -r remove-adding-zero
    mathrules -e "x + x" --match "#a + #a" --rewrite "2 #a"
    mathrules -e "1 + 2 + x" --match "#a_0 + ..." --rewrite "#eval(#a_0 + ...)" -n a
    mathrules -e "x + 0" -r REMOVE_ADDING_ZERO --check
    echo "x * 1" | mathrules -r REMOVE_MULTIPLYING_BY_ONE  # Filter mode

Each rule given with -r is applied once, in order, to every expression.
The ad-hoc --match/--rewrite rule is applied after the named rules.
"""

import argparse
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Tuple

from .evaluator import ARITHMETIC_PRELUDE, NUMBER_THEORY_PRELUDE, PreludeType
from .nodes import is_number
from .parser import format_expr, parse_expr
from .rule import Rule, apply_rule, can_apply_rule, define_pattern_rule
from .rules import CATALOG

logger = logging.getLogger(__name__)

# Built-in preludes
BUILTIN_PRELUDES: Dict[str, PreludeType] = {
    "arithmetic": ARITHMETIC_PRELUDE,
    "number-theory": NUMBER_THEORY_PRELUDE,
}


def load_custom_prelude(path_str: str) -> Optional[PreludeType]:
    """
    Load a custom prelude from a Python file.

    The file should define a PRELUDE dict.

    Args:
        path_str: Path to a .py file

    Returns:
        The PRELUDE dict from the file, or None if not found
    """
    path = Path(path_str)
    if not path.exists():
        return None
    spec = importlib.util.spec_from_file_location("custom_prelude", path)
    if spec is None or spec.loader is None:
        return None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return getattr(module, "PRELUDE", None)


def resolve_prelude(name: str) -> Optional[PreludeType]:
    """Look up a built-in prelude by name, or load one from a path."""
    if name.lower() in BUILTIN_PRELUDES:
        return BUILTIN_PRELUDES[name.lower()]
    return load_custom_prelude(name)


def lookup_rule(name: str) -> Optional[Rule]:
    """Find a catalog rule; names are case-insensitive and accept dashes."""
    return CATALOG.get(name.upper().replace("-", "_"))


def list_rules() -> str:
    """One line per catalog rule: name and description."""
    width = max(len(name) for name in CATALOG)
    return "\n".join(
        f"{name:<{width}}  {rule.description or ''}".rstrip()
        for name, rule in sorted(CATALOG.items()))


class RuleRunner:
    """Applies a fixed list of rules to expressions."""

    def __init__(self, rules: List[Tuple[str, Rule]], check: bool = False):
        self.rules = rules
        self.check = check

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single expression.

        Returns the text to print, or None for blank lines.
        """
        line = line.strip()
        if not line:
            return None

        try:
            node = parse_expr(line)
            if self.check:
                return "\n".join(
                    f"{label}: {'applies' if can_apply_rule(rule, node) else 'does not apply'}"
                    for label, rule in self.rules)
            for label, rule in self.rules:
                node = apply_rule(rule, node)
                logger.debug("after %s: %s", label, format_expr(node))
            return format_expr(node)
        except (ValueError, ArithmeticError) as e:
            return f"Error: {e}"

    def run_expression(self, expr_str: str, out: Optional[TextIO] = None) -> int:
        """
        Rewrite a single expression.

        Returns:
            Exit code (0 for success)
        """
        result = self.process_line(expr_str)
        if result:
            print(result, file=out)
            if result.startswith("Error"):
                return 1
        return 0

    def run_stdin(self, stream: Optional[TextIO] = None,
                  out: Optional[TextIO] = None) -> int:
        """
        Rewrite expressions read line by line.

        Returns:
            Exit code (0 for success)
        """
        status = 0
        for line in stream if stream is not None else sys.stdin:
            result = self.process_line(line)
            if result:
                print(result, file=out)
                if result.startswith("Error"):
                    status = 1
        return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mathrules",
        description="MATHRULES - pattern-based rewriting of algebraic expressions",
        epilog="Examples:\n"
               "  mathrules --list                              List catalog rules\n"
               "  mathrules -e '2 (x + 0)' -r remove-adding-zero  Apply a rule\n"
               "  mathrules -e 'x + x' --match '#a + #a' --rewrite '2 #a'\n"
               "  echo 'x * 1' | mathrules -r remove-multiplying-by-one  Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "-e", "--expr",
        help="Expression to rewrite (default: read lines from stdin)"
    )

    parser.add_argument(
        "-r", "--rule",
        action="append",
        default=[],
        help="Catalog rule to apply (can be specified multiple times)"
    )

    parser.add_argument(
        "--match",
        help="Match pattern of an ad-hoc rule"
    )

    parser.add_argument(
        "--rewrite",
        help="Rewrite pattern of an ad-hoc rule"
    )

    parser.add_argument(
        "-n", "--numeric",
        action="append",
        default=[],
        metavar="NAME",
        help="Constrain an ad-hoc placeholder to numbers (can be repeated)"
    )

    parser.add_argument(
        "-p", "--prelude",
        default="arithmetic",
        help="Prelude for #eval in ad-hoc rules (arithmetic, number-theory, or path.py)"
    )

    parser.add_argument(
        "--check",
        action="store_true",
        help="Report whether each rule applies instead of applying it"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List catalog rules and exit"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log matching details to stderr"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(name)s: %(message)s")

    if args.list:
        print(list_rules())
        sys.exit(0)

    rules: List[Tuple[str, Rule]] = []
    for name in args.rule:
        rule = lookup_rule(name)
        if rule is None:
            print(f"Unknown rule: {name}", file=sys.stderr)
            sys.exit(1)
        rules.append((rule.name, rule))

    if (args.match is None) != (args.rewrite is None):
        print("--match and --rewrite must be given together", file=sys.stderr)
        sys.exit(1)

    if args.match is not None:
        prelude = resolve_prelude(args.prelude)
        if prelude is None:
            print(f"Unknown prelude: {args.prelude}", file=sys.stderr)
            sys.exit(1)
        constraints = {name: is_number for name in args.numeric}
        try:
            adhoc = define_pattern_rule(args.match, args.rewrite, constraints,
                                        name="ad-hoc", prelude=prelude)
        except ValueError as e:
            print(f"Error in pattern: {e}", file=sys.stderr)
            sys.exit(1)
        rules.append((f"{args.match} => {args.rewrite}", adhoc))

    if not rules:
        print("No rules given (use -r NAME or --match/--rewrite)", file=sys.stderr)
        sys.exit(1)

    runner = RuleRunner(rules, check=args.check)

    if args.expr is not None:
        # Expression mode
        sys.exit(runner.run_expression(args.expr))

    elif not sys.stdin.isatty():
        # Pipe/filter mode (stdin is not a terminal)
        sys.exit(runner.run_stdin())

    else:
        parser.error("no expression given (use -e EXPR or pipe expressions on stdin)")


if __name__ == "__main__":
    main()
