#!/usr/bin/env python3
"""
MATHRULES Feature Demonstration

This script demonstrates the major features of the MATHRULES library.
"""

from mathrules import (
    define_pattern_rule, define_rule, apply_rule, can_apply_rule,
    parse_expr, format_expr, match_node, populate_pattern, pattern_to_match_fn,
    apply_node, is_add, is_parens, is_number, is_variable_factor,
)
from mathrules import rules


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def show(rule, expr_str: str):
    result = apply_rule(rule, parse_expr(expr_str))
    print(f"  {expr_str}  =>  {format_expr(result)}")


def demo_basic_usage():
    """Demonstrate single rule application."""
    section("Basic Usage")

    add_zero = define_pattern_rule("#a + 0", "#a")

    for expr_str in ["2 * (x + 0)", "1 + x + 0 + 2", "((x + 0) + 0) + 0", "x + 1"]:
        show(add_zero, expr_str)


def demo_constraints():
    """Demonstrate placeholder constraints."""
    section("Constraints")

    double = define_pattern_rule("#a + #a", "2 #a", {"a": is_number})

    for expr_str in ["3 + 3", "x + x"]:
        applies = can_apply_rule(double, parse_expr(expr_str))
        print(f"  {expr_str}: {'applies' if applies else 'does not apply'}")

    collect = define_pattern_rule("#a #x + #b #x", "(#a + #b) #x",
                                  {"a": is_number, "b": is_number})
    show(collect, "2 x + 3 x")


def demo_variable_length():
    """Demonstrate ellipsis patterns."""
    section("Variable-Length Patterns")

    result = match_node(parse_expr("#a * #b_0 * ..."),
                        parse_expr("5 * x^2 * y * z * 10"),
                        {"a": is_number, "b": is_variable_factor})
    print(f"  a = {format_expr(result.bindings['a'])}")
    for index, factor in sorted(result.bindings["b"].items()):
        print(f"  b_{index} = {format_expr(factor)}")
    print(f"  range = {result.range}")

    for expr_str in ["1 + 2 + 3 + 4", "x + 1 + 2 + y", "x - 1 + 5"]:
        show(rules.ADD_NUMBERS, expr_str)


def demo_callbacks():
    """Demonstrate rules with rewrite callbacks."""
    section("Rewrite Callbacks")

    def sum_body(node):
        return node.body if is_parens(node) else node

    def distribute(node, bindings, range):
        terms = sum_body(bindings["b"]).args
        return apply_node("add", [
            populate_pattern(parse_expr("#a #arg"), {"a": bindings["a"], "arg": term})
            for term in terms])

    constraints = {"b": lambda node: is_add(sum_body(node))}
    rule = define_rule(pattern_to_match_fn(parse_expr("#a #b"), constraints),
                       distribute, constraints)

    show(rule, "3 (x + 1)")
    show(rule, "(a - b) (x^2 + 2x + 1)")


def demo_catalog():
    """Demonstrate catalog rules."""
    section("Rule Catalog")

    examples = [
        (rules.DISTRIBUTE, "2 * (x - 1)"),
        (rules.BREAK_UP_FRACTION, "(x - 1) / 2"),
        (rules.PRODUCT_RULE, "x^5 * x^3"),
        (rules.POWER_OF_A_PRODUCT, "(x * y)^2"),
        (rules.SIMPLIFY_ARITHMETIC, "-2^2"),
        (rules.ADD_TO_BOTH_SIDES, "x - 3 = 2"),
    ]

    for rule, expr_str in examples:
        print(f"  [{rule.name}]")
        show(rule, expr_str)


def demo_stepping():
    """Demonstrate applying rules one step at a time."""
    section("Step by Step")

    steps = [rules.DISTRIBUTE, rules.SIMPLIFY_ARITHMETIC,
             rules.REMOVE_MULTIPLYING_BY_ONE]
    node = parse_expr("2 * (x + 1) * 1")
    print(f"  {format_expr(node)}")
    for rule in steps:
        node = apply_rule(rule, node)
        print(f"  => {format_expr(node)}  ({rule.name})")


def main():
    """Run all demonstrations."""
    print("\n" + "="*60)
    print(" MATHRULES Feature Demonstration")
    print("="*60)

    demo_basic_usage()
    demo_constraints()
    demo_variable_length()
    demo_callbacks()
    demo_catalog()
    demo_stepping()

    print("\n" + "="*60)
    print(" Demo Complete!")
    print("="*60 + "\n")


if __name__ == "__main__":
    main()
