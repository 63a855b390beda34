"""Tests for tree post-processing helpers."""

import pytest
from mathrules import (
    Range, check_bounds, fix_minuses, remove_unnecessary_parentheses, flatten_operands,
    apply_node, identifier_node, number_node, parse_expr, format_expr,
)

a = identifier_node("a")
b = identifier_node("b")
c = identifier_node("c")


class TestCheckBounds:
    """Tests for check_bounds()."""

    def test_full_range(self):
        """A range covering every argument needs no splice."""
        assert not check_bounds(Range(0, 3), [a, b, c])

    def test_partial_ranges(self):
        """Ranges missing either end need a splice."""
        assert check_bounds(Range(1, 3), [a, b, c])
        assert check_bounds(Range(0, 2), [a, b, c])

    def test_no_range(self):
        """No range means no splice."""
        assert not check_bounds(None, [a, b, c])


class TestFixMinuses:
    """Tests for fix_minuses()."""

    def test_quotient(self):
        """A subtraction sign is pulled out of a quotient's numerator."""
        node = apply_node("add", [number_node(1), apply_node(
            "div", [apply_node("neg", [a], was_minus=True), b])])
        assert format_expr(fix_minuses(node)) == "1 - a / b"

    def test_product(self):
        """A subtraction sign is pulled out of a product."""
        node = apply_node("add", [number_node(1), apply_node(
            "mul", [a, apply_node("neg", [b], was_minus=True)])])
        assert format_expr(fix_minuses(node)) == "1 - a * b"

    def test_plain_negation_untouched(self):
        """Negations that were not subtractions stay put."""
        node = apply_node("add", [number_node(1), apply_node(
            "mul", [a, apply_node("neg", [b])])])
        assert fix_minuses(node) is node
        assert format_expr(node) == "1 + a * -b"

    def test_outside_sum_untouched(self):
        """Only terms of a sum are rewritten."""
        node = apply_node("div", [apply_node("neg", [a], was_minus=True), b])
        assert fix_minuses(node) is node

    def test_nested(self):
        """Sums below the root are fixed too."""
        inner = apply_node("add", [number_node(1), apply_node(
            "div", [apply_node("neg", [a], was_minus=True), b])])
        node = apply_node("pow", [c, apply_node("neg", [inner])])
        assert format_expr(fix_minuses(node)) == "c^-(1 - a / b)"


class TestRemoveParentheses:
    """Tests for remove_unnecessary_parentheses()."""

    @pytest.mark.parametrize("text,expected", [
        ("2 * (x)", "2 * x"),
        ("(x + 1) * 2", "(x + 1) * 2"),
        ("((x + 1))", "x + 1"),
        ("x^((x + 1))", "x^(x + 1)"),
        ("(x) + (y)", "x + y"),
        ("(2 x) / 3", "2 x / 3"),
        ("2 / (3 x)", "2 / (3 x)"),
        ("(x^2)^3", "(x^2)^3"),
    ])
    def test_strip(self, text, expected):
        """Only grouping that changes the reading is kept."""
        assert format_expr(remove_unnecessary_parentheses(parse_expr(text))) == expected

    def test_unchanged_is_identical(self):
        """A tree without redundant parentheses is returned as is."""
        node = parse_expr("(x + 1) * 2")
        assert remove_unnecessary_parentheses(node) is node


class TestFlattenOperands:
    """Tests for flatten_operands()."""

    @pytest.mark.parametrize("text,expected", [
        ("(1 * 2) * (3 * 4)", "1 * 2 * 3 * 4"),
        ("(1 * (2 * (3 * 4)))", "1 * 2 * 3 * 4"),
        ("(((1 * 2) * 3) * 4)", "1 * 2 * 3 * 4"),
        ("x^(1 * (2 * (3 * 4)))", "x^(1 * 2 * 3 * 4)"),
        ("(1 + 2) + (3 + 4)", "1 + 2 + 3 + 4"),
        ("1 - (2 + 3)", "1 - (2 + 3)"),
    ])
    def test_flatten(self, text, expected):
        """Nested sums and products are spliced into their parent."""
        assert format_expr(flatten_operands(parse_expr(text))) == expected

    def test_mixed_operators_kept(self):
        """Sums inside products are not spliced."""
        assert format_expr(flatten_operands(parse_expr("2 * (x + 1)"))) == "2 * (x + 1)"
