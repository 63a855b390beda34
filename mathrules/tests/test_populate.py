"""Tests for populating rewrite patterns."""

import pytest
from mathrules import (
    EvaluationError, MalformedPatternError, Number,
    populate_pattern, pattern_to_rewrite_fn, match_node,
    parse_expr, format_expr, identifier_node, number_node,
    binary_only, ARITHMETIC_PRELUDE,
)

x = identifier_node("x")
y = identifier_node("y")
z = identifier_node("z")


def populate(pattern, bindings, prelude=None):
    return format_expr(populate_pattern(parse_expr(pattern), bindings, prelude))


class TestPopulate:
    """Tests for populate_pattern()."""

    def test_placeholders(self):
        """Placeholders are replaced by their bindings."""
        assert populate("#a #arg", {"a": x, "arg": y}) == "x y"

    def test_repeated_placeholder(self):
        """A placeholder may be used more than once."""
        assert populate("#a + #a", {"a": parse_expr("2 y")}) == "2 y + 2 y"

    def test_unbound_placeholder(self):
        """Populating an unbound placeholder raises MalformedPatternError."""
        with pytest.raises(MalformedPatternError):
            populate_pattern(parse_expr("#a + #b"), {"a": x})

    def test_pattern_unchanged(self):
        """Populating leaves the pattern tree intact."""
        pattern = parse_expr("#a + 1")
        populate_pattern(pattern, {"a": x})
        assert format_expr(pattern) == "#a + 1"

    def test_family_expansion(self):
        """A '...' group expands to the family's length."""
        assert populate("#a_0 + ...", {"a": {0: x, 1: y, 2: z}}) == "x + y + z"

    def test_family_template(self):
        """The repeated element may be a compound template."""
        assert populate("#a * #b_0 + ...", {"a": number_node(2), "b": {0: x, 1: y}}) == \
            "2 * x + 2 * y"

    def test_family_in_function(self):
        """Groups expand inside function arguments."""
        assert populate("gcd(#a_0, ...)", {"a": {0: number_node(4), 1: number_node(6)}}) == \
            "gcd(4, 6)"

    def test_nested_group(self):
        """A group nested in a larger pattern expands in place."""
        bindings = {"a": x, "b": {0: number_node(5), 1: number_node(3)}}
        assert populate("#a^(#b_0 + ...)", bindings) == "x^(5 + 3)"

    def test_empty_family(self):
        """Expanding an unbound family raises MalformedPatternError."""
        with pytest.raises(MalformedPatternError):
            populate_pattern(parse_expr("#a_0 + ..."), {})

    def test_stray_ellipsis(self):
        """A leading '...' cannot be populated."""
        with pytest.raises(MalformedPatternError):
            populate_pattern(parse_expr("... + #a"), {"a": x})

    def test_signs_restored(self):
        """Subtracted terms stay subtracted."""
        result = match_node(parse_expr("#a_0 + ..."), parse_expr("x - y + z"))
        assert populate("#a_0 + ...", result.bindings) == "x - y + z"

    def test_signs_on_templates(self):
        """A restored sign wraps the whole repeated element."""
        result = match_node(parse_expr("#a_0 + ..."), parse_expr("x - 1"))
        assert populate("#a_0 / 2 + ...", result.bindings) == "x / 2 - 1 / 2"


class TestEvalMarker:
    """Tests for #eval(...) in rewrite patterns."""

    def test_eval(self):
        """#eval evaluates its populated argument."""
        result = populate_pattern(parse_expr("#eval(#a + #b)"),
                                  {"a": number_node(2), "b": number_node(3)})
        assert result == Number(5)

    def test_eval_inside_tree(self):
        """#eval may appear below other nodes."""
        assert populate("#eval(#a * #b) x", {"a": number_node(2), "b": number_node(3)}) == "6 x"

    def test_eval_family(self):
        """#eval may contain a '...' group."""
        bindings = {"a": {0: number_node(1), 1: number_node(2), 2: number_node(3)}}
        assert populate("#eval(#a_0 + ...)", bindings) == "6"

    def test_eval_with_signs(self):
        """Subtracted terms are subtracted when evaluated."""
        result = match_node(parse_expr("#a_0 + ..."), parse_expr("5 - 2"))
        assert populate("#eval(#a_0 + ...)", result.bindings) == "3"

    def test_eval_custom_prelude(self):
        """#eval uses the given prelude."""
        prelude = {**ARITHMETIC_PRELUDE, "mod": binary_only(lambda a, b: a % b)}
        bindings = {"a": number_node(7), "b": number_node(3)}
        assert populate("#eval(mod(#a, #b))", bindings, prelude) == "1"

    def test_eval_non_number(self):
        """Evaluating a variable raises EvaluationError."""
        with pytest.raises(EvaluationError):
            populate_pattern(parse_expr("#eval(#a + 1)"), {"a": x})

    def test_eval_division_by_zero(self):
        """Division by zero propagates."""
        with pytest.raises(ZeroDivisionError):
            populate_pattern(parse_expr("#eval(#a / 0)"), {"a": number_node(1)})


class TestRewriteFn:
    """Tests for pattern_to_rewrite_fn()."""

    def test_strips_parentheses(self):
        """The populated result has redundant parentheses removed."""
        rewrite_fn = pattern_to_rewrite_fn(parse_expr("(#a)"))
        assert rewrite_fn(None, {"a": x}) == x

    def test_keeps_needed_parentheses(self):
        """Grouping needed for reading is kept."""
        rewrite_fn = pattern_to_rewrite_fn(parse_expr("#a * (#b + 1)"))
        assert format_expr(rewrite_fn(None, {"a": x, "b": y})) == "x * (y + 1)"

    def test_validates(self):
        """Malformed rewrite patterns are rejected when compiled."""
        with pytest.raises(MalformedPatternError):
            pattern_to_rewrite_fn(parse_expr("#a + ..."))
