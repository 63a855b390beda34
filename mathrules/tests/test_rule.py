"""Tests for defining and applying rules."""

import logging

import pytest
from mathrules import (
    MalformedPatternError, ParseError, Rule,
    define_rule, define_pattern_rule, apply_rule, can_apply_rule,
    pattern_to_match_fn, populate_pattern, evaluate,
    parse_expr, format_expr, apply_node, number_node,
    is_add, is_number, is_parens,
    binary_only, ARITHMETIC_PRELUDE,
)


def rewrite(rule, text):
    return format_expr(apply_rule(rule, parse_expr(text)))


def _body(node):
    return node.body if is_parens(node) else node


def distribute(node, bindings, range):
    terms = _body(bindings["b"]).args
    return apply_node("add", [
        populate_pattern(parse_expr("#a #arg"), {"a": bindings["a"], "arg": term})
        for term in terms])


def distribute_rule():
    constraints = {"b": lambda node: is_add(_body(node))}
    return define_rule(pattern_to_match_fn(parse_expr("#a #b"), constraints),
                       distribute, constraints)


def sum_coefficients_rule():
    def match(node):
        return pattern_to_match_fn(parse_expr("#a #x"),
                                   {"a": lambda n: is_add(_body(n))})(node)

    def sum_terms(node, bindings, range):
        total = evaluate(bindings["a"])
        return populate_pattern(parse_expr("#a #x"),
                                {"a": number_node(total), "x": bindings["x"]})

    return define_rule(match, sum_terms)


class TestRewrite:
    """Tests for apply_rule() with pattern rules."""

    @pytest.mark.parametrize("expr,expected", [
        ("2 * (x + 0)", "2 * x"),
        ("(x + 0) + 0", "x + 0"),
        ("1 + x + 0 + 2", "1 + x + 2"),
        ("((x + 0) + 0) + 0", "(x + 0) + 0"),
        ("(x + 0) + (x + 0)", "x + (x + 0)"),
        ("x + 0 + x + 0", "x + x + 0"),
    ])
    def test_remove_adding_zero(self, expr, expected):
        """One innermost, leftmost location is rewritten per application."""
        rule = define_pattern_rule("#a + 0", "#a")
        assert rewrite(rule, expr) == expected

    def test_replacement_grouped_in_sum(self):
        """A sum replacing a product inside a sum stays grouped."""
        rule = define_pattern_rule("2 #a", "#a + #a")
        assert rewrite(rule, "1 + 2 x + 2") == "1 + (x + x) + 2"

    def test_replacement_grouped_in_product(self):
        """A sum replacing a run of a product stays grouped."""
        rule = define_pattern_rule("2 #a", "#a + #a")
        assert rewrite(rule, "1 * 2 x * 3") == "1 * (x + x) * 3"

    def test_collect_like_terms(self):
        """A repeated placeholder collapses to one."""
        rule = define_pattern_rule("#a + #a", "2 #a")
        assert rewrite(rule, "x + x") == "2 x"

    def test_coefficients(self):
        """Numeric coefficients of a shared factor are grouped."""
        rule = define_pattern_rule("#a #x + #b #x", "(#a + #b) #x",
                                   {"a": is_number, "b": is_number})
        assert rewrite(rule, "2 x + 3 x") == "(2 + 3) x"
        assert not can_apply_rule(rule, parse_expr("(a + b) x"))

    def test_eval_run(self):
        """A '...' run of numbers is evaluated in place."""
        rule = define_pattern_rule("#a_0 + ...", "#eval(#a_0 + ...)", {"a": is_number})
        assert rewrite(rule, "x + 5 - 2") == "x + 3"
        assert rewrite(rule, "1 + 2 + 3 + 4") == "10"

    def test_prelude(self):
        """Pattern rules evaluate with their prelude."""
        prelude = {**ARITHMETIC_PRELUDE, "mod": binary_only(lambda a, b: a % b)}
        rule = define_pattern_rule("mod(#a, #b)", "#eval(mod(#a, #b))", prelude=prelude)
        assert rewrite(rule, "mod(7, 3) x") == "1 x"

    def test_tree_patterns(self):
        """Patterns may be given as trees."""
        rule = define_pattern_rule(parse_expr("#a * 1"), parse_expr("#a"))
        assert rewrite(rule, "y * 1") == "y"

    def test_deterministic(self):
        """Applying a rule to equal inputs gives equal outputs."""
        rule = define_pattern_rule("#a + 0", "#a")
        assert apply_rule(rule, parse_expr("1 + x + 0")) == \
            apply_rule(rule, parse_expr("1 + x + 0"))

    def test_no_match_returns_input(self):
        """When nothing matches the same object is returned."""
        rule = define_pattern_rule("#a + 0", "#a")
        node = parse_expr("x + 1")
        assert apply_rule(rule, node) is node

    def test_input_not_modified(self):
        """Applying a rule leaves the input tree intact."""
        rule = define_pattern_rule("#a + 0", "#a")
        node = parse_expr("2 * (x + 0)")
        apply_rule(rule, node)
        assert format_expr(node) == "2 * (x + 0)"


class TestCanApply:
    """Tests for can_apply_rule()."""

    def test_constraint_passes(self):
        """A rule applies when its constraints hold."""
        rule = define_pattern_rule("#a + #a", "2 #a", {"a": is_number})
        assert can_apply_rule(rule, parse_expr("3 + 3"))

    def test_constraint_fails(self):
        """A rule does not apply when a constraint fails."""
        rule = define_pattern_rule("#a + #a", "2 #a", {"a": is_number})
        assert not can_apply_rule(rule, parse_expr("x + x"))

    def test_nested(self):
        """A rule applies anywhere in the tree."""
        rule = define_pattern_rule("#a + 0", "#a")
        assert can_apply_rule(rule, parse_expr("x^(y + 0)"))

    def test_no_match(self):
        """can_apply_rule is False without a match."""
        rule = define_pattern_rule("#a + 0", "#a")
        assert not can_apply_rule(rule, parse_expr("x + 1"))


class TestCallbackRules:
    """Tests for rules with rewrite callbacks."""

    def test_distribute(self):
        """A callback can build a replacement from bindings."""
        assert rewrite(distribute_rule(), "3 (x + 1)") == "3 x + 3 1"

    def test_distribute_compound(self):
        """Bound subtrees are reused in every term."""
        assert rewrite(distribute_rule(), "(a - b) (x^2 + 2x + 1)") == \
            "(a - b) x^2 + (a - b) (2 x) + (a - b) 1"

    def test_sum_coefficients(self):
        """A callback may evaluate a bound subtree."""
        rule = sum_coefficients_rule()
        assert rewrite(rule, "(1 - 2 + 3) x") == "2 x"
        assert rewrite(rule, "(1 + 2 + 3) x") == "6 x"

    def test_callback_receives_range(self):
        """A callback sees the consumed range of a partial match."""
        seen = []

        def record(node, bindings, range):
            seen.append(range)
            return bindings["a"]

        rule = define_rule(pattern_to_match_fn(parse_expr("#a + 0")), record)
        assert rewrite(rule, "1 + x + 0") == "1 + x"
        assert tuple(seen[0]) == (1, 3)


class TestDefinePatternRule:
    """Tests for define_pattern_rule() validation and metadata."""

    def test_unbound_rewrite_placeholder(self):
        """Rewrite placeholders must be bound by the match pattern."""
        with pytest.raises(MalformedPatternError):
            define_pattern_rule("#a + 0", "#b")

    def test_malformed_match_pattern(self):
        """Structurally invalid match patterns are rejected."""
        with pytest.raises(MalformedPatternError):
            define_pattern_rule("... + #a", "#a")

    def test_parse_error(self):
        """Unparseable pattern text raises ParseError."""
        with pytest.raises(ParseError):
            define_pattern_rule("#a +", "#a")

    def test_metadata(self):
        """Rules carry their name and description."""
        rule = define_pattern_rule("#a + 0", "#a", name="ZERO", description="Drop zero")
        assert isinstance(rule, Rule)
        assert rule.name == "ZERO"
        assert repr(rule) == 'Rule(@ZERO "Drop zero")'
        assert repr(define_rule(lambda n: None, lambda n, b, r: n)) == "Rule(<anonymous>)"

    def test_constraints_copied(self):
        """The rule keeps its own copy of the constraints."""
        constraints = {"a": is_number}
        rule = define_pattern_rule("#a + #a", "2 #a", constraints)
        constraints.clear()
        assert not can_apply_rule(rule, parse_expr("x + x"))
        assert "a" in rule.constraints


class TestLogging:
    """Tests for debug logging during rule application."""

    def test_logs_match(self, caplog):
        """A successful application is logged at DEBUG."""
        rule = define_pattern_rule("#a + 0", "#a", name="ZERO")
        with caplog.at_level(logging.DEBUG, logger="mathrules.rule"):
            apply_rule(rule, parse_expr("x + 0"))
        assert "matched x + 0" in caplog.text

    def test_logs_no_match(self, caplog):
        """A rule that does not apply is logged at DEBUG."""
        rule = define_pattern_rule("#a + 0", "#a", name="ZERO")
        with caplog.at_level(logging.DEBUG, logger="mathrules.rule"):
            apply_rule(rule, parse_expr("x + 1"))
        assert "does not apply to x + 1" in caplog.text
