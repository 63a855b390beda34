"""
A catalog of algebra rules built on the MATHRULES engine.

Each rule rewrites one location per application; combining them into a
simplification strategy is left to the caller.

    from mathrules.rules import REMOVE_ADDING_ZERO, CATALOG
    apply_rule(REMOVE_ADDING_ZERO, parse_expr("x + 0"))   # => x
    apply_rule(CATALOG["DISTRIBUTE"], parse_expr("2 (x + 1)"))
"""

from typing import Dict, Optional

from .evaluator import ARITHMETIC_PRELUDE, evaluate
from .matcher import Bindings, Constraints, MatchResult
from .nodes import Apply, Node, NumericType, is_number, number_node
from .rule import Rule, define_pattern_rule, define_rule

CATALOG: Dict[str, Rule] = {}


def _pattern_rule(name: str, match: str, rewrite: str, description: str,
                  constraints: Optional[Constraints] = None) -> Rule:
    rule = define_pattern_rule(match, rewrite, constraints, name=name,
                               description=description)
    CATALOG[name] = rule
    return rule


def _signed_number(value: NumericType) -> Node:
    """Number node, written as a negation when value is negative."""
    if value < 0:
        return Apply("neg", [number_node(-value)])
    return number_node(value)


# ============================================================
# Arithmetic
# ============================================================

def _arithmetic_match(node: Node) -> Optional[MatchResult]:
    if not isinstance(node, Apply) or node.op not in ARITHMETIC_PRELUDE:
        return None
    if is_number(node) or not all(is_number(arg) for arg in node.args):
        return None
    return MatchResult(node, Bindings())


# e.g. 2 + 2 -> 4, 2 * 3 -> 6, -2^2 -> -4
SIMPLIFY_ARITHMETIC = define_rule(
    _arithmetic_match,
    lambda node, bindings, range: _signed_number(evaluate(node)),
    name="SIMPLIFY_ARITHMETIC",
    description="Evaluate an operation whose arguments are all numbers",
)
CATALOG["SIMPLIFY_ARITHMETIC"] = SIMPLIFY_ARITHMETIC

# e.g. x + 1 + 2 + y -> x + 3 + y
ADD_NUMBERS = _pattern_rule(
    "ADD_NUMBERS", "#a_0 + ...", "#eval(#a_0 + ...)",
    "Add a run of adjacent numbers", {"a": is_number})

# e.g. --3 -> 3
NEGATION = _pattern_rule("NEGATION", "--#a", "#a", "Cancel a double negation")

# e.g. 2/-1 -> -2
DIVISION_BY_NEGATIVE_ONE = _pattern_rule(
    "DIVISION_BY_NEGATIVE_ONE", "#a / -1", "-#a", "Divide by negative one")

# e.g. 2/1 -> 2
DIVISION_BY_ONE = _pattern_rule("DIVISION_BY_ONE", "#a / 1", "#a", "Divide by one")

# e.g. x * 0 -> 0
MULTIPLY_BY_ZERO = _pattern_rule("MULTIPLY_BY_ZERO", "#a * 0", "0", "Multiply by zero")

# e.g. 0 * x -> 0
MULTIPLY_BY_ZERO_REVERSE = _pattern_rule(
    "MULTIPLY_BY_ZERO_REVERSE", "0 * #a", "0", "Multiply zero by a factor")

# e.g. x^0 -> 1
REDUCE_EXPONENT_BY_ZERO = _pattern_rule(
    "REDUCE_EXPONENT_BY_ZERO", "#a ^ 0", "1", "Raise to the power zero")

# e.g. 0 / x -> 0
REDUCE_ZERO_NUMERATOR = _pattern_rule(
    "REDUCE_ZERO_NUMERATOR", "0 / #a", "0", "Divide zero")

# e.g. 2 + 0 -> 2
REMOVE_ADDING_ZERO = _pattern_rule(
    "REMOVE_ADDING_ZERO", "#a + 0", "#a", "Remove an added zero")

# e.g. 0 + 2 -> 2
REMOVE_ADDING_ZERO_REVERSE = _pattern_rule(
    "REMOVE_ADDING_ZERO_REVERSE", "0 + #a", "#a", "Remove a leading added zero")

# e.g. x^1 -> x
REMOVE_EXPONENT_BY_ONE = _pattern_rule(
    "REMOVE_EXPONENT_BY_ONE", "#a ^ 1", "#a", "Remove an exponent of one")

# e.g. 1^x -> 1
REMOVE_EXPONENT_BASE_ONE = _pattern_rule(
    "REMOVE_EXPONENT_BASE_ONE", "1 ^ #a", "1", "Raise one to a power")

# e.g. x * -1 -> -x
REMOVE_MULTIPLYING_BY_NEGATIVE_ONE = _pattern_rule(
    "REMOVE_MULTIPLYING_BY_NEGATIVE_ONE", "#a * -1", "-#a",
    "Multiply by negative one")

# e.g. -1 * x -> -x
REMOVE_MULTIPLYING_BY_NEGATIVE_ONE_REVERSE = _pattern_rule(
    "REMOVE_MULTIPLYING_BY_NEGATIVE_ONE_REVERSE", "-1 * #a", "-#a",
    "Multiply negative one by a factor")

# e.g. x * 1 -> x
REMOVE_MULTIPLYING_BY_ONE = _pattern_rule(
    "REMOVE_MULTIPLYING_BY_ONE", "#a * 1", "#a", "Multiply by one")

# e.g. 1 * x -> x
REMOVE_MULTIPLYING_BY_ONE_REVERSE = _pattern_rule(
    "REMOVE_MULTIPLYING_BY_ONE_REVERSE", "1 * #a", "#a", "Multiply one by a factor")

# e.g. 2 - -3 -> 2 + 3
RESOLVE_DOUBLE_MINUS = _pattern_rule(
    "RESOLVE_DOUBLE_MINUS", "#a - -#b", "#a + #b", "Subtract a negative")

# e.g. -3 * -2 -> 3 * 2
MULTIPLY_NEGATIVES = _pattern_rule(
    "MULTIPLY_NEGATIVES", "-#a * -#b", "#a * #b", "Multiply two negatives")


# ============================================================
# Fractions and Division
# ============================================================

# e.g. (x + 1) / 2 -> x / 2 + 1 / 2
BREAK_UP_FRACTION = _pattern_rule(
    "BREAK_UP_FRACTION", "(#a_0 + ...) / #b", "#a_0 / #b + ...",
    "Split a fraction over its numerator's terms")

# e.g. -2 / -3 -> 2 / 3
CANCEL_MINUSES = _pattern_rule(
    "CANCEL_MINUSES", "-#a / -#b", "#a / #b", "Cancel minus signs in a fraction")

# e.g. 2 / -3 -> -2 / 3
SIMPLIFY_SIGNS = _pattern_rule(
    "SIMPLIFY_SIGNS", "#a / -#b", "-#a / #b", "Move the denominator's sign up")

# e.g. 1/2 * 2/3 -> (1 * 2) / (2 * 3)
MULTIPLY_FRACTIONS = _pattern_rule(
    "MULTIPLY_FRACTIONS", "#a / #b * #c / #d", "(#a * #c) / (#b * #d)",
    "Multiply two fractions")

# e.g. 2/3/4 -> 2/(3*4)
SIMPLIFY_DIVISION = _pattern_rule(
    "SIMPLIFY_DIVISION", "#a / #b / #c", "#a / (#b * #c)",
    "Combine repeated division")

# e.g. x/(2/3) -> x * 3/2
MULTIPLY_BY_INVERSE = _pattern_rule(
    "MULTIPLY_BY_INVERSE", "#a / (#b / #c)", "#a * (#c / #b)",
    "Divide by a fraction")

# e.g. |-3| -> 3
ABSOLUTE_VALUE = _pattern_rule(
    "ABSOLUTE_VALUE", "|-#a|", "#a", "Absolute value of a negation")


# ============================================================
# Exponents
# ============================================================

# e.g. x^5 * x^3 -> x^(5 + 3)
PRODUCT_RULE = _pattern_rule(
    "PRODUCT_RULE", "#a^#b_0 * ...", "#a^(#b_0 + ...)",
    "Multiply powers of the same base")

# e.g. x^5 / x^3 -> x^(5 - 3)
QUOTIENT_RULE = _pattern_rule(
    "QUOTIENT_RULE", "#a^#p / #a^#q", "#a^(#p - #q)",
    "Divide powers of the same base")

# e.g. (a * b)^x -> a^x * b^x
POWER_OF_A_PRODUCT = _pattern_rule(
    "POWER_OF_A_PRODUCT", "(#a_0 * ...)^#b", "#a_0^#b * ...",
    "Raise each factor of a product to a power")

# e.g. (1 / 2)^n -> 1^n / 2^n
POWER_OF_A_QUOTIENT = _pattern_rule(
    "POWER_OF_A_QUOTIENT", "(#a / #b)^#n", "#a^#n / #b^#n",
    "Raise numerator and denominator to a power")


# ============================================================
# Distribution
# ============================================================

# e.g. 2 * (x + 1) -> 2 * x + 2 * 1
DISTRIBUTE = _pattern_rule(
    "DISTRIBUTE", "#a * (#b_0 + ...)", "#a * #b_0 + ...",
    "Distribute a factor over a sum")

# e.g. (x + 1) * 2 -> x * 2 + 1 * 2
DISTRIBUTE_RIGHT = _pattern_rule(
    "DISTRIBUTE_RIGHT", "(#b_0 + ...) * #a", "#b_0 * #a + ...",
    "Distribute a trailing factor over a sum")

# e.g. -(x + 1) -> -1 * x + -1 * 1
DISTRIBUTE_NEGATIVE_ONE = _pattern_rule(
    "DISTRIBUTE_NEGATIVE_ONE", "-(#a_0 + ...)", "-1 * #a_0 + ...",
    "Distribute a negation over a sum")


# ============================================================
# Equations
# ============================================================

# e.g. x - 3 = 2 -> x - 3 + 3 = 2 + 3
ADD_TO_BOTH_SIDES = _pattern_rule(
    "ADD_TO_BOTH_SIDES", "#x - #a = #y", "#x - #a + #a = #y + #a",
    "Add the subtracted term to both sides")

# e.g. x + 3 = 2 -> x + 3 - 3 = 2 - 3
SUBTRACT_FROM_BOTH_SIDES = _pattern_rule(
    "SUBTRACT_FROM_BOTH_SIDES", "#x + #a = #b", "#x + #a - #a = #b - #a",
    "Subtract the added term from both sides")

# e.g. 2 = x -> x = 2
SWAP_SIDES = _pattern_rule("SWAP_SIDES", "#a = #b", "#b = #a", "Swap the sides of an equation")
