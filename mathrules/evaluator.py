"""
Numeric evaluation for MATHRULES.

The rewriting engine performs no arithmetic itself.  Rewrite patterns
containing an #eval(...) marker call evaluate() on the populated argument,
and client rules may call it directly.

Operators are looked up in a prelude: a dict mapping an operator name to a
fold handler that receives the list of already-evaluated arguments.  A
handler returns None when it cannot fold the given arity.

    from mathrules.evaluator import ARITHMETIC_PRELUDE, binary_only

    MY_PRELUDE = {**ARITHMETIC_PRELUDE, "mod": binary_only(lambda a, b: a % b)}
"""

import math
from typing import Callable, Dict, List, Optional

from .nodes import Apply, Node, Number, NumericType, Parentheses

# Fold handler: receives list of numeric args, returns result or None (can't fold)
FoldHandler = Callable[[List[NumericType]], Optional[NumericType]]
PreludeType = Dict[str, FoldHandler]


class EvaluationError(ValueError):
    """Raised when a node cannot be reduced to a number."""


# ============================================================
# Numeric Helpers
# ============================================================

def normalize(value: NumericType) -> NumericType:
    """Preserve integer type when a float result is integral."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def gcd(*values: int) -> int:
    """Greatest common divisor of any number of integers."""
    return math.gcd(*(int(v) for v in values))


def lcm(*values: int) -> int:
    """Least common multiple of any number of integers."""
    return math.lcm(*(int(v) for v in values))


def nth_root(value: NumericType, n: int = 2) -> NumericType:
    """
    Real n-th root, exact for perfect powers.

    Odd roots of negative numbers are negative; even roots of negative
    numbers raise EvaluationError.

    Examples:
        nth_root(27, 3) -> 3
        nth_root(-8, 3) -> -2
        nth_root(2)     -> 1.4142135623730951
    """
    n = int(n)
    if n <= 0:
        raise EvaluationError(f"nth_root: invalid root index {n}")
    if value < 0:
        if n % 2 == 0:
            raise EvaluationError(f"nth_root: even root of negative number {value}")
        return -nth_root(-value, n)
    root = value ** (1.0 / n)
    rounded = round(root)
    if rounded ** n == value:
        return rounded
    return root


def prime_factorization(n: int) -> List[int]:
    """
    Prime factors of n in ascending order, with repetition.

    Example:
        prime_factorization(12) -> [2, 2, 3]
    """
    n = int(n)
    if n < 2:
        return []
    factors = []
    divisor = 2
    while divisor * divisor <= n:
        while n % divisor == 0:
            factors.append(divisor)
            n //= divisor
        divisor += 1
    if n > 1:
        factors.append(n)
    return factors


def _divide(a: NumericType, b: NumericType) -> NumericType:
    if isinstance(a, int) and isinstance(b, int) and b != 0 and a % b == 0:
        return a // b
    return a / b


# ============================================================
# Fold Operation Builders
# ============================================================

def nary_fold(
    identity: NumericType,
    binary_op: Callable[[NumericType, NumericType], NumericType],
) -> FoldHandler:
    """Create an n-ary folder with identity element.

    Examples:
        nary_fold(0, lambda a, b: a + b)  # add() = 0, add(x, y, z) = x+y+z
        nary_fold(1, lambda a, b: a * b)  # mul() = 1, mul(x, y, z) = x*y*z
    """
    def handler(args: List[NumericType]) -> NumericType:
        result = identity
        for a in args:
            result = binary_op(result, a)
        return result
    return handler


def unary_only(f: Callable[[NumericType], NumericType]) -> FoldHandler:
    """Create a unary-only folder (e.g., neg, abs)."""
    def handler(args: List[NumericType]) -> Optional[NumericType]:
        if len(args) != 1:
            return None  # Can't fold non-unary
        return f(args[0])
    return handler


def binary_only(f: Callable[[NumericType, NumericType], NumericType]) -> FoldHandler:
    """Create a binary-only folder (e.g., div, pow)."""
    def handler(args: List[NumericType]) -> Optional[NumericType]:
        if len(args) != 2:
            return None  # Can't fold non-binary
        return f(args[0], args[1])
    return handler


def root_fold() -> FoldHandler:
    """nthRoot(x) is the square root, nthRoot(x, n) the n-th root."""
    def handler(args: List[NumericType]) -> Optional[NumericType]:
        if len(args) == 1:
            return nth_root(args[0])
        if len(args) == 2:
            return nth_root(args[0], args[1])
        return None
    return handler


# ============================================================
# Standard Preludes
# ============================================================

ARITHMETIC_PRELUDE: PreludeType = {
    "add": nary_fold(0, lambda a, b: a + b),
    "mul": nary_fold(1, lambda a, b: a * b),
    "neg": unary_only(lambda a: -a),
    "div": binary_only(_divide),
    "pow": binary_only(lambda a, b: a ** b),
    "abs": unary_only(abs),
    "nthRoot": root_fold(),
}

NUMBER_THEORY_PRELUDE: PreludeType = {
    **ARITHMETIC_PRELUDE,
    "gcd": lambda args: gcd(*args) if args else None,
    "lcm": lambda args: lcm(*args) if args else None,
}


# ============================================================
# Evaluation
# ============================================================

def evaluate(node: Node, prelude: Optional[PreludeType] = None) -> NumericType:
    """
    Reduce a node tree to a number.

    Args:
        node: Tree built from numbers, parentheses and prelude operators
        prelude: Fold handlers by operator name (default ARITHMETIC_PRELUDE)

    Raises:
        EvaluationError: For identifiers, placeholders, unknown operators
            or unsupported arities.
        ZeroDivisionError: Propagated unchanged from division by zero.
    """
    funcs = prelude if prelude is not None else ARITHMETIC_PRELUDE

    def loop(n: Node) -> NumericType:
        if isinstance(n, Number):
            return n.value
        if isinstance(n, Parentheses):
            return loop(n.body)
        if isinstance(n, Apply) and isinstance(n.op, str):
            if n.op not in funcs:
                raise EvaluationError(f"No fold handler for operator {n.op!r}")
            args = [loop(a) for a in n.args]
            result = funcs[n.op](args)
            if result is None:
                raise EvaluationError(
                    f"Cannot fold {n.op!r} with {len(args)} argument(s)")
            return normalize(result)
        raise EvaluationError(f"Cannot evaluate {n!r}")

    return loop(node)
