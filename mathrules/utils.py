"""
Tree post-processing helpers used when applying rules.
"""

from typing import Optional, Sequence

from .nodes import (
    Apply, Node, Parentheses, children, is_add, is_div, is_mul, is_neg,
    is_parens, transform, with_children,
)
from .parser import needs_parens


def check_bounds(range, args: Sequence[Node]) -> bool:
    """True if range covers only part of args (a splice is needed)."""
    if range is None:
        return False
    start, end = range
    return start > 0 or end < len(args)


# ============================================================
# Minus Signs
# ============================================================

def _pull_minus(node: Node) -> Node:
    if is_div(node):
        # 1 + -a / b -> 1 - a / b
        numerator = node.args[0]
        if is_neg(numerator) and numerator.was_minus:
            inner = with_children(node, [numerator.args[0], node.args[1]])
            return Apply("neg", [inner], was_minus=True)
    elif is_mul(node):
        # 1 + a * -b -> 1 - a * b
        for i, arg in enumerate(node.args):
            if is_neg(arg) and arg.was_minus:
                args = list(node.args)
                args[i] = arg.args[0]
                return Apply("neg", [with_children(node, args)], was_minus=True)
    return node


def fix_minuses(node: Node) -> Node:
    """
    Move subtraction signs out of quotients and products inside sums.

    Rewriting a term of "a - b" can bury the subtraction's negation inside a
    new quotient or product.  This lifts it back to the term level so that
    the sum still prints as a subtraction:

        add(1, div(neg(a, was_minus), b))  ->  add(1, neg(div(a, b), was_minus))
    """
    node = with_children(node, [fix_minuses(child) for child in children(node)])
    if is_add(node):
        node = with_children(node, [_pull_minus(arg) for arg in node.args])
    return node


# ============================================================
# Parentheses
# ============================================================

def _strip_children(node: Node) -> Node:
    kids = [_strip(child, node, i) for i, child in enumerate(children(node))]
    return with_children(node, kids)


def _strip(node: Node, parent: Optional[Node], index: int) -> Node:
    if not is_parens(node):
        return _strip_children(node)
    body = node.body
    while is_parens(body):
        body = body.body
    if parent is None or not needs_parens(parent, body, index):
        return _strip(body, parent, index)
    stripped = _strip_children(body)
    if stripped is node.body:
        return node
    return Parentheses(stripped, loc=node.loc)


def remove_unnecessary_parentheses(node: Node) -> Node:
    """
    Drop Parentheses nodes that do not change how the tree reads.

    Grouping is kept where the printer would need it anyway, e.g. around a
    sum inside a product.  The root is never wrapped and nested
    parentheses collapse to one pair.

    Examples:
        2 * (x)          -> 2 * x
        (x + 1) * 2      -> (x + 1) * 2
        ((x + 1))        -> x + 1
    """
    return _strip(node, None, 0)


# ============================================================
# Flattening
# ============================================================

def _splice(node: Node) -> Node:
    if not (is_add(node) or is_mul(node)):
        return node
    args = []
    for arg in node.args:
        inner = arg
        while is_parens(inner):
            inner = inner.body
        if isinstance(inner, Apply) and inner.op == node.op and not inner.was_minus:
            args.extend(inner.args)
        else:
            args.append(arg)
    return with_children(node, args)


def flatten_operands(node: Node) -> Node:
    """
    Splice nested sums into sums and nested products into products.

    Grouping parentheses made redundant by flattening are removed.

    Examples:
        (1 * 2) * (3 * 4)      -> 1 * 2 * 3 * 4
        x^(1 * (2 * (3 * 4)))  -> x^(1 * 2 * 3 * 4)
    """
    return remove_unnecessary_parentheses(transform(node, _splice))
