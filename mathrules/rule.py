"""
Rule definition and application for MATHRULES.

A rule pairs a match function with a rewrite function.  Pattern rules are
compiled from pattern text or trees:

    from mathrules import define_pattern_rule, apply_rule, parse_expr, format_expr

    rule = define_pattern_rule("#a + 0", "#a")
    format_expr(apply_rule(rule, parse_expr("1 + x + 0 + 2")))   # => "1 + x + 2"

Applying a rule rewrites exactly one location: the innermost, leftmost
node its match function accepts.  When nothing matches the input is
returned unchanged.
"""

import logging
from typing import Callable, Optional, Union

from .evaluator import PreludeType
from .matcher import (
    Constraints, MalformedPatternError, MatchFn, get_placeholders,
    pattern_to_match_fn, pattern_to_rewrite_fn, search,
)
from .nodes import Node, replace_at, with_children
from .parser import format_expr, parse_expr
from .utils import check_bounds, fix_minuses, remove_unnecessary_parentheses

logger = logging.getLogger(__name__)

RewriteFn = Callable[..., Node]
PatternType = Union[str, Node]


class Rule:
    """
    A rewrite rule.

    Attributes:
        match: Function node -> MatchResult or None
        rewrite: Function (node, bindings, range) -> replacement node
        constraints: Predicates by placeholder name (informational for
            callback rules; pattern rules compile them into match)
        name: Optional rule name
        description: Optional human-readable description
    """

    __slots__ = ('match', 'rewrite', 'constraints', 'name', 'description')

    def __init__(self, match: MatchFn, rewrite: RewriteFn,
                 constraints: Optional[Constraints] = None,
                 name: Optional[str] = None, description: Optional[str] = None):
        self.match = match
        self.rewrite = rewrite
        self.constraints = dict(constraints or {})
        self.name = name
        self.description = description

    def __repr__(self) -> str:
        base = f"@{self.name}" if self.name else "<anonymous>"
        if self.description:
            base += f" \"{self.description}\""
        return f"Rule({base})"


def _as_pattern(pattern: PatternType) -> Node:
    if isinstance(pattern, str):
        return parse_expr(pattern)
    return pattern


def define_rule(match_fn: MatchFn, rewrite_fn: RewriteFn,
                constraints: Optional[Constraints] = None,
                name: Optional[str] = None,
                description: Optional[str] = None) -> Rule:
    """
    Define a rule from a match function and a rewrite callback.

    Prefer define_pattern_rule when the rule can be written as patterns.

    Args:
        match_fn: Takes a node, returns a MatchResult or None
        rewrite_fn: Takes (node, bindings, range), returns the replacement
        constraints: Optional predicates by placeholder name
        name: Optional rule name
        description: Optional description
    """
    return Rule(match_fn, rewrite_fn, constraints, name, description)


def define_pattern_rule(match_pattern: PatternType, rewrite_pattern: PatternType,
                        constraints: Optional[Constraints] = None,
                        name: Optional[str] = None,
                        description: Optional[str] = None,
                        prelude: Optional[PreludeType] = None) -> Rule:
    """
    Define a rule from a match pattern and a rewrite pattern.

    Args:
        match_pattern: Pattern text or tree to match
        rewrite_pattern: Pattern text or tree to build the replacement from
        constraints: Predicates by placeholder name
        name: Optional rule name
        description: Optional description
        prelude: Evaluator prelude used by #eval(...) markers

    Raises:
        ParseError: If pattern text is malformed
        MalformedPatternError: If a pattern is structurally invalid or the
            rewrite pattern uses a placeholder the match pattern never binds

    Example:
        define_pattern_rule("#a + #a", "2 #a", {"a": is_number})
    """
    match_ast = _as_pattern(match_pattern)
    rewrite_ast = _as_pattern(rewrite_pattern)

    unbound = set(get_placeholders(rewrite_ast)) - set(get_placeholders(match_ast))
    if unbound:
        names = ", ".join(f"#{n}" for n in sorted(unbound))
        raise MalformedPatternError(f"Rewrite pattern uses unbound placeholder(s): {names}")

    match_fn = pattern_to_match_fn(match_ast, constraints)
    rewrite_fn = pattern_to_rewrite_fn(rewrite_ast, prelude)
    logger.debug("Defined rule %s: %s => %s", name or "<anonymous>",
                 format_expr(match_ast), format_expr(rewrite_ast))
    return Rule(match_fn, rewrite_fn, constraints, name, description)


def can_apply_rule(rule: Rule, node: Node) -> bool:
    """Check whether the rule matches anywhere in node."""
    return search(rule.match, node) is not None


def apply_rule(rule: Rule, node: Node) -> Node:
    """
    Apply a rule once.

    The first match in post-order is rewritten.  A match that consumed
    only part of a sum's or product's arguments has its replacement
    spliced into that argument list; otherwise the whole matched node is
    replaced.

    Returns:
        The rewritten tree, or node itself when the rule does not match.
    """
    result = search(rule.match, node)
    if result is None:
        logger.debug("%r does not apply to %s", rule, format_expr(node))
        return node

    replacement = fix_minuses(rule.rewrite(result.node, result.bindings, result.range))
    logger.debug("%r matched %s at path %s, range %s", rule,
                 format_expr(result.node), result.path, result.range)

    def substitute(matched: Node) -> Node:
        if result.range is not None and check_bounds(result.range, matched.args):
            start, end = result.range
            args = matched.args[:start] + (replacement,) + matched.args[end:]
            return with_children(matched, args)
        return replacement

    return remove_unnecessary_parentheses(replace_at(node, result.path, substitute))
