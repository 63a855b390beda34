"""
Pattern matching and instantiation for MATHRULES.

A pattern is an ordinary node tree that may contain Placeholder and
EllipsisNode nodes.  Matching a pattern against an expression produces a
MatchResult whose Bindings map placeholder names to the matched subtrees;
populating a rewrite pattern with those Bindings builds the replacement.

Sums and products match loosely at the top level: the pattern's arguments
may match any contiguous run of the expression's arguments, and the run
that was consumed is reported as the match's Range.

    result = match_node(parse_expr("#a + 0"), parse_expr("1 + x + 0 + 2"))
    result.bindings["a"]   # => Identifier('x')
    result.range           # => Range(1, 3)

Variable-length patterns repeat the element before '...' with increasing
subscripts, so "#a_0 + ..." binds a_0, a_1, a_2, ... to a run of terms.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .evaluator import PreludeType, evaluate
from .nodes import (
    Apply, EllipsisNode, Node, Number, Parentheses, Path, Placeholder,
    children, is_ellipsis, is_neg, number_node, traverse,
    with_children,
)
from .parser import format_expr
from .utils import remove_unnecessary_parentheses

logger = logging.getLogger(__name__)

Constraints = Dict[str, Callable[[Node], bool]]

# Operators whose argument lists match as contiguous sub-arrays
COMMUTATIVE = ("add", "mul")


class MalformedPatternError(ValueError):
    """Raised for patterns that can never match or populate correctly."""


# ============================================================
# Bindings Class - Dict-like interface for match results
# ============================================================

class Bindings:
    """
    Persistent placeholder table built up while matching.

    Plain placeholders map a name to a node.  Subscripted placeholders
    (#b_0, #b_1, ...) form a family: bindings["b"] is a dict from index to
    node.  Every extend() returns a new table and leaves the old one
    untouched, so a failed branch of the search never leaks bindings into
    the branch that finally succeeds.

    Examples:
        b = Bindings().extend("a", x).extend("b", y, 0).extend("b", z, 1)
        b["a"]              # => x
        b["b"]              # => {0: y, 1: z}
        b.family_length("b")  # => 2
        "a" in b            # => True

    Bindings objects are truthy even when empty.
    """

    __slots__ = ('_values', '_families', '_signs')

    def __init__(self, values: Optional[Dict[str, Node]] = None,
                 families: Optional[Dict[str, Dict[int, Node]]] = None,
                 signs: Optional[Dict[str, Dict[int, bool]]] = None):
        self._values = values or {}
        self._families = families or {}
        self._signs = signs or {}

    def __bool__(self) -> bool:
        """Bindings are always truthy (a failed match is None)."""
        return True

    def __getitem__(self, key: str):
        """Get a bound node, or the index->node dict of a family."""
        if key in self._values:
            return self._values[key]
        if key in self._families:
            return dict(self._families[key])
        raise KeyError(key)

    def get(self, key: str, default=None):
        """Get a bound value with optional default."""
        try:
            return self[key]
        except KeyError:
            return default

    def __contains__(self, key: str) -> bool:
        return key in self._values or key in self._families

    def keys(self) -> List[str]:
        """Bound names, plain placeholders first."""
        return list(self._values) + [k for k in self._families if k not in self._values]

    def values(self) -> List[Any]:
        return [self[k] for k in self.keys()]

    def items(self) -> List[Tuple[str, Any]]:
        return [(k, self[k]) for k in self.keys()]

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __repr__(self) -> str:
        return f"Bindings({self.to_dict()})"

    def __eq__(self, other):
        if isinstance(other, Bindings):
            return (self._values == other._values
                    and self._families == other._families
                    and self._signs == other._signs)
        return False

    __hash__ = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary (families become index dicts)."""
        return {k: self[k] for k in self.keys()}

    # -- lookups ---------------------------------------------------------

    def lookup(self, name: str, index: Optional[int] = None) -> Optional[Node]:
        """The node bound to name (or to name_index), None if unbound."""
        if index is None:
            return self._values.get(name)
        return self._families.get(name, {}).get(index)

    def family(self, name: str) -> Dict[int, Node]:
        return dict(self._families.get(name, {}))

    def family_length(self, name: str) -> int:
        """One more than the highest bound index of a family, 0 if none."""
        indexes = self._families.get(name)
        return max(indexes) + 1 if indexes else 0

    def sign(self, name: str, index: int) -> Optional[bool]:
        """
        Sign recorded for a family element matched inside a sum.

        Returns None when the element was not negated, otherwise the
        negation's was_minus flag.
        """
        return self._signs.get(name, {}).get(index)

    # -- persistent updates ----------------------------------------------

    def extend(self, name: str, value: Node, index: Optional[int] = None) -> "Bindings":
        """Return a new table with name (or name_index) bound to value."""
        if index is None:
            values = dict(self._values)
            values[name] = value
            return Bindings(values, self._families, self._signs)
        families = dict(self._families)
        family = dict(families.get(name, {}))
        family[index] = value
        families[name] = family
        return Bindings(self._values, families, self._signs)

    def with_sign(self, name: str, index: int, was_minus: bool) -> "Bindings":
        """Return a new table recording that name_index matched a negation."""
        signs = dict(self._signs)
        family = dict(signs.get(name, {}))
        family[index] = was_minus
        signs[name] = family
        return Bindings(self._values, self._families, signs)


def wrap_bindings(mapping: Union[Bindings, Mapping[str, Any]]) -> Bindings:
    """
    Convert a plain dict of bindings into a Bindings table.

    Node values bind plain placeholders; dict values bind families and are
    keyed by integer index.

        wrap_bindings({"a": x, "b": {0: y, 1: z}})
    """
    if isinstance(mapping, Bindings):
        return mapping
    values = {}
    families = {}
    for name, value in mapping.items():
        if isinstance(value, Mapping):
            families[name] = {int(k): v for k, v in value.items()}
        else:
            values[name] = value
    return Bindings(values, families)


# ============================================================
# Match Results
# ============================================================

class Range:
    """Half-open [start, end) slice of an Apply's arguments."""

    __slots__ = ('start', 'end')

    def __init__(self, start: int, end: int):
        self.start = start
        self.end = end

    def __iter__(self):
        yield self.start
        yield self.end

    def __eq__(self, other):
        return (isinstance(other, Range)
                and self.start == other.start and self.end == other.end)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Range({self.start}, {self.end})"


class MatchResult:
    """
    A successful match.

    Attributes:
        node: The matched node
        bindings: Placeholder bindings
        range: Slice of node.args consumed by a partial sum/product match,
            None when the whole node matched
        path: Location of node within the searched tree (set by search())
    """

    __slots__ = ('node', 'bindings', 'range', 'path')

    def __init__(self, node: Node, bindings: Bindings,
                 range: Optional[Range] = None, path: Optional[Path] = None):
        self.node = node
        self.bindings = bindings
        self.range = range
        self.path = path

    def __repr__(self) -> str:
        return (f"MatchResult({format_expr(self.node)!r}, {self.bindings!r}, "
                f"range={self.range!r}, path={self.path!r})")


MatchFn = Callable[[Node], Optional[MatchResult]]


# ============================================================
# Pattern Helpers
# ============================================================

def _family_index(placeholder: Placeholder) -> Optional[int]:
    sub = placeholder.subscript
    if sub is None:
        return None
    if isinstance(sub, Number) and float(sub.value).is_integer() and sub.value >= 0:
        return int(sub.value)
    raise MalformedPatternError(
        f"Placeholder subscript must be a non-negative integer: {format_expr(placeholder)}")


def _is_group(node: Node) -> bool:
    """True for an Apply containing a '...' repetition."""
    return isinstance(node, Apply) and any(is_ellipsis(a) for a in node.args)


def _is_eval_marker(node: Node) -> bool:
    return (isinstance(node, Apply)
            and isinstance(node.op, Placeholder)
            and node.op.name == "eval")


def _family_placeholders(node: Node) -> Iterator[Placeholder]:
    """Subscripted placeholders of a template, skipping nested groups."""
    if isinstance(node, Placeholder):
        if node.subscript is not None:
            yield node
        return
    if _is_group(node):
        return
    for child in children(node):
        yield from _family_placeholders(child)


def _template_family(template: Node) -> Optional[str]:
    for placeholder in _family_placeholders(template):
        return placeholder.name
    return None


def _renumber(template: Node, index: int) -> Node:
    """Copy of template with each subscripted placeholder set to index.

    Nested variable-length groups keep their own numbering.
    """
    if isinstance(template, Placeholder):
        if template.subscript is None:
            return template
        return Placeholder(template.name, Number(index), loc=template.loc)
    if _is_group(template):
        return template
    return with_children(template, [_renumber(c, index) for c in children(template)])


def get_placeholders(pattern: Node) -> Dict[str, Placeholder]:
    """
    All placeholders in a pattern, keyed by name, in post-order.

    Operator placeholders such as the #eval marker are not included.
    """
    found = {}
    for _, node in traverse(pattern):
        if isinstance(node, Placeholder) and node.name not in found:
            found[node.name] = node
    return found


def validate_pattern(pattern: Node, rewrite: bool = False) -> None:
    """
    Check that a pattern is well formed.

    A '...' must directly follow a template element that contains a
    subscript-0 placeholder (#a_0).  In a match pattern '...' may only
    appear among the arguments of a sum or product, and #eval(...) markers
    are not allowed.

    Raises:
        MalformedPatternError: Describing the first problem found.
    """
    kind = "rewrite" if rewrite else "match"

    def check(node: Node, in_args: bool) -> None:
        if isinstance(node, EllipsisNode):
            if not in_args:
                raise MalformedPatternError(
                    f"'...' outside an argument list in {kind} pattern")
            return
        if isinstance(node, Placeholder):
            _family_index(node)
            return
        if isinstance(node, Apply):
            if _is_eval_marker(node):
                if not rewrite:
                    raise MalformedPatternError("#eval(...) is only allowed in rewrite patterns")
                if len(node.args) != 1:
                    raise MalformedPatternError("#eval(...) takes exactly one argument")
            args = node.args
            for i, arg in enumerate(args):
                if is_ellipsis(arg):
                    if not rewrite and node.op not in COMMUTATIVE:
                        raise MalformedPatternError(
                            f"'...' is only allowed in sums and products, not {node.op!r}")
                    if i == 0 or is_ellipsis(args[i - 1]):
                        raise MalformedPatternError("'...' must follow a repeated element")
                    subscripts = [_family_index(p) for p in _family_placeholders(args[i - 1])]
                    if 0 not in subscripts:
                        raise MalformedPatternError(
                            f"Element before '...' needs a subscript-0 placeholder: "
                            f"{format_expr(args[i - 1])}")
                check(arg, True)
            return
        for child in children(node):
            check(child, False)

    check(pattern, False)


# ============================================================
# Node Matcher
# ============================================================

def _match_placeholder(pattern: Placeholder, node: Node, bindings: Bindings,
                       constraints: Constraints) -> Optional[Bindings]:
    index = _family_index(pattern)
    bound = bindings.lookup(pattern.name, index)
    if bound is not None:
        # Repeated placeholder: must be the same subtree again
        return bindings if bound == node else None
    check = constraints.get(pattern.name)
    if check is not None and not check(node):
        return None
    return bindings.extend(pattern.name, node, index)


def _match_repetitions(op: str, template: Node, args: Tuple[Node, ...], start: int,
                       bindings: Bindings, constraints: Constraints
                       ) -> Optional[Tuple[Bindings, int]]:
    """Match template_1, template_2, ... against args[start:], greedily."""
    family = _template_family(template)
    unwrap = op == "add" and not is_neg(template)
    j = start
    rep = 1
    while j < len(args):
        arg = args[j]
        sign = None
        if unwrap and is_neg(arg):
            sign = arg.was_minus
            arg = arg.args[0]
        attempt = _match(_renumber(template, rep), arg, bindings, constraints)
        if attempt is None:
            break
        bindings = attempt
        if sign is not None and family is not None:
            bindings = bindings.with_sign(family, rep, sign)
        rep += 1
        j += 1
    if rep == 1:
        return None
    return bindings, j


def _match_args(pattern: Apply, node: Apply, start: int, bindings: Bindings,
                constraints: Constraints) -> Optional[Tuple[Bindings, int]]:
    """
    Match pattern.args against node.args beginning at index start.

    Returns the extended bindings and the index just past the last
    consumed argument.
    """
    pargs = pattern.args
    args = node.args
    j = start
    for k, parg in enumerate(pargs):
        if isinstance(parg, EllipsisNode):
            result = _match_repetitions(pattern.op, pargs[k - 1], args, j,
                                        bindings, constraints)
            if result is None:
                return None
            bindings, j = result
            continue
        if j >= len(args):
            return None
        bindings = _match(parg, args[j], bindings, constraints)
        if bindings is None:
            return None
        j += 1
    return bindings, j


def _same_operator(pattern: Apply, node: Node) -> bool:
    return (isinstance(node, Apply)
            and pattern.op == node.op
            and pattern.was_minus == node.was_minus)


def _match(pattern: Node, node: Node, bindings: Bindings,
           constraints: Constraints) -> Optional[Bindings]:
    if isinstance(pattern, Placeholder):
        return _match_placeholder(pattern, node, bindings, constraints)
    if isinstance(pattern, Apply):
        if not _same_operator(pattern, node):
            return None
        if pattern.op in COMMUTATIVE:
            # Below the top level a sum or product must be matched whole
            result = _match_args(pattern, node, 0, bindings, constraints)
            if result is None or result[1] != len(node.args):
                return None
            return result[0]
        if len(pattern.args) != len(node.args):
            return None
        for parg, arg in zip(pattern.args, node.args):
            bindings = _match(parg, arg, bindings, constraints)
            if bindings is None:
                return None
        return bindings
    if isinstance(pattern, Parentheses):
        if not isinstance(node, Parentheses):
            return None
        return _match(pattern.body, node.body, bindings, constraints)
    return bindings if pattern == node else None


def match_node(pattern: Node, node: Node,
               constraints: Optional[Constraints] = None) -> Optional[MatchResult]:
    """
    Match a pattern against a single node.

    A sum or product pattern may match a contiguous run of the node's
    arguments; offsets are tried left to right and the first success wins.
    Its range is set only when fewer than all arguments were consumed.

    Args:
        pattern: Pattern tree
        node: Expression tree
        constraints: Predicates by placeholder name, checked when a name
            (or a family element) is first bound

    Returns:
        MatchResult on success, None otherwise
    """
    constraints = constraints or {}
    bindings = Bindings()
    if (isinstance(pattern, Apply) and pattern.op in COMMUTATIVE
            and _same_operator(pattern, node)):
        count = len(node.args)
        for offset in range(count - len(pattern.args) + 1):
            result = _match_args(pattern, node, offset, bindings, constraints)
            if result is not None:
                found, end = result
                partial = offset > 0 or end < count
                return MatchResult(node, found, Range(offset, end) if partial else None)
        return None
    found = _match(pattern, node, bindings, constraints)
    if found is None:
        return None
    return MatchResult(node, found)


def search(match_fn: MatchFn, root: Node) -> Optional[MatchResult]:
    """
    Find the first node of root, in post-order, accepted by match_fn.

    Children are visited before their parents so the innermost match wins.
    The result's path locates the matched node within root.
    """
    for path, node in traverse(root):
        result = match_fn(node)
        if result is not None:
            result.path = path
            return result
    return None


# ============================================================
# Pattern Populator
# ============================================================

def _expand_group(template: Node, op: Union[str, Node], bindings: Bindings,
                  prelude: Optional[PreludeType]) -> List[Node]:
    family = _template_family(template)
    if family is None:
        raise MalformedPatternError(
            f"Element before '...' has no subscripted placeholder: {format_expr(template)}")
    length = bindings.family_length(family)
    if length == 0:
        raise MalformedPatternError(f"No values bound for placeholder family {family!r}")
    logger.debug("Expanding %s to %d element(s)", format_expr(template), length)
    copies = []
    for index in range(length):
        copy = _populate(_renumber(template, index), bindings, prelude)
        if op == "add":
            sign = bindings.sign(family, index)
            if sign is not None:
                copy = Apply("neg", [copy], was_minus=sign)
        copies.append(copy)
    return copies


def _populate(node: Node, bindings: Bindings, prelude: Optional[PreludeType]) -> Node:
    if isinstance(node, Placeholder):
        value = bindings.lookup(node.name, _family_index(node))
        if value is None:
            raise MalformedPatternError(f"Unbound placeholder {format_expr(node)}")
        return value
    if isinstance(node, EllipsisNode):
        raise MalformedPatternError("'...' must follow a repeated element")
    if isinstance(node, Parentheses):
        return with_children(node, [_populate(node.body, bindings, prelude)])
    if not isinstance(node, Apply):
        return node

    if _is_eval_marker(node):
        if len(node.args) != 1:
            raise MalformedPatternError("#eval(...) takes exactly one argument")
        value = evaluate(_populate(node.args[0], bindings, prelude), prelude)
        return number_node(value)

    args = []
    pargs = node.args
    for k, parg in enumerate(pargs):
        if isinstance(parg, EllipsisNode):
            if k == 0 or is_ellipsis(pargs[k - 1]):
                raise MalformedPatternError("'...' must follow a repeated element")
            continue
        if k + 1 < len(pargs) and is_ellipsis(pargs[k + 1]):
            args.extend(_expand_group(parg, node.op, bindings, prelude))
        else:
            args.append(_populate(parg, bindings, prelude))
    return with_children(node, args)


def populate_pattern(pattern: Node, bindings: Union[Bindings, Mapping[str, Any]],
                     prelude: Optional[PreludeType] = None) -> Node:
    """
    Instantiate a rewrite pattern.

    Placeholders are replaced by their bound subtrees, each "x_0 ..." group
    is expanded to the length of its family, and #eval(...) markers are
    evaluated to numbers.  Family elements that matched a negation inside a
    sum are negated again.

    Args:
        pattern: Rewrite pattern tree
        bindings: Bindings from a match, or a plain dict (see wrap_bindings)
        prelude: Evaluator prelude for #eval markers

    Raises:
        MalformedPatternError: For unbound placeholders or a stray '...'
    """
    return _populate(pattern, wrap_bindings(bindings), prelude)


# ============================================================
# Pattern Compiler
# ============================================================

def pattern_to_match_fn(pattern: Node,
                        constraints: Optional[Constraints] = None) -> MatchFn:
    """Compile a match pattern into a reusable match function."""
    validate_pattern(pattern)
    constraints = dict(constraints or {})

    def match_fn(node: Node) -> Optional[MatchResult]:
        return match_node(pattern, node, constraints)

    return match_fn


def pattern_to_rewrite_fn(pattern: Node, prelude: Optional[PreludeType] = None
                          ) -> Callable[..., Node]:
    """
    Compile a rewrite pattern into a function (node, bindings, range) -> Node.

    The populated result has redundant grouping parentheses removed.
    """
    validate_pattern(pattern, rewrite=True)

    def rewrite_fn(node: Node, bindings: Union[Bindings, Mapping[str, Any]],
                   range: Optional[Range] = None) -> Node:
        return remove_unnecessary_parentheses(populate_pattern(pattern, bindings, prelude))

    return rewrite_fn
