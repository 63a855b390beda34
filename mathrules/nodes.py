"""
Expression node model for MATHRULES.

Expressions and patterns share one closed set of node classes:

    Number(value)                      - numeric literal
    Identifier(name)                   - variable such as x
    Apply(op, args)                    - operator or function application
    Parentheses(body)                  - explicit grouping from the source
    Placeholder(name, subscript)       - pattern wildcard (#a, #a_0)
    EllipsisNode()                     - pattern marker (...)

Nodes are immutable: rewriting always builds new nodes and shares
unchanged subtrees.  Equality is structural and ignores presentation-only
fields (source location and whether a product was written implicitly).
"""

from typing import Any, Callable, Iterator, Optional, Sequence, Tuple, Union

NumericType = Union[int, float]
Loc = Optional[Tuple[int, int]]
Path = Tuple[int, ...]

# Operators the printer and evaluator know about.  Any other string op is
# printed as a function call, e.g. nthRoot(x, 3).
OPERATORS = ("add", "mul", "div", "pow", "neg", "abs", "eq")


# ============================================================
# Node Classes
# ============================================================

class Node:
    """Base class for all expression and pattern nodes."""

    __slots__ = ("loc",)

    def __init__(self, loc: Loc = None):
        self.loc = loc

    def __setattr__(self, key, value):
        if hasattr(self, key):
            raise AttributeError(f"{type(self).__name__} is immutable")
        object.__setattr__(self, key, value)

    def __ne__(self, other):
        return not self == other

    __hash__ = None


class Number(Node):
    """A numeric literal."""

    __slots__ = ("value",)

    def __init__(self, value: NumericType, loc: Loc = None):
        super().__init__(loc)
        self.value = value

    def __eq__(self, other):
        return isinstance(other, Number) and self.value == other.value

    def __repr__(self) -> str:
        return f"Number({self.value!r})"


class Identifier(Node):
    """A named variable."""

    __slots__ = ("name",)

    def __init__(self, name: str, loc: Loc = None):
        super().__init__(loc)
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Identifier) and self.name == other.name

    def __repr__(self) -> str:
        return f"Identifier({self.name!r})"


class Apply(Node):
    """
    An operator applied to an ordered tuple of arguments.

    Args:
        op: Operator name ("add", "mul", "div", "pow", "neg", "abs", "eq"),
            a function name, or a Node (e.g. Placeholder("eval")).
        args: Argument nodes.
        implicit: True for products written by juxtaposition ("2 x").
        was_minus: True for a negation produced by binary subtraction,
            so that "a - b" prints back as a subtraction.
    """

    __slots__ = ("op", "args", "implicit", "was_minus")

    def __init__(self, op: Union[str, Node], args: Sequence[Node],
                 implicit: bool = False, was_minus: bool = False,
                 loc: Loc = None):
        super().__init__(loc)
        self.op = op
        self.args = tuple(args)
        self.implicit = implicit
        self.was_minus = was_minus

    def __eq__(self, other):
        return (isinstance(other, Apply)
                and self.op == other.op
                and self.was_minus == other.was_minus
                and self.args == other.args)

    def __repr__(self) -> str:
        extra = ""
        if self.implicit:
            extra += ", implicit=True"
        if self.was_minus:
            extra += ", was_minus=True"
        return f"Apply({self.op!r}, {list(self.args)!r}{extra})"


class Parentheses(Node):
    """Explicit grouping parentheses around a single body."""

    __slots__ = ("body",)

    def __init__(self, body: Node, loc: Loc = None):
        super().__init__(loc)
        self.body = body

    def __eq__(self, other):
        return isinstance(other, Parentheses) and self.body == other.body

    def __repr__(self) -> str:
        return f"Parentheses({self.body!r})"


class Placeholder(Node):
    """
    A pattern wildcard.

    A subscripted placeholder (#a_0, #a_1, ...) is one element of the
    placeholder family "a" used by variable-length patterns.
    """

    __slots__ = ("name", "subscript")

    def __init__(self, name: str, subscript: Optional[Node] = None,
                 loc: Loc = None):
        super().__init__(loc)
        self.name = name
        self.subscript = subscript

    def __eq__(self, other):
        return (isinstance(other, Placeholder)
                and self.name == other.name
                and self.subscript == other.subscript)

    def __repr__(self) -> str:
        if self.subscript is not None:
            return f"Placeholder({self.name!r}, {self.subscript!r})"
        return f"Placeholder({self.name!r})"


class EllipsisNode(Node):
    """The '...' marker: the preceding sibling repeats."""

    __slots__ = ()

    def __eq__(self, other):
        return isinstance(other, EllipsisNode)

    def __repr__(self) -> str:
        return "EllipsisNode()"


# ============================================================
# Builders
# ============================================================

def number_node(value: NumericType, loc: Loc = None) -> Number:
    """Build a number, normalizing integral floats to int."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return Number(value, loc)


def identifier_node(name: str, loc: Loc = None) -> Identifier:
    return Identifier(name, loc)


def apply_node(op: Union[str, Node], args: Sequence[Node], **options) -> Apply:
    """
    Build an operator application.

    Example:
        apply_node("add", [identifier_node("x"), number_node(1)])
        apply_node("neg", [identifier_node("y")], was_minus=True)
    """
    return Apply(op, args, **options)


def parens_node(body: Node, loc: Loc = None) -> Parentheses:
    return Parentheses(body, loc)


def placeholder_node(name: str, subscript: Union[None, int, Node] = None,
                     loc: Loc = None) -> Placeholder:
    """Build a placeholder; an int subscript is wrapped in a Number."""
    if isinstance(subscript, int):
        subscript = Number(subscript)
    return Placeholder(name, subscript, loc)


def ellipsis_node(loc: Loc = None) -> EllipsisNode:
    return EllipsisNode(loc)


# ============================================================
# Queries
# ============================================================

def is_apply(node: Any, op: Optional[str] = None) -> bool:
    """Check for an Apply node, optionally with a given operator."""
    return isinstance(node, Apply) and (op is None or node.op == op)


def is_add(node: Any) -> bool:
    return is_apply(node, "add")


def is_mul(node: Any) -> bool:
    return is_apply(node, "mul")


def is_div(node: Any) -> bool:
    return is_apply(node, "div")


def is_pow(node: Any) -> bool:
    return is_apply(node, "pow")


def is_neg(node: Any) -> bool:
    return is_apply(node, "neg")


def is_abs(node: Any) -> bool:
    return is_apply(node, "abs")


def is_parens(node: Any) -> bool:
    return isinstance(node, Parentheses)


def is_identifier(node: Any) -> bool:
    return isinstance(node, Identifier)


def is_placeholder(node: Any) -> bool:
    return isinstance(node, Placeholder)


def is_ellipsis(node: Any) -> bool:
    return isinstance(node, EllipsisNode)


def is_number(node: Any) -> bool:
    """True for a number literal or a negated number literal (-3)."""
    if isinstance(node, Number):
        return True
    if is_neg(node):
        return is_number(node.args[0])
    return False


def is_operation(node: Any) -> bool:
    """True for an Apply of one of the built-in operators."""
    return isinstance(node, Apply) and node.op in OPERATORS


def is_variable_factor(node: Any) -> bool:
    """True for a bare variable or a variable raised to a number (x, y^2)."""
    if is_identifier(node):
        return True
    return (is_pow(node)
            and is_identifier(node.args[0])
            and is_number(node.args[1]))


def get_value(node: Node) -> NumericType:
    """Numeric value of a (possibly negated) number literal."""
    if isinstance(node, Number):
        return node.value
    if is_neg(node):
        return -get_value(node.args[0])
    raise ValueError(f"get_value: not a number: {node!r}")


# ============================================================
# Traversal
# ============================================================

def children(node: Node) -> Tuple[Node, ...]:
    """The child nodes visited by traversal (an Apply's op is not a child)."""
    if isinstance(node, Apply):
        return node.args
    if isinstance(node, Parentheses):
        return (node.body,)
    return ()


def with_children(node: Node, kids: Sequence[Node]) -> Node:
    """Return a copy of node with its children replaced."""
    if isinstance(node, Apply):
        if len(kids) == len(node.args) and all(
                a is b for a, b in zip(kids, node.args)):
            return node
        return Apply(node.op, kids, implicit=node.implicit,
                     was_minus=node.was_minus, loc=node.loc)
    if isinstance(node, Parentheses):
        if kids[0] is node.body:
            return node
        return Parentheses(kids[0], loc=node.loc)
    return node


def traverse(node: Node, path: Path = ()) -> Iterator[Tuple[Path, Node]]:
    """
    Yield (path, node) pairs in post-order, children before parents.

    A path is the tuple of child indexes leading from the root.
    """
    for i, child in enumerate(children(node)):
        yield from traverse(child, path + (i,))
    yield path, node


def node_at(root: Node, path: Path) -> Node:
    """Return the node found by following path from root."""
    node = root
    for i in path:
        node = children(node)[i]
    return node


def replace_at(root: Node, path: Path, fn: Callable[[Node], Node]) -> Node:
    """Rebuild root with the node at path replaced by fn(node)."""
    if not path:
        return fn(root)
    kids = list(children(root))
    kids[path[0]] = replace_at(kids[path[0]], path[1:], fn)
    return with_children(root, kids)


def transform(node: Node, leave: Callable[[Node], Node]) -> Node:
    """Rebuild a tree bottom-up, calling leave() on every rebuilt node."""
    kids = [transform(child, leave) for child in children(node)]
    return leave(with_children(node, kids))
