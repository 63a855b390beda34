"""
Parser and printer for MATHRULES expressions and patterns.

Expression syntax:
    1 + x - 2          add(1, x, neg(2, was_minus))
    2 x                implicit product
    a * b / c          product of a and the quotient b / c
    x^-2               power (right associative)
    |x - 1|            absolute value
    nthRoot(x, 3)      function call
    (x + 1)            explicit grouping (kept as a Parentheses node)
    a = b              equation

Pattern syntax:
    #a                 placeholder, matches any subtree, binds to a
    #a_0               element 0 of the placeholder family a
    #a_0 + ...         variable-length pattern: #a_0, #a_1, ... repeat
    #eval(#a + #b)     evaluate the populated argument during rewriting

Examples:
    parse_expr("#a + 0")            -> Apply("add", [Placeholder("a"), Number(0)])
    format_expr(parse_expr("2x-1")) -> "2 x - 1"
"""

import re
from typing import List, Optional, Tuple

from .nodes import (
    Apply, EllipsisNode, Identifier, Node, Number, Parentheses, Placeholder,
)

_TOKEN_RE = re.compile(r"""
    (?P<ellipsis>\.\.\.)
  | (?P<number>\d+(?:\.\d+)?|\.\d+)
  | (?P<placeholder>\#[A-Za-z][A-Za-z0-9]*(?:_\d+)?)
  | (?P<identifier>[A-Za-z][A-Za-z0-9]*)
  | (?P<op>[-+*/^=(),|])
""", re.VERBOSE)


class ParseError(ValueError):
    """Raised for malformed expression or pattern text."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at position {position}")
        self.position = position


class Token:
    __slots__ = ("kind", "text", "start", "end")

    def __init__(self, kind: str, text: str, start: int, end: int):
        self.kind = kind
        self.text = text
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.text!r})"


def tokenize(text: str) -> List[Token]:
    """Split text into tokens, skipping whitespace."""
    tokens = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise ParseError(f"Unexpected character {text[pos]!r}", pos)
        tokens.append(Token(m.lastgroup, m.group(), m.start(), m.end()))
        pos = m.end()
    return tokens


# ============================================================
# Parser
# ============================================================

class _Parser:
    """Recursive-descent parser, one method per precedence level."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Token]:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else None

    def at(self, text: str) -> bool:
        token = self.peek()
        return token is not None and token.kind == "op" and token.text == text

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise ParseError("Unexpected end of input", len(self.text))
        self.pos += 1
        return token

    def expect(self, text: str) -> Token:
        token = self.peek()
        if token is None or token.text != text:
            where = token.start if token else len(self.text)
            raise ParseError(f"Expected {text!r}", where)
        return self.advance()

    def _start(self) -> int:
        token = self.peek()
        if token is None:
            raise ParseError("Unexpected end of input", len(self.text))
        return token.start

    def _span(self, start: int) -> Tuple[int, int]:
        return (start, self.tokens[self.pos - 1].end)

    def parse(self) -> Node:
        if not self.tokens:
            raise ParseError("Empty expression", 0)
        node = self.equation()
        token = self.peek()
        if token is not None:
            raise ParseError(f"Unexpected {token.text!r}", token.start)
        return node

    def equation(self) -> Node:
        start = self._start()
        left = self.additive()
        if self.at("="):
            self.advance()
            right = self.additive()
            return Apply("eq", [left, right], loc=self._span(start))
        return left

    def additive(self) -> Node:
        start = self._start()
        terms = [self.product()]
        while self.at("+") or self.at("-"):
            op = self.advance()
            term = self.product()
            if op.text == "-":
                term = Apply("neg", [term], was_minus=True,
                             loc=(op.start, self.tokens[self.pos - 1].end))
            terms.append(term)
        if len(terms) == 1:
            return terms[0]
        return Apply("add", terms, loc=self._span(start))

    def product(self) -> Node:
        start = self._start()
        factors = [self.division()]
        while self.at("*"):
            self.advance()
            factors.append(self.division())
        if len(factors) == 1:
            return factors[0]
        return Apply("mul", factors, loc=self._span(start))

    def division(self) -> Node:
        start = self._start()
        node = self.implicit()
        while self.at("/"):
            self.advance()
            right = self.implicit()
            node = Apply("div", [node, right], loc=self._span(start))
        return node

    def implicit(self) -> Node:
        start = self._start()
        factors = [self.unary()]
        while self._starts_operand():
            factors.append(self.power())
        if len(factors) == 1:
            return factors[0]
        return Apply("mul", factors, implicit=True, loc=self._span(start))

    def _starts_operand(self) -> bool:
        token = self.peek()
        if token is None:
            return False
        if token.kind in ("number", "identifier", "placeholder"):
            return True
        return token.kind == "op" and token.text == "("

    def unary(self) -> Node:
        if self.at("-"):
            op = self.advance()
            operand = self.unary()
            return Apply("neg", [operand], loc=self._span(op.start))
        if self.at("+"):
            self.advance()
            return self.unary()
        return self.power()

    def power(self) -> Node:
        start = self._start()
        base = self.primary()
        if self.at("^"):
            self.advance()
            exponent = self.unary()
            return Apply("pow", [base, exponent], loc=self._span(start))
        return base

    def _call_follows(self, token: Token) -> bool:
        nxt = self.peek()
        return (nxt is not None and nxt.text == "("
                and nxt.start == token.end)

    def arguments(self) -> List[Node]:
        self.expect("(")
        args = []
        if not self.at(")"):
            args.append(self.equation())
            while self.at(","):
                self.advance()
                args.append(self.equation())
        self.expect(")")
        return args

    def primary(self) -> Node:
        token = self.peek()
        if token is None:
            raise ParseError("Unexpected end of input", len(self.text))

        if token.kind == "number":
            self.advance()
            text = token.text
            value = float(text) if "." in text else int(text)
            return Number(value, loc=(token.start, token.end))

        if token.kind == "identifier":
            self.advance()
            # Multi-letter names are functions; "x(y)" stays a product
            if len(token.text) > 1 and self._call_follows(token):
                args = self.arguments()
                return Apply(token.text, args, loc=self._span(token.start))
            return Identifier(token.text, loc=(token.start, token.end))

        if token.kind == "placeholder":
            self.advance()
            name, _, subscript = token.text[1:].partition("_")
            if self._call_follows(token):
                args = self.arguments()
                op = Placeholder(name, loc=(token.start, token.end))
                return Apply(op, args, loc=self._span(token.start))
            sub = Number(int(subscript)) if subscript else None
            return Placeholder(name, sub, loc=(token.start, token.end))

        if token.kind == "ellipsis":
            self.advance()
            return EllipsisNode(loc=(token.start, token.end))

        if token.text == "(":
            self.advance()
            body = self.equation()
            self.expect(")")
            return Parentheses(body, loc=self._span(token.start))

        if token.text == "|":
            self.advance()
            body = self.equation()
            self.expect("|")
            return Apply("abs", [body], loc=self._span(token.start))

        raise ParseError(f"Unexpected {token.text!r}", token.start)


def parse_expr(text: str) -> Node:
    """
    Parse expression or pattern text into a node tree.

    Raises:
        ParseError: If the text is not a well-formed expression.
    """
    return _Parser(text).parse()


# ============================================================
# Printer
# ============================================================

_PRECEDENCE_OPS = ("add", "mul", "div", "pow", "neg", "eq")


def _kind(node: Node) -> Optional[str]:
    """Operator kind that matters for grouping, None for atoms."""
    if isinstance(node, Apply) and node.op in _PRECEDENCE_OPS:
        return node.op
    if isinstance(node, Number) and node.value < 0:
        return "neg"
    return None


def needs_parens(parent: Optional[Node], child: Node, index: int = 0) -> bool:
    """
    Check whether child must be wrapped in parentheses under parent.

    index is the child's position among the parent's arguments.  Nested
    sums and products are always grouped so that "1 + (x + x) + 2" does
    not collapse into a flat sum when printed.
    """
    kind = _kind(child)
    if kind is None or not isinstance(parent, Apply):
        return False
    op = parent.op
    if op not in _PRECEDENCE_OPS:
        return False
    if kind == "eq":
        return True
    if op == "add":
        return kind == "add"
    if op == "mul":
        if kind in ("add", "mul"):
            return True
        return kind == "neg" and parent.implicit and index > 0
    if op == "div":
        if kind == "add":
            return True
        if kind == "mul":
            return index == 1 or not child.implicit
        return kind == "div" and index == 1
    if op == "neg":
        return kind in ("add", "mul", "div")
    if op == "pow":
        if index == 0:
            return True
        return kind in ("add", "mul", "div")
    return False


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_child(parent: Node, child: Node, index: int) -> str:
    text = format_expr(child)
    if needs_parens(parent, child, index):
        return f"({text})"
    return text


def format_expr(node: Node) -> str:
    """
    Format a node tree as expression text.

    Examples:
        add(1, neg(2, was_minus))   -> "1 - 2"
        mul(2, x, implicit)         -> "2 x"
        pow(x, neg(2))              -> "x^-2"
        Placeholder("a", Number(0)) -> "#a_0"
    """
    if isinstance(node, Number):
        return _format_number(node.value)
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, Placeholder):
        if node.subscript is not None:
            return f"#{node.name}_{format_expr(node.subscript)}"
        return f"#{node.name}"
    if isinstance(node, EllipsisNode):
        return "..."
    if isinstance(node, Parentheses):
        return f"({format_expr(node.body)})"
    if not isinstance(node, Apply):
        raise TypeError(f"format_expr: not a node: {node!r}")

    op = node.op
    args = node.args
    if not isinstance(op, str):
        inner = ", ".join(format_expr(a) for a in args)
        return f"{format_expr(op)}({inner})"

    if op == "add":
        parts = [_format_child(node, args[0], 0)]
        for i, arg in enumerate(args[1:], 1):
            if isinstance(arg, Apply) and arg.op == "neg" and arg.was_minus:
                parts.append(" - " + _format_child(node, arg.args[0], i))
            else:
                parts.append(" + " + _format_child(node, arg, i))
        return "".join(parts)
    if op == "mul":
        sep = " " if node.implicit else " * "
        return sep.join(_format_child(node, a, i) for i, a in enumerate(args))
    if op == "div":
        return (f"{_format_child(node, args[0], 0)} / "
                f"{_format_child(node, args[1], 1)}")
    if op == "pow":
        return f"{_format_child(node, args[0], 0)}^{_format_child(node, args[1], 1)}"
    if op == "neg":
        return "-" + _format_child(node, args[0], 0)
    if op == "abs":
        return f"|{format_expr(args[0])}|"
    if op == "eq":
        return " = ".join(_format_child(node, a, i) for i, a in enumerate(args))
    return f"{op}({', '.join(format_expr(a) for a in args)})"
