"""
MATHRULES - pattern-based rewriting of algebraic expressions

A term-rewriting engine for symbolic algebra: declare rules as a match
pattern and a rewrite pattern (or callback), then apply them one location
at a time.

Quick Start:
    from mathrules import define_pattern_rule, apply_rule, parse_expr, format_expr

    rule = define_pattern_rule("#a + 0", "#a")
    format_expr(apply_rule(rule, parse_expr("2 * (x + 0)")))  # => "2 * x"

Pattern Syntax:
    #a                - match any subtree, bind to a
    #a_0 + ...        - match a run of terms, binding a_0, a_1, ...
    #eval(...)        - (rewrite only) evaluate to a number

Constraints:
    define_pattern_rule("#a + #a", "2 #a", {"a": is_number})

Matching semantics:
    - The innermost, leftmost match is rewritten first.
    - Sum and product patterns may match a contiguous run of arguments.
    - A repeated placeholder must match equal subtrees.
    - When nothing matches, apply_rule returns its input unchanged.
"""

__version__ = "0.1.0"

# Node model
from .nodes import (
    Node,
    Number,
    Identifier,
    Apply,
    Parentheses,
    Placeholder,
    EllipsisNode,
    NumericType,
    number_node,
    identifier_node,
    apply_node,
    parens_node,
    placeholder_node,
    ellipsis_node,
    is_add,
    is_mul,
    is_div,
    is_pow,
    is_neg,
    is_abs,
    is_number,
    is_identifier,
    is_parens,
    is_placeholder,
    is_ellipsis,
    is_operation,
    is_variable_factor,
    get_value,
    traverse,
    transform,
    replace_at,
)

# Text notation
from .parser import ParseError, parse_expr, format_expr

# Numeric evaluation
from .evaluator import (
    EvaluationError,
    FoldHandler,
    PreludeType,
    evaluate,
    nary_fold,
    unary_only,
    binary_only,
    gcd,
    lcm,
    nth_root,
    prime_factorization,
    ARITHMETIC_PRELUDE,
    NUMBER_THEORY_PRELUDE,
)

# Matching
from .matcher import (
    Bindings,
    MalformedPatternError,
    MatchResult,
    Range,
    wrap_bindings,
    match_node,
    search,
    populate_pattern,
    pattern_to_match_fn,
    pattern_to_rewrite_fn,
    get_placeholders,
    validate_pattern,
)

# Post-processing
from .utils import (
    check_bounds,
    fix_minuses,
    remove_unnecessary_parentheses,
    flatten_operands,
)

# Rules
from .rule import (
    Rule,
    define_rule,
    define_pattern_rule,
    can_apply_rule,
    apply_rule,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Nodes
    "Node",
    "Number",
    "Identifier",
    "Apply",
    "Parentheses",
    "Placeholder",
    "EllipsisNode",
    "NumericType",
    "number_node",
    "identifier_node",
    "apply_node",
    "parens_node",
    "placeholder_node",
    "ellipsis_node",
    "is_add",
    "is_mul",
    "is_div",
    "is_pow",
    "is_neg",
    "is_abs",
    "is_number",
    "is_identifier",
    "is_parens",
    "is_placeholder",
    "is_ellipsis",
    "is_operation",
    "is_variable_factor",
    "get_value",
    "traverse",
    "transform",
    "replace_at",
    # Text notation
    "ParseError",
    "parse_expr",
    "format_expr",
    # Evaluation
    "EvaluationError",
    "FoldHandler",
    "PreludeType",
    "evaluate",
    "nary_fold",
    "unary_only",
    "binary_only",
    "gcd",
    "lcm",
    "nth_root",
    "prime_factorization",
    "ARITHMETIC_PRELUDE",
    "NUMBER_THEORY_PRELUDE",
    # Matching
    "Bindings",
    "MalformedPatternError",
    "MatchResult",
    "Range",
    "wrap_bindings",
    "match_node",
    "search",
    "populate_pattern",
    "pattern_to_match_fn",
    "pattern_to_rewrite_fn",
    "get_placeholders",
    "validate_pattern",
    # Post-processing
    "check_bounds",
    "fix_minuses",
    "remove_unnecessary_parentheses",
    "flatten_operands",
    # Rules
    "Rule",
    "define_rule",
    "define_pattern_rule",
    "can_apply_rule",
    "apply_rule",
]
