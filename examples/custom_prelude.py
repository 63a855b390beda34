"""
Example custom prelude for MATHRULES.

A prelude maps operator and function names to fold handlers used by
#eval(...) markers in rewrite patterns.

Usage:
    mathrules -p examples/custom_prelude.py -e "gcd(12, 8) x" \
        --match "gcd(#a, #b)" --rewrite "#eval(gcd(#a, #b))"
    mathrules -p examples/custom_prelude.py -e "mod(7, 3) x" \
        --match "mod(#a, #b)" --rewrite "#eval(mod(#a, #b))"
"""

import math
from mathrules import binary_only, unary_only, nary_fold, ARITHMETIC_PRELUDE, gcd, lcm

# Start with arithmetic prelude and extend it
PRELUDE = {
    **ARITHMETIC_PRELUDE,

    # Number theory
    "gcd": nary_fold(0, gcd),
    "lcm": nary_fold(1, lcm),
    "mod": binary_only(lambda a, b: a % b),
    "factorial": unary_only(math.factorial),

    # Rounding
    "floor": unary_only(math.floor),
    "ceil": unary_only(math.ceil),
    "round": unary_only(round),

    # Min/max
    "min": nary_fold(math.inf, min),
    "max": nary_fold(-math.inf, max),

    # Transcendental
    "sqrt": unary_only(math.sqrt),
    "exp": unary_only(math.exp),
    "ln": unary_only(math.log),
    "sin": unary_only(math.sin),
    "cos": unary_only(math.cos),
}
