"""
SymPy rendering of the linear model the solver fits.

The solver only ever sees two numeric probes per pan; this module turns the
resulting slope/intercept pairs back into a readable equation such as
``2x + 3 = 10`` so the user can see what was actually solved.
"""

import re

from sympy import Float, Integer, Rational, Symbol

# Coefficients with a denominator above this are shown as decimals.
_MAX_DENOMINATOR = 1000
_DECIMAL_DIGITS = 6


def as_exact(value: float):
    """Return a SymPy number for *value*: an Integer, a small Rational, or a Float."""
    value = float(value)
    if value.is_integer():
        return Integer(int(value))
    frac = Rational(value).limit_denominator(_MAX_DENOMINATOR)
    if abs(float(frac) - value) < 1e-9:
        return frac
    return Float(value, _DECIMAL_DIGITS)


def linear_side(variable: str, slope: float, intercept: float):
    """``slope·variable + intercept`` as a SymPy expression."""
    return as_exact(slope) * Symbol(variable) + as_exact(intercept)


def format_expr(expr) -> str:
    """Format a SymPy expression the way blocks are typed (``2x + 3``)."""
    s = str(expr)
    s = s.replace("**", "^")
    # Remove * between coefficient and variable (e.g. 2*x → 2x)
    s = re.sub(r"(\d)\*([A-Za-z_])", r"\1\2", s)
    return s.replace("*", "·")


def linear_equation(variable: str, slope_left: float, intercept_left: float,
                    slope_right: float, intercept_right: float) -> str:
    """Render both pans' fitted lines as ``lhs = rhs``."""
    lhs = linear_side(variable, slope_left, intercept_left)
    rhs = linear_side(variable, slope_right, intercept_right)
    return f"{format_expr(lhs)} = {format_expr(rhs)}"
