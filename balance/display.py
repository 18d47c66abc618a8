"""
Display helpers for blocks: pretty expressions, numbers and indicators.

These only produce text for a rendering collaborator; nothing here feeds
back into evaluation.
"""

import math
import re

_SUPER = str.maketrans("0123456789xyn-", "⁰¹²³⁴⁵⁶⁷⁸⁹ˣʸⁿ⁻")
_SUB = str.maketrans("0123456789xyn", "₀₁₂₃₄₅₆₇₈₉ₓᵧₙ")

INDICATOR_UNDEFINED = "undefined"
INDICATOR_COMPUTED = "computed"
INDICATOR_LITERAL = "literal"


def _to_superscript(text: str) -> str:
    return text.translate(_SUPER)


def _to_subscript(text: str) -> str:
    return text.translate(_SUB)


def format_expression(expr: str) -> str:
    """Render a block's expression with math glyphs.

    ``root(8, 3)`` → ``³√8``, ``log(8, 2)`` → ``log₂(8)``, ``2*x/3`` →
    ``2×x÷3``, ``sqrt(x)`` → ``√x``.
    """
    def _root_repl(m):
        val, index = m.group(1), m.group(2).strip()
        if re.fullmatch(r"[0-9xyn-]+", index, re.IGNORECASE):
            return f"{_to_superscript(index)}√{val}"
        return f"{index}√{val}"

    def _log_repl(m):
        val, base = m.group(1), m.group(2).strip()
        if re.fullmatch(r"[0-9xyn]+", base, re.IGNORECASE):
            return f"log{_to_subscript(base)}({val})"
        return f"log{base}({val})"

    s = re.sub(r"root\(([^,]+),\s*([^)]+)\)", _root_repl, expr)
    s = re.sub(r"log\(([^,]+),\s*([^)]+)\)", _log_repl, s)
    s = s.replace("*", "×")
    s = s.replace("/", "÷")
    s = re.sub(r"sqrt\(([^)]+)\)", r"√\1", s)
    s = re.sub(r"cbrt\(([^)]+)\)", r"∛\1", s)
    return s


def format_number(value: float) -> str:
    """Format a float the way a calculator shows it.

    - Integers have no decimal point (``7`` not ``7.0``).
    - Other finite values use the shortest round-tripping form.
    - NaN and infinities get readable names.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def round_for_display(value: float, decimals: int = 2) -> float:
    """Round a total or block value for display (``10.456`` → ``10.46``)."""
    if not math.isfinite(value):
        return value
    return float(f"{value:.{decimals}f}")


def block_indicator(expression: str, value: float) -> str:
    """Which glyph a block shows: undefined variable, computed value, or none."""
    if math.isnan(value):
        return INDICATOR_UNDEFINED
    if expression.strip() != format_number(value):
        return INDICATOR_COMPUTED
    return INDICATOR_LITERAL


def block_caption(expression: str, value: float) -> str:
    indicator = block_indicator(expression, value)
    if indicator == INDICATOR_UNDEFINED:
        return "define variable"
    if indicator == INDICATOR_COMPUTED:
        return f"= {format_number(round_for_display(value))}"
    return "value"
