"""
Expression normalizer for the balance scale.

Rewrites human-friendly notation (superscripts, radical glyphs, π, implicit
multiplication, ``^``) into the canonical text the evaluator parses, and
rejects anything outside the allowed character set.
"""

import re


class InvalidExpressionError(ValueError):
    """Raised when an expression cannot be accepted by the scale."""


# ── Symbol tables ────────────────────────────────────────────────────────

_SUPERSCRIPT_POWERS = {
    "²": "^2",   # ²
    "³": "^3",   # ³
}

# Radical glyph → unary root function it stands for.
_RADICALS = {
    "√": "sqrt",   # √
    "∛": "cbrt",   # ∛
}

PI_NAME = "PI"

# "pi" as a word; a leading digit is fine ("2pi"), a neighbouring letter is not.
_PI_WORD = re.compile(r"(?<![A-Za-z_])pi(?![A-Za-z0-9_])", re.IGNORECASE)

_IMPLICIT_MUL = (
    (re.compile(r"([0-9])([A-Za-z_])"), r"\1*\2"),     # 2x   → 2*x
    (re.compile(r"([0-9])(\()"), r"\1*\2"),            # 2(x) → 2*(x)
    (re.compile(r"(\))([A-Za-z0-9_])"), r"\1*\2"),     # (a)b → (a)*b
    (re.compile(r"(\))(\()"), r"\1*\2"),               # (a)(b) → (a)*(b)
)

_ALLOWED = re.compile(r"^[0-9+\-*/().,A-Za-z_\s]*$")

_NUMBER_CHARS = set("0123456789.")
_IDENT_START = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_IDENT_CHARS = _IDENT_START | set("0123456789")


# ── Radical operands ─────────────────────────────────────────────────────

def _matching_paren(s: str, start: int) -> int:
    """Return the index of the ``)`` closing the ``(`` at *start*, or -1."""
    depth = 0
    for i in range(start, len(s)):
        if s[i] == "(":
            depth += 1
        elif s[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _operand_end(s: str, start: int) -> int:
    """Return the end index (exclusive) of the operand beginning at *start*.

    An operand is a number, a parenthesised group, or an identifier that is
    optionally followed by a call's argument list.  Returns -1 when nothing
    usable starts there.
    """
    if start >= len(s):
        return -1
    ch = s[start]
    if ch == "(":
        close = _matching_paren(s, start)
        return close + 1 if close != -1 else -1
    if ch in _NUMBER_CHARS:
        end = start
        while end < len(s) and s[end] in _NUMBER_CHARS:
            end += 1
        return end
    if ch in _IDENT_START:
        end = start
        while end < len(s) and s[end] in _IDENT_CHARS:
            end += 1
        if end < len(s) and s[end] == "(":
            close = _matching_paren(s, end)
            return close + 1 if close != -1 else -1
        return end
    return -1


def _expand_radicals(s: str) -> str:
    """Turn ``√9`` / ``∛(x+1)`` into ``sqrt(9)`` / ``cbrt(x+1)``.

    Glyphs are rewritten right to left so that ``√√16`` nests correctly.
    """
    while True:
        positions = [i for i, ch in enumerate(s) if ch in _RADICALS]
        if not positions:
            return s
        pos = positions[-1]
        func = _RADICALS[s[pos]]
        start = pos + 1
        while start < len(s) and s[start].isspace():
            start += 1
        end = _operand_end(s, start)
        if end == -1:
            raise InvalidExpressionError(
                f"The {s[pos]} sign must be followed by a number, "
                f"a variable or a bracketed expression."
            )
        operand = s[start:end]
        if operand.startswith("(") and _matching_paren(operand, 0) == len(operand) - 1:
            operand = operand[1:-1]
        s = f"{s[:pos]}{func}({operand}){s[end:]}"


# ── Public API ───────────────────────────────────────────────────────────

def substitute_symbols(s: str) -> str:
    """Replace display-only glyphs with their canonical spelling."""
    for glyph, text in _SUPERSCRIPT_POWERS.items():
        s = s.replace(glyph, text)
    s = s.replace("π", PI_NAME)
    s = _PI_WORD.sub(PI_NAME, s)
    return _expand_radicals(s)


def insert_implicit_multiplication(s: str) -> str:
    for pattern, repl in _IMPLICIT_MUL:
        s = pattern.sub(repl, s)
    return s


def validate_characters(s: str) -> None:
    """Reject text containing characters outside the canonical alphabet."""
    if _ALLOWED.match(s):
        return
    bad = sorted({ch for ch in s if not _ALLOWED.match(ch)})
    raise InvalidExpressionError(
        f"Invalid character(s): {' '.join(bad)}\n"
        f"Only letters, numbers, and math symbols "
        f"(+ - * / ^ ( ) . ,) are allowed."
    )


def normalize(raw: str) -> str:
    """Return the canonical form of *raw*.

    Raises InvalidExpressionError when the text is empty, a radical sign has
    no operand, or a disallowed character survives the rewrites.
    """
    if raw is None or not raw.strip():
        raise InvalidExpressionError("Expression cannot be empty.")
    s = raw.strip()
    s = substitute_symbols(s)
    s = insert_implicit_multiplication(s)
    s = s.replace("^", "**")
    validate_characters(s)
    return s
