"""
Expression evaluator for the balance scale.

Canonical text is tokenized and parsed by a small recursive-descent parser
into a tree, which is then walked with NumPy float64 arithmetic.  Nothing in
here hands text to ``eval``: the grammar below is the whole language.

Results are tri-state:

- ``value``     — a float, possibly ±inf (``1/0``) or NaN (``0/0``);
- ``undefined`` — some referenced variable has no value yet;
- ``invalid``   — the text was rejected or does not parse.
"""

import math
import re
from dataclasses import dataclass, field

import numpy as np

from balance.normalizer import InvalidExpressionError, normalize

VALUE = "value"
UNDEFINED = "undefined"
INVALID = "invalid"


# ── Results ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EvaluationResult:
    status: str
    value: float = math.nan
    missing: tuple = ()
    error: str = ""

    @classmethod
    def of_value(cls, value: float) -> "EvaluationResult":
        return cls(VALUE, float(value))

    @classmethod
    def of_undefined(cls, missing) -> "EvaluationResult":
        return cls(UNDEFINED, math.nan, tuple(missing))

    @classmethod
    def of_invalid(cls, error: str) -> "EvaluationResult":
        return cls(INVALID, math.nan, (), error)

    @property
    def is_value(self) -> bool:
        return self.status == VALUE

    @property
    def is_undefined(self) -> bool:
        return self.status == UNDEFINED

    @property
    def is_invalid(self) -> bool:
        return self.status == INVALID

    def as_number(self):
        """Numeric view: the value, NaN when undefined, None when invalid."""
        if self.is_invalid:
            return None
        return self.value


# ── Built-in library ─────────────────────────────────────────────────────

CONSTANTS = {
    "PI": math.pi,
    "E": math.e,
    "LN2": math.log(2),
    "LN10": math.log(10),
    "LOG2E": 1 / math.log(2),
    "LOG10E": 1 / math.log(10),
    "SQRT2": math.sqrt(2),
    "SQRT1_2": math.sqrt(0.5),
}


def _root(x, n):
    """Real n-th root; odd roots of negative numbers stay real."""
    if x < 0:
        if abs(np.fmod(n, 2)) == 1:
            return -np.power(-x, 1.0 / n)
        return np.float64(np.nan)
    return np.power(x, 1.0 / n)


def _log(x, base=None):
    """``log(x)`` is base 10; ``log(x, b)`` is base *b*."""
    if base is None:
        return np.log10(x)
    return np.log(x) / np.log(base)


def _round_half_up(x):
    return np.floor(x + 0.5)


# name → (callable, allowed argument counts)
FUNCTIONS = {
    "sqrt": (np.sqrt, (1,)),
    "cbrt": (np.cbrt, (1,)),
    "abs": (np.abs, (1,)),
    "sign": (np.sign, (1,)),
    "floor": (np.floor, (1,)),
    "ceil": (np.ceil, (1,)),
    "round": (_round_half_up, (1,)),
    "trunc": (np.trunc, (1,)),
    "exp": (np.exp, (1,)),
    "ln": (np.log, (1,)),
    "sin": (np.sin, (1,)),
    "cos": (np.cos, (1,)),
    "tan": (np.tan, (1,)),
    "asin": (np.arcsin, (1,)),
    "acos": (np.arccos, (1,)),
    "atan": (np.arctan, (1,)),
    "sinh": (np.sinh, (1,)),
    "cosh": (np.cosh, (1,)),
    "tanh": (np.tanh, (1,)),
    "asinh": (np.arcsinh, (1,)),
    "acosh": (np.arccosh, (1,)),
    "atanh": (np.arctanh, (1,)),
    "log": (_log, (1, 2)),
    "root": (_root, (2,)),
    "pow": (np.power, (2,)),
    "min": (np.minimum, (2,)),
    "max": (np.maximum, (2,)),
    "hypot": (np.hypot, (2,)),
}

RESERVED_NAMES = frozenset(CONSTANTS) | frozenset(FUNCTIONS)

_BINARY_OPS = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.divide,
    "**": np.power,
}


# ── Syntax tree ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Name:
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    operand: object


@dataclass(frozen=True)
class Binary:
    op: str
    left: object
    right: object


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple


# ── Tokenizer / parser ───────────────────────────────────────────────────

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>[0-9]+\.?[0-9]*|\.[0-9]+)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>\*\*|[-+*/(),]))"
)


def tokenize(text: str) -> list:
    """Split canonical text into ``(kind, text)`` pairs."""
    tokens = []
    pos = 0
    end = len(text.rstrip())
    while pos < end:
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise InvalidExpressionError(
                f"Could not understand '{text[pos:].strip()}'."
            )
        kind = m.lastgroup
        tokens.append((kind, m.group(kind)))
        pos = m.end()
    return tokens


class _Parser:
    """Recursive-descent parser over the token list.

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | power
    power   := primary ('**' unary)?
    primary := NUMBER | NAME | NAME '(' expr (',' expr)? ')' | '(' expr ')'
    """

    def __init__(self, tokens):
        self.tokens = tokens
        self.pos = 0

    def peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return ("eof", "")

    def consume(self):
        tok = self.peek()
        self.pos += 1
        return tok

    def expect(self, text: str) -> None:
        kind, value = self.consume()
        if value != text:
            found = "end of expression" if kind == "eof" else f"'{value}'"
            raise InvalidExpressionError(f"Expected '{text}' but found {found}.")

    def parse(self):
        if not self.tokens:
            raise InvalidExpressionError("Expression cannot be empty.")
        node = self.expr()
        kind, value = self.peek()
        if kind != "eof":
            raise InvalidExpressionError(f"Unexpected '{value}'.")
        return node

    def expr(self):
        node = self.term()
        while self.peek() in (("op", "+"), ("op", "-")):
            op = self.consume()[1]
            node = Binary(op, node, self.term())
        return node

    def term(self):
        node = self.unary()
        while self.peek() in (("op", "*"), ("op", "/")):
            op = self.consume()[1]
            node = Binary(op, node, self.unary())
        return node

    def unary(self):
        if self.peek() in (("op", "+"), ("op", "-")):
            op = self.consume()[1]
            return Unary(op, self.unary())
        return self.power()

    def power(self):
        node = self.primary()
        if self.peek() == ("op", "**"):
            self.consume()
            node = Binary("**", node, self.unary())
        return node

    def primary(self):
        kind, value = self.consume()
        if kind == "number":
            return Number(float(value))
        if kind == "name":
            if self.peek() == ("op", "("):
                return self.call(value)
            if value in FUNCTIONS:
                raise InvalidExpressionError(
                    f"'{value}' is a function; call it like {value}(...)."
                )
            return Name(value)
        if value == "(":
            node = self.expr()
            self.expect(")")
            return node
        if kind == "eof":
            raise InvalidExpressionError("Expression ends unexpectedly.")
        raise InvalidExpressionError(f"Unexpected '{value}'.")

    def call(self, name: str):
        if name not in FUNCTIONS:
            raise InvalidExpressionError(f"Unknown function '{name}'.")
        self.expect("(")
        args = [self.expr()]
        while self.peek() == ("op", ","):
            self.consume()
            args.append(self.expr())
        self.expect(")")
        allowed = FUNCTIONS[name][1]
        if len(args) not in allowed:
            counts = " or ".join(str(n) for n in allowed)
            raise InvalidExpressionError(
                f"{name}() takes {counts} argument(s), got {len(args)}."
            )
        return Call(name, tuple(args))


def parse(canonical: str):
    """Parse canonical text into a syntax tree."""
    try:
        return _Parser(tokenize(canonical)).parse()
    except RecursionError:
        raise InvalidExpressionError("Expression is nested too deeply.")


# ── Tree walking ─────────────────────────────────────────────────────────

class _Missing:
    """Marker for a value that depends on undefined variables."""

    __slots__ = ("names",)

    def __init__(self, names):
        self.names = names


def _merge_missing(values):
    names = {}
    for v in values:
        if isinstance(v, _Missing):
            names.update(dict.fromkeys(v.names))
    return _Missing(tuple(names)) if names else None


def _children(node) -> tuple:
    if isinstance(node, Unary):
        return (node.operand,)
    if isinstance(node, Binary):
        return (node.left, node.right)
    if isinstance(node, Call):
        return node.args
    return ()


def _leaf(node, variables):
    if isinstance(node, Number):
        return np.float64(node.value)
    if isinstance(node, Name):
        if node.name in CONSTANTS:
            return np.float64(CONSTANTS[node.name])
        if node.name in variables:
            return np.float64(variables[node.name])
        return _Missing((node.name,))
    raise TypeError(f"Unknown node {node!r}")


def _apply(node, args):
    if isinstance(node, Unary):
        return -args[0] if node.op == "-" else args[0]
    if isinstance(node, Binary):
        return _BINARY_OPS[node.op](*args)
    return FUNCTIONS[node.name][0](*args)


def _walk(root, variables):
    # Post-order over an explicit stack: a long sum is a left-nested tree
    # as deep as it has terms.
    values = []
    stack = [(root, False)]
    while stack:
        node, ready = stack.pop()
        children = _children(node)
        if not children:
            values.append(_leaf(node, variables))
        elif not ready:
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(children))
        else:
            args = values[-len(children):]
            del values[-len(children):]
            missing = _merge_missing(args)
            values.append(missing if missing else _apply(node, args))
    return values[0]


def _collect_names(root, out: dict) -> None:
    stack = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Name):
            if node.name not in CONSTANTS:
                out.setdefault(node.name, None)
        else:
            stack.extend(reversed(_children(node)))


@dataclass(frozen=True)
class CompiledExpression:
    """A parsed expression that can be evaluated against many environments."""

    source: str
    canonical: str
    tree: object = field(repr=False)
    names: tuple = ()

    def evaluate(self, variables=None) -> EvaluationResult:
        variables = variables or {}
        with np.errstate(all="ignore"):
            result = _walk(self.tree, variables)
        if isinstance(result, _Missing):
            return EvaluationResult.of_undefined(result.names)
        return EvaluationResult.of_value(result)

    def missing(self, variables) -> list:
        """Free variable names that *variables* does not bind."""
        return [n for n in self.names if n not in variables]


def compile_expression(source: str) -> CompiledExpression:
    """Normalize and parse *source*; raises InvalidExpressionError."""
    canonical = normalize(source)
    tree = parse(canonical)
    names = {}
    _collect_names(tree, names)
    return CompiledExpression(source, canonical, tree, tuple(names))


def evaluate(expression: str, variables=None) -> EvaluationResult:
    """Evaluate *expression* against *variables* (name → float).

    Never raises for bad input: rejected or malformed text comes back as an
    ``invalid`` result carrying the reason.  Built-in constants always win
    over *variables*, so an entry named ``E`` or ``PI`` has no effect; callers
    that accept names from users should reject RESERVED_NAMES first.
    """
    try:
        compiled = compile_expression(expression)
    except InvalidExpressionError as e:
        return EvaluationResult.of_invalid(str(e))
    return compiled.evaluate(variables)
