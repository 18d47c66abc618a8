"""
Balance solver.

Finds the value of the single unknown variable that makes both pans weigh
the same.  Each pan total is assumed to be affine in the unknown, so probing
the totals at 0 and 1 gives slope and intercept for both sides and the
balance point falls out of one division:

    slopeL·x + L0 = slopeR·x + R0   →   x = (R0 − L0) / (slopeL − slopeR)

Non-linear pans (``x^2``) are not detected; the probe still fits a line
through two points and the answer is simply wrong for them.
"""

import logging
import math
from dataclasses import dataclass, field

from balance.display import format_number
from balance.evaluator import compile_expression
from balance.normalizer import InvalidExpressionError
from balance.symbolic import linear_equation

logger = logging.getLogger("balance.solver")

# Slopes / intercepts closer than this are treated as equal.
EPSILON = 1e-10
RESULT_DECIMALS = 2

NO_BLOCKS_ON_SCALE = "no_blocks_on_scale"
NOTHING_TO_SOLVE = "nothing_to_solve"
TOO_MANY_UNKNOWNS = "too_many_unknowns"
NO_SOLUTION = "no_solution"
BALANCED_FOR_ANY_VALUE = "balanced_for_any_value"
SOLVED = "solved"


@dataclass
class SolveOutcome:
    kind: str
    message: str
    target: str | None = None
    value: float | None = None
    unknowns: tuple = ()
    # totals sampled at x = 0 and x = 1: {"left": (L0, L1), "right": (R0, R1)}
    probes: dict = field(default_factory=dict)
    equation: str = ""

    @property
    def solved(self) -> bool:
        return self.kind == SOLVED

    @property
    def slopes(self) -> tuple:
        (l0, l1), (r0, r1) = self.probes["left"], self.probes["right"]
        return l1 - l0, r1 - r0

    @property
    def intercepts(self) -> tuple:
        return self.probes["left"][0], self.probes["right"][0]

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "target": self.target,
            "value": self.value,
            "unknowns": list(self.unknowns),
            "equation": self.equation,
        }


# ── Helpers ──────────────────────────────────────────────────────────────

def round_half_up(value: float, decimals: int = RESULT_DECIMALS) -> float:
    """Round like a calculator does: halves go up, not to even.

    Values too large to scale by 10**decimals already have no fractional
    digits and come back unchanged, as do NaN and infinities.
    """
    factor = 10 ** decimals
    if not math.isfinite(value * factor):
        return value
    return math.floor(value * factor + 0.5) / factor


def _compile_all(expressions) -> list:
    compiled = []
    for expr in expressions:
        try:
            compiled.append(compile_expression(expr))
        except InvalidExpressionError as e:
            raise InvalidExpressionError(f"Invalid expression '{expr}': {e}")
    return compiled


def _free_names(compiled, variables) -> list:
    """Unbound variable names in order of first appearance."""
    names = {}
    for expr in compiled:
        for name in expr.missing(variables):
            names.setdefault(name, None)
    return list(names)


def pan_total(compiled, variables) -> float:
    """Sum a pan; undefined and non-finite terms weigh nothing."""
    total = 0.0
    for expr in compiled:
        result = expr.evaluate(variables)
        if result.is_value and math.isfinite(result.value):
            total += result.value
    return total


def _totals_at(left, right, variables, target, x) -> tuple:
    probe_vars = dict(variables)
    probe_vars[target] = x
    return pan_total(left, probe_vars), pan_total(right, probe_vars)


# ── Public API ───────────────────────────────────────────────────────────

def solve(left_exprs, right_exprs, variables=None) -> SolveOutcome:
    """Find the value of the one unknown that balances the two pans.

    *left_exprs* / *right_exprs* are expression strings; *variables* maps the
    already-known names to values and is never modified.

    Raises InvalidExpressionError when any expression does not parse.
    """
    variables = variables or {}
    if not left_exprs and not right_exprs:
        return SolveOutcome(NO_BLOCKS_ON_SCALE, "Put some blocks on the scale first.")

    left = _compile_all(left_exprs)
    right = _compile_all(right_exprs)

    unknowns = _free_names(left + right, variables)
    if not unknowns:
        return SolveOutcome(NOTHING_TO_SOLVE, "There are no unknown variables to solve for.")
    if len(unknowns) > 1:
        return SolveOutcome(
            TOO_MANY_UNKNOWNS,
            f"There are too many unknown variables ({', '.join(unknowns)}). "
            f"The scale can only solve for one variable at a time.",
            unknowns=tuple(unknowns),
        )

    target = unknowns[0]
    l0, r0 = _totals_at(left, right, variables, target, 0.0)
    l1, r1 = _totals_at(left, right, variables, target, 1.0)
    probes = {"left": (l0, l1), "right": (r0, r1)}
    slope_left = l1 - l0
    slope_right = r1 - r0
    denominator = slope_left - slope_right
    sampled = (l0, l1, r0, r1, slope_left, slope_right, denominator)
    if not all(math.isfinite(v) for v in sampled):
        logger.debug("pan totals overflow while probing %s", target)
        return SolveOutcome(
            NO_SOLUTION,
            f"Impossible to balance. The pan totals are too large to compare "
            f"when solving for {target}.",
            target=target, unknowns=(target,), probes=probes,
        )
    equation = linear_equation(target, slope_left, l0, slope_right, r0)
    logger.debug("probing %s: left %s, right %s", target, probes["left"], probes["right"])

    if abs(denominator) < EPSILON:
        if abs(l0 - r0) < EPSILON:
            return SolveOutcome(
                BALANCED_FOR_ANY_VALUE,
                f"The scale is already balanced for any value of {target}.",
                target=target, unknowns=(target,), probes=probes, equation=equation,
            )
        return SolveOutcome(
            NO_SOLUTION,
            f"Impossible to balance. The variable {target} cancels out "
            f"or the equation has no solution.",
            target=target, unknowns=(target,), probes=probes, equation=equation,
        )

    quotient = (r0 - l0) / denominator
    if not math.isfinite(quotient):
        return SolveOutcome(
            NO_SOLUTION,
            f"Impossible to balance. The value of {target} would be too large.",
            target=target, unknowns=(target,), probes=probes, equation=equation,
        )
    result = round_half_up(quotient)
    return SolveOutcome(
        SOLVED,
        f"The scale balances when {target} = {format_number(result)}.",
        target=target, value=result, unknowns=(target,), probes=probes,
        equation=equation,
    )
