"""
Workspace: the state behind one balance scale.

Holds the block table, which zone (bench, left pan, right pan) each block
sits in, and the variable environment.  Every change to the environment
re-evaluates all blocks synchronously so cached values never go stale.
"""

import logging
import math
import re
import uuid
from dataclasses import dataclass

from balance.display import block_caption, block_indicator, format_expression, format_number
from balance.evaluator import RESERVED_NAMES, evaluate
from balance.normalizer import InvalidExpressionError
from balance.scale import ScaleReading, read_scale
from balance.solver import SolveOutcome, solve

logger = logging.getLogger("balance.workspace")

BENCH = "bench"
LEFT = "left"
RIGHT = "right"
ZONES = (BENCH, LEFT, RIGHT)

_VAR_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class InvalidVariableError(ValueError):
    """Raised for a variable name or value the scale cannot use."""


class UnknownBlockError(KeyError):
    """Raised when a block id is not in the workspace."""

    def __str__(self) -> str:
        return f"No block with id '{self.args[0]}'."


class UnknownVariableError(KeyError):
    """Raised when deleting a variable that is not defined."""

    def __str__(self) -> str:
        return f"No variable named '{self.args[0]}'."


@dataclass
class Block:
    id: str
    expression: str
    value: float

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "expression": self.expression,
            "pretty": format_expression(self.expression),
            "value": self.value if math.isfinite(self.value) else None,
            "value_text": format_number(self.value),
            "indicator": block_indicator(self.expression, self.value),
            "caption": block_caption(self.expression, self.value),
        }


def _same_value(old: float, new: float) -> bool:
    # Two NaNs count as unchanged whatever made them NaN.
    if math.isnan(old) and math.isnan(new):
        return True
    return old == new


class Workspace:
    """Blocks, zones and variables for one scale.

    The workspace owns no global state; create as many as needed.
    """

    def __init__(self) -> None:
        self.blocks: dict[str, Block] = {}
        self.zones: dict[str, list[str]] = {zone: [] for zone in ZONES}
        self.variables: dict[str, float] = {}

    # ── Blocks ───────────────────────────────────────────────────────────

    def _new_id(self) -> str:
        while True:
            block_id = uuid.uuid4().hex[:7]
            if block_id not in self.blocks:
                return block_id

    def _get(self, block_id: str) -> Block:
        try:
            return self.blocks[block_id]
        except KeyError:
            raise UnknownBlockError(block_id)

    def create_block(self, expression: str) -> Block:
        """Evaluate *expression* and, if it is valid, put a new block on the bench.

        Raises InvalidExpressionError and stores nothing when it is not.
        """
        result = evaluate(expression, self.variables)
        if result.is_invalid:
            raise InvalidExpressionError(result.error)
        block = Block(self._new_id(), expression, result.value)
        self.blocks[block.id] = block
        self.zones[BENCH].append(block.id)
        logger.info("created block %s: %r = %s", block.id, expression,
                    format_number(block.value))
        return block

    def delete_block(self, block_id: str) -> None:
        self._get(block_id)
        del self.blocks[block_id]
        for zone in ZONES:
            if block_id in self.zones[zone]:
                self.zones[zone].remove(block_id)
        logger.info("deleted block %s", block_id)

    def zone_of(self, block_id: str) -> str:
        self._get(block_id)
        for zone in ZONES:
            if block_id in self.zones[zone]:
                return zone
        raise UnknownBlockError(block_id)

    def move_block(self, block_id: str, zone: str) -> None:
        """Move a block to the end of *zone*; moving within a zone does nothing."""
        if zone not in ZONES:
            raise ValueError(f"Unknown zone '{zone}'. Use one of: {', '.join(ZONES)}.")
        source = self.zone_of(block_id)
        if source == zone:
            return
        self.zones[source].remove(block_id)
        self.zones[zone].append(block_id)
        logger.debug("moved block %s: %s → %s", block_id, source, zone)

    def blocks_in(self, zone: str) -> list[Block]:
        return [self.blocks[block_id] for block_id in self.zones[zone]]

    def expressions_in(self, zone: str) -> list[str]:
        return [block.expression for block in self.blocks_in(zone)]

    # ── Variables ────────────────────────────────────────────────────────

    @staticmethod
    def _check_name(name: str) -> str:
        name = (name or "").strip()
        if not _VAR_NAME.match(name):
            raise InvalidVariableError(
                f"Invalid variable name '{name}'. Use letters, digits and "
                f"underscores, starting with a letter."
            )
        if name in RESERVED_NAMES:
            raise InvalidVariableError(
                f"'{name}' is a built-in constant or function and cannot be a variable."
            )
        return name

    @staticmethod
    def _check_value(value) -> float:
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (TypeError, ValueError):
            raise InvalidVariableError(f"Invalid variable value '{value}'.")
        if not math.isfinite(number):
            raise InvalidVariableError("Variable values must be finite numbers.")
        return number

    def set_variable(self, name: str, value) -> list[str]:
        """Bind *name* to *value* and refresh every block; returns changed ids."""
        name = self._check_name(name)
        self.variables[name] = self._check_value(value)
        logger.info("set %s = %s", name, format_number(self.variables[name]))
        return self.recompute()

    def delete_variable(self, name: str) -> list[str]:
        if name not in self.variables:
            raise UnknownVariableError(name)
        del self.variables[name]
        logger.info("deleted variable %s", name)
        return self.recompute()

    def recompute(self) -> list[str]:
        """Re-evaluate every block against the current variables.

        Only values that actually changed are written back, so calling this
        twice in a row changes nothing the second time.
        """
        changed = []
        for block in self.blocks.values():
            result = evaluate(block.expression, self.variables)
            if result.is_invalid:
                continue
            if not _same_value(block.value, result.value):
                block.value = result.value
                changed.append(block.id)
        logger.debug("recomputed %d block(s), %d changed", len(self.blocks), len(changed))
        return changed

    # ── Scale ────────────────────────────────────────────────────────────

    def reading(self) -> ScaleReading:
        return read_scale(
            [b.value for b in self.blocks_in(LEFT)],
            [b.value for b in self.blocks_in(RIGHT)],
        )

    def solve_for_balance(self) -> SolveOutcome:
        """Solve for the pans' single unknown and, if found, define it."""
        outcome = solve(self.expressions_in(LEFT), self.expressions_in(RIGHT),
                        self.variables)
        logger.info("solve: %s", outcome.message)
        if outcome.solved:
            self.set_variable(outcome.target, outcome.value)
        return outcome

    def reset(self) -> None:
        self.blocks.clear()
        for zone in ZONES:
            self.zones[zone].clear()
        self.variables.clear()
        logger.info("workspace reset")

    def as_dict(self) -> dict:
        return {
            "zones": {zone: [b.as_dict() for b in self.blocks_in(zone)] for zone in ZONES},
            "variables": dict(self.variables),
            "scale": self.reading().as_dict(),
        }
