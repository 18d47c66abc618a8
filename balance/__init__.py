"""Expression engine and solver behind the two-pan balance scale."""

from balance.evaluator import EvaluationResult, compile_expression, evaluate
from balance.normalizer import InvalidExpressionError, normalize
from balance.scale import ScaleReading, read_scale
from balance.solver import SolveOutcome, solve
from balance.workspace import Block, Workspace

__all__ = [
    "Block",
    "EvaluationResult",
    "InvalidExpressionError",
    "ScaleReading",
    "SolveOutcome",
    "Workspace",
    "compile_expression",
    "evaluate",
    "normalize",
    "read_scale",
    "solve",
]
