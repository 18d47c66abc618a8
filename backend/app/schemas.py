"""Request and response models for the balance scale API."""

from pydantic import BaseModel, FiniteFloat, field_validator

from balance.evaluator import RESERVED_NAMES


def _check_variable_names(variables: dict) -> dict:
    reserved = sorted(name for name in variables if name in RESERVED_NAMES)
    if reserved:
        raise ValueError(
            f"{', '.join(reserved)}: built-in constants and functions cannot be variables."
        )
    return variables


class HealthResponse(BaseModel):
    status: str
    version: str


class ExpressionRequest(BaseModel):
    expression: str


class NormalizeResponse(BaseModel):
    expression: str
    canonical: str


class EvaluateRequest(BaseModel):
    expression: str
    variables: dict[str, FiniteFloat] = {}

    @field_validator("variables")
    @classmethod
    def no_reserved_names(cls, variables: dict) -> dict:
        return _check_variable_names(variables)


class EvaluateResponse(BaseModel):
    status: str
    value: float | None = None
    value_text: str | None = None
    missing: list[str] = []
    error: str = ""
    pretty: str | None = None
    indicator: str | None = None


class PansRequest(BaseModel):
    left: list[str] = []
    right: list[str] = []
    variables: dict[str, FiniteFloat] = {}

    @field_validator("variables")
    @classmethod
    def no_reserved_names(cls, variables: dict) -> dict:
        return _check_variable_names(variables)


class ScaleResponse(BaseModel):
    left_total: float | None
    right_total: float | None
    symbol: str
    tilt: float
    has_undefined: bool


class SolveResponse(BaseModel):
    kind: str
    message: str
    target: str | None = None
    value: float | None = None
    unknowns: list[str] = []
    equation: str = ""


class MoveRequest(BaseModel):
    zone: str


class VariableRequest(BaseModel):
    value: FiniteFloat


class BlockResponse(BaseModel):
    id: str
    expression: str
    pretty: str
    value: float | None = None
    value_text: str
    indicator: str
    caption: str


class WorkspaceResponse(BaseModel):
    zones: dict[str, list[BlockResponse]]
    variables: dict[str, float]
    scale: ScaleResponse


class WorkspaceSolveResponse(SolveResponse):
    workspace: WorkspaceResponse
