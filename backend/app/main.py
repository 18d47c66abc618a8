"""
HTTP API for the balance scale.

Stateless routes evaluate and solve whatever expressions the caller sends;
the ``/api/workspace`` routes drive one shared Workspace (blocks, pans,
variables) the way the interactive scale does.
"""

import io
import logging
import math
import threading
from contextlib import contextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from backend.app.schemas import (
    BlockResponse,
    EvaluateRequest,
    EvaluateResponse,
    ExpressionRequest,
    HealthResponse,
    MoveRequest,
    NormalizeResponse,
    PansRequest,
    ScaleResponse,
    SolveResponse,
    VariableRequest,
    WorkspaceResponse,
    WorkspaceSolveResponse,
)
from balance.display import block_indicator, format_expression, format_number
from balance.evaluator import evaluate
from balance.graph import build_figure
from balance.normalizer import InvalidExpressionError, normalize
from balance.scale import read_scale
from balance.solver import solve
from balance.workspace import Workspace
from config import Settings

logger = logging.getLogger("balance")

router = APIRouter(prefix="/api")


@contextmanager
def _workspace(request: Request):
    """Hold the workspace lock; sync routes run on a thread pool."""
    with request.app.state.workspace_lock:
        yield request.app.state.workspace


# ── Stateless routes ─────────────────────────────────────────────────────

@router.post("/normalize", response_model=NormalizeResponse)
def normalize_expression(req: ExpressionRequest):
    try:
        canonical = normalize(req.expression)
    except InvalidExpressionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"expression": req.expression, "canonical": canonical}


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate_expression(req: EvaluateRequest):
    result = evaluate(req.expression, req.variables)
    if result.is_invalid:
        return {"status": result.status, "error": result.error}
    return {
        "status": result.status,
        "value": result.value if math.isfinite(result.value) else None,
        "value_text": format_number(result.value),
        "missing": list(result.missing),
        "pretty": format_expression(req.expression),
        "indicator": block_indicator(req.expression, result.value),
    }


def _pan_values(expressions, variables) -> list:
    values = []
    for expr in expressions:
        result = evaluate(expr, variables)
        if result.is_invalid:
            raise HTTPException(status_code=400,
                                detail=f"Invalid expression '{expr}': {result.error}")
        values.append(result.value)
    return values


@router.post("/scale", response_model=ScaleResponse)
def scale_reading(req: PansRequest):
    left = _pan_values(req.left, req.variables)
    right = _pan_values(req.right, req.variables)
    return read_scale(left, right).as_dict()


@router.post("/solve", response_model=SolveResponse)
def solve_pans(req: PansRequest):
    try:
        outcome = solve(req.left, req.right, req.variables)
    except InvalidExpressionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return outcome.as_dict()


@router.post("/graph")
def graph_pans(req: PansRequest, request: Request):
    try:
        outcome = solve(req.left, req.right, req.variables)
    except InvalidExpressionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    fig = build_figure(req.left, req.right, req.variables, outcome,
                       points=request.app.state.settings.graph_points)
    if fig is None:
        raise HTTPException(status_code=422, detail=outcome.message)
    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor())
    return Response(content=buf.getvalue(), media_type="image/png")


# ── Workspace routes ─────────────────────────────────────────────────────

@router.get("/workspace", response_model=WorkspaceResponse)
def get_workspace(request: Request):
    with _workspace(request) as ws:
        return ws.as_dict()


@router.post("/workspace/blocks", response_model=BlockResponse, status_code=201)
def create_block(req: ExpressionRequest, request: Request):
    with _workspace(request) as ws:
        try:
            block = ws.create_block(req.expression)
        except InvalidExpressionError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return block.as_dict()


@router.delete("/workspace/blocks/{block_id}", response_model=WorkspaceResponse)
def delete_block(block_id: str, request: Request):
    with _workspace(request) as ws:
        ws.delete_block(block_id)
        return ws.as_dict()


@router.post("/workspace/blocks/{block_id}/move", response_model=WorkspaceResponse)
def move_block(block_id: str, req: MoveRequest, request: Request):
    with _workspace(request) as ws:
        ws.move_block(block_id, req.zone)
        return ws.as_dict()


@router.put("/workspace/variables/{name}", response_model=WorkspaceResponse)
def set_variable(name: str, req: VariableRequest, request: Request):
    with _workspace(request) as ws:
        ws.set_variable(name, req.value)
        return ws.as_dict()


@router.delete("/workspace/variables/{name}", response_model=WorkspaceResponse)
def delete_variable(name: str, request: Request):
    with _workspace(request) as ws:
        ws.delete_variable(name)
        return ws.as_dict()


@router.post("/workspace/solve", response_model=WorkspaceSolveResponse)
def solve_workspace(request: Request):
    with _workspace(request) as ws:
        outcome = ws.solve_for_balance()
        return {**outcome.as_dict(), "workspace": ws.as_dict()}


@router.post("/workspace/reset", response_model=WorkspaceResponse)
def reset_workspace(request: Request):
    with _workspace(request) as ws:
        ws.reset()
        return ws.as_dict()


# ── App factory ──────────────────────────────────────────────────────────

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title=settings.app_title, version=settings.app_version)
    app.state.settings = settings
    app.state.workspace = Workspace()
    app.state.workspace_lock = threading.Lock()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health():
        return HealthResponse(status="ok", version=settings.app_version)

    @app.exception_handler(KeyError)
    async def key_error_handler(request: Request, exc: KeyError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    logger.info("%s %s ready.", settings.app_title, settings.app_version)
    return app


app = create_app()
