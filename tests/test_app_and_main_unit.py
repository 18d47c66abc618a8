import pytest
from fastapi.testclient import TestClient

import main as entry
from backend.app.main import create_app
from config import Settings


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(Settings(log_level="WARNING")))


# ── Stateless routes ─────────────────────────────────────────────────────

def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_normalize(client) -> None:
    resp = client.post("/api/normalize", json={"expression": "2x²"})
    assert resp.status_code == 200
    assert resp.json()["canonical"] == "2*x**2"

    resp = client.post("/api/normalize", json={"expression": "2x; drop()"})
    assert resp.status_code == 400
    assert "Invalid character" in resp.json()["detail"]


def test_evaluate_value_undefined_and_invalid(client) -> None:
    body = client.post("/api/evaluate", json={"expression": "2x", "variables": {"x": 5}}).json()
    assert body["status"] == "value"
    assert body["value"] == 10
    assert body["indicator"] == "computed"

    body = client.post("/api/evaluate", json={"expression": "2x"}).json()
    assert body["status"] == "undefined"
    assert body["value"] is None
    assert body["missing"] == ["x"]

    body = client.post("/api/evaluate", json={"expression": "1/0"}).json()
    assert body["status"] == "value"
    assert body["value"] is None
    assert body["value_text"] == "∞"

    body = client.post("/api/evaluate", json={"expression": "2x; drop()"}).json()
    assert body["status"] == "invalid"
    assert body["error"]


def test_scale(client) -> None:
    resp = client.post("/api/scale", json={"left": ["x", "3"], "right": ["10"], "variables": {"x": 2}})
    assert resp.status_code == 200
    assert resp.json() == {
        "left_total": 5.0,
        "right_total": 10.0,
        "symbol": "<",
        "tilt": 10.0,
        "has_undefined": False,
    }

    resp = client.post("/api/scale", json={"left": ["(1"], "right": []})
    assert resp.status_code == 400


def test_solve(client) -> None:
    resp = client.post("/api/solve", json={"left": ["x", "3"], "right": ["10"]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["kind"] == "solved"
    assert body["value"] == 7
    assert body["equation"] == "x + 3 = 10"

    body = client.post("/api/solve", json={"left": ["x+1"], "right": ["x"]}).json()
    assert body["kind"] == "no_solution"

    resp = client.post("/api/solve", json={"left": ["2x;"], "right": ["1"]})
    assert resp.status_code == 400

    big = "9" * 308
    resp = client.post("/api/solve", json={"left": ["x", big, big], "right": ["1"]})
    assert resp.status_code == 200
    assert resp.json()["kind"] == "no_solution"

    resp = client.post("/api/solve", json={"left": ["x"], "right": [big]})
    assert resp.status_code == 200
    assert resp.json()["kind"] == "solved"


def test_builtin_names_are_rejected_as_variables(client) -> None:
    resp = client.post("/api/evaluate", json={"expression": "E", "variables": {"E": 5}})
    assert resp.status_code == 422
    assert "E" in str(resp.json()["detail"])

    resp = client.post("/api/solve", json={"left": ["x"], "right": ["1"], "variables": {"sqrt": 2}})
    assert resp.status_code == 422

    resp = client.post("/api/scale", json={"left": ["x"], "right": ["1"], "variables": {"x": 1}})
    assert resp.status_code == 200


def test_long_sum_over_http(client) -> None:
    expression = "+".join(["1"] * 3000)
    body = client.post("/api/evaluate", json={"expression": expression}).json()
    assert body["status"] == "value"
    assert body["value"] == 3000

    resp = client.post("/api/workspace/blocks", json={"expression": expression})
    assert resp.status_code == 201
    assert resp.json()["value"] == 3000


def test_graph(client) -> None:
    resp = client.post("/api/graph", json={"left": ["x", "3"], "right": ["10"]})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.content.startswith(b"\x89PNG")

    resp = client.post("/api/graph", json={"left": ["1"], "right": ["2"]})
    assert resp.status_code == 422


# ── Workspace routes ─────────────────────────────────────────────────────

def test_workspace_flow(client) -> None:
    ids = {}
    for expr in ["x", "3", "10"]:
        resp = client.post("/api/workspace/blocks", json={"expression": expr})
        assert resp.status_code == 201
        ids[expr] = resp.json()["id"]

    client.post(f"/api/workspace/blocks/{ids['x']}/move", json={"zone": "left"})
    client.post(f"/api/workspace/blocks/{ids['3']}/move", json={"zone": "left"})
    state = client.post(f"/api/workspace/blocks/{ids['10']}/move", json={"zone": "right"}).json()
    assert state["zones"]["bench"] == []
    assert state["scale"]["symbol"] == "="
    assert state["scale"]["has_undefined"] is True

    body = client.post("/api/workspace/solve").json()
    assert body["kind"] == "solved"
    assert body["workspace"]["variables"] == {"x": 7}
    assert body["workspace"]["zones"]["left"][0]["value"] == 7

    state = client.put("/api/workspace/variables/x", json={"value": 1}).json()
    assert state["scale"]["symbol"] == "<"
    assert state["scale"]["tilt"] == 12

    state = client.delete("/api/workspace/variables/x").json()
    assert state["variables"] == {}

    state = client.delete(f"/api/workspace/blocks/{ids['3']}").json()
    assert [b["expression"] for b in state["zones"]["left"]] == ["x"]

    state = client.post("/api/workspace/reset").json()
    assert all(blocks == [] for blocks in state["zones"].values())


def test_workspace_errors(client) -> None:
    resp = client.post("/api/workspace/blocks", json={"expression": "2x; drop()"})
    assert resp.status_code == 400
    assert client.get("/api/workspace").json()["zones"]["bench"] == []

    assert client.delete("/api/workspace/blocks/missing").status_code == 404
    assert client.delete("/api/workspace/variables/missing").status_code == 404

    resp = client.put("/api/workspace/variables/PI", json={"value": 3})
    assert resp.status_code == 400

    block_id = client.post("/api/workspace/blocks", json={"expression": "1"}).json()["id"]
    resp = client.post(f"/api/workspace/blocks/{block_id}/move", json={"zone": "table"})
    assert resp.status_code == 400
    assert "Unknown zone" in resp.json()["detail"]


# ── Entry point ──────────────────────────────────────────────────────────

def test_main_entry_runs_server(monkeypatch) -> None:
    called = {}

    def fake_run(app, **kwargs):
        called["app"] = app
        called.update(kwargs)

    monkeypatch.setattr(entry.uvicorn, "run", fake_run)
    entry.main()
    assert called["app"] == "backend.app.main:app"
    assert called["port"] == Settings().port
