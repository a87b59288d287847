from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fastapi.testclient import TestClient

from appberry.api_server.config import Settings
from appberry.api_server.main import make_app
from appberry.apps.notepad import MemoryStore


@pytest.fixture
def client(tmp_path: Path):
    settings = Settings(
        db_path=str(tmp_path / "demo.db"),
        state_event_log_path=str(tmp_path / "events.ndjson"),
        minesweeper_rows=3,
        minesweeper_cols=3,
        minesweeper_bombs=0,
    )
    return TestClient(make_app(settings, rng=random.Random(3), notepad_store=MemoryStore()))


def _open(client, kind: str) -> dict:
    resp = client.post("/api/windows", json={"kind": kind})
    assert resp.status_code == 200
    return resp.json()


# ── windows ───────────────────────────────────────────────────────────────────


def test_open_two_windows(client) -> None:
    calc = _open(client, "calculator")
    pad = _open(client, "notepad")
    assert calc["id"] != pad["id"]
    assert calc["rect"] == {"x": 100, "y": 100, "w": 200, "h": 220}
    assert pad["rect"] == {"x": 120, "y": 120, "w": 200, "h": 300}
    assert pad["z"] == 2
    assert pad["title"] == "Notepad"

    state = client.get("/api/desktop/state").json()
    assert [w["id"] for w in state["windows"]] == [calc["id"], pad["id"]]


def test_unknown_kind_is_rejected(client) -> None:
    resp = client.post("/api/windows", json={"kind": "solitaire"})
    assert resp.status_code == 400


def test_focus_raises_window(client) -> None:
    calc = _open(client, "calculator")
    _open(client, "notepad")
    resp = client.post(f"/api/windows/{calc['id']}/focus")
    assert resp.status_code == 200
    assert resp.json()["z"] == 3


def test_unknown_window_is_404(client) -> None:
    assert client.post("/api/windows/99/focus").status_code == 404
    assert client.post("/api/windows/99/move", json={"dx": 1, "dy": 1}).status_code == 404
    assert client.get("/api/windows/99/notepad").status_code == 404


def test_drag_gesture(client) -> None:
    win = _open(client, "calculator")
    wid = win["id"]
    client.post(f"/api/windows/{wid}/move/begin")
    for dx, dy in [(3, 4), (10, 20), (-30, 50)]:
        resp = client.post(f"/api/windows/{wid}/move", json={"dx": dx, "dy": dy})
    client.post(f"/api/windows/{wid}/gesture/end")
    assert resp.json()["rect"]["x"] == 70
    assert resp.json()["rect"]["y"] == 150


def test_resize_clamps(client) -> None:
    wid = _open(client, "notepad")["id"]
    client.post(f"/api/windows/{wid}/resize/begin")
    resp = client.post(f"/api/windows/{wid}/resize", json={"dw": -1000, "dh": -1000})
    assert resp.json()["rect"]["w"] == 120
    assert resp.json()["rect"]["h"] == 100


def test_close_is_idempotent(client) -> None:
    wid = _open(client, "calculator")["id"]
    assert client.post(f"/api/windows/{wid}/close").json() == {"ok": True}
    assert client.post(f"/api/windows/{wid}/close").json() == {"ok": True}
    assert client.get("/api/desktop/state").json()["windows"] == []
    assert client.get(f"/api/windows/{wid}/calculator").status_code == 404


def test_start_menu(client) -> None:
    assert client.post("/api/desktop/menu/toggle").json() == {"menu_open": True}
    _open(client, "calculator")
    assert client.get("/api/desktop/state").json()["menu_open"] is False
    client.post("/api/desktop/menu/toggle")
    assert client.post("/api/desktop/menu/dismiss").json() == {"menu_open": False}


# ── apps ──────────────────────────────────────────────────────────────────────


def test_calculator_keys(client) -> None:
    wid = _open(client, "calculator")["id"]
    for key in ["1", "2", "×", "3"]:
        client.post(f"/api/windows/{wid}/calculator/press", json={"button": key})
    resp = client.post(f"/api/windows/{wid}/calculator/press", json={"button": "="})
    assert resp.json() == {"window_id": wid, "expression": "36"}


def test_calculator_rejects_unknown_button(client) -> None:
    wid = _open(client, "calculator")["id"]
    resp = client.post(f"/api/windows/{wid}/calculator/press", json={"button": "("})
    assert resp.status_code == 400


def test_wrong_content_is_409(client) -> None:
    wid = _open(client, "notepad")["id"]
    resp = client.post(f"/api/windows/{wid}/calculator/press", json={"button": "1"})
    assert resp.status_code == 409


def test_notepad_save_and_reload(client) -> None:
    first = _open(client, "notepad")["id"]
    client.put(f"/api/windows/{first}/notepad", json={"text": "unsaved"})
    assert _read_notepad(client, _open(client, "notepad")["id"]) == ""

    client.post(f"/api/windows/{first}/notepad/save")
    assert _read_notepad(client, _open(client, "notepad")["id"]) == "unsaved"


def _read_notepad(client, wid: int) -> str:
    return client.get(f"/api/windows/{wid}/notepad").json()["text"]


def test_minesweeper_flow(client) -> None:
    wid = _open(client, "minesweeper")["id"]
    state = client.get(f"/api/windows/{wid}/minesweeper").json()
    assert state["cells"] == [["#"] * 3] * 3
    assert state["status"] == "in_progress"

    state = client.post(f"/api/windows/{wid}/minesweeper/flag", json={"row": 0, "col": 0}).json()
    assert state["cells"][0][0] == "F"
    assert state["flags"] == 1

    state = client.post(f"/api/windows/{wid}/minesweeper/reveal", json={"row": 2, "col": 2}).json()
    assert state["cells"] == [["F", "0", "0"], ["0", "0", "0"], ["0", "0", "0"]]
    assert state["status"] == "in_progress"

    client.post(f"/api/windows/{wid}/minesweeper/flag", json={"row": 0, "col": 0})
    state = client.post(f"/api/windows/{wid}/minesweeper/reveal", json={"row": 0, "col": 0}).json()
    assert state["status"] == "won"

    # out-of-grid clicks are ignored
    again = client.post(f"/api/windows/{wid}/minesweeper/reveal", json={"row": 7, "col": 7}).json()
    assert again == state

    state = client.post(f"/api/windows/{wid}/minesweeper/restart").json()
    assert state["status"] == "in_progress"
    assert state["cells"] == [["#"] * 3] * 3
