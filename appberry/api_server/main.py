from __future__ import annotations

import asyncio
import random
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from appberry.apps.minesweeper import Grid, player_view
from appberry.apps.notepad import KeyValueStore

from .config import Settings, load_settings
from .controller import Controller, WrongContent
from .demo_db import DemoStore
from .events import EventHub
from .models import WindowKind, WindowRecord
from .schemas import (
    CalculatorPress,
    CalculatorState,
    CellTarget,
    DemoRow,
    DesktopStateModel,
    EchoPayload,
    MenuState,
    MinesweeperState,
    MoveDelta,
    NotepadState,
    NotepadText,
    RectModel,
    ResizeDelta,
    WindowCreate,
    WindowState,
)


def to_window_state(win: WindowRecord) -> WindowState:
    return WindowState(
        id=win.id,
        kind=win.kind.value,
        title=win.title,
        rect=RectModel(x=win.rect.x, y=win.rect.y, w=win.rect.w, h=win.rect.h),
        z=win.z,
    )


def to_minesweeper_state(win_id: int, grid: Grid) -> MinesweeperState:
    return MinesweeperState(
        window_id=win_id,
        rows=grid.rows,
        cols=grid.cols,
        bomb_count=grid.bomb_count,
        flags=grid.flags,
        status=grid.status.value,
        cells=player_view(grid),
    )


@contextmanager
def window_errors() -> Iterator[None]:
    try:
        yield
    except KeyError:
        raise HTTPException(status_code=404, detail="window not found")
    except WrongContent as exc:
        raise HTTPException(status_code=409, detail=str(exc))


def make_app(
    settings: Optional[Settings] = None,
    *,
    rng: Optional[random.Random] = None,
    notepad_store: Optional[KeyValueStore] = None,
) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(
        title="Appberry Desktop API",
        version="v1",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        swagger_ui_oauth2_redirect_url="/api/docs/oauth2-redirect",
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    events = EventHub()
    ctl = Controller(events, settings, rng=rng, notepad_store=notepad_store)
    demo_store = DemoStore(settings.db_path)
    app.state.controller = ctl
    app.state.settings = settings

    @app.exception_handler(RequestValidationError)
    async def validation_failed(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": jsonable_encoder(exc.errors())},
        )

    # API routes are always prefixed with /api so they never shadow the
    # frontend's static assets.

    # ----- Demo routes -----
    @app.get("/api", response_class=PlainTextResponse)
    async def hello() -> str:
        return "Hello World!"

    @app.post("/api/echo")
    async def echo(payload: EchoPayload) -> Dict[str, Any]:
        return {"field1": payload.field1, "field2": payload.field2}

    @app.get("/api/d1-demo", response_model=List[DemoRow])
    async def d1_demo() -> List[DemoRow]:
        # Writes from a GET route; demonstration only.
        rows = await asyncio.to_thread(demo_store.round_trip)
        return [DemoRow(**r) for r in rows]

    @app.get("/api/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True}

    # ----- Desktop -----
    @app.get("/api/desktop/state", response_model=DesktopStateModel)
    async def desktop_state() -> DesktopStateModel:
        st = await ctl.get_state()
        return DesktopStateModel(
            windows=[to_window_state(w) for w in st.windows],
            menu_open=st.menu_open,
            uptime_sec=time.time() - st.started_at,
        )

    @app.post("/api/desktop/menu/toggle", response_model=MenuState)
    async def menu_toggle() -> MenuState:
        return MenuState(menu_open=await ctl.toggle_menu())

    @app.post("/api/desktop/menu/dismiss", response_model=MenuState)
    async def menu_dismiss() -> MenuState:
        return MenuState(menu_open=await ctl.dismiss_menu())

    @app.post("/api/windows", response_model=WindowState)
    async def open_window(payload: WindowCreate) -> WindowState:
        win = await ctl.open_window(WindowKind(payload.kind))
        return to_window_state(win)

    @app.post("/api/windows/{win_id}/focus", response_model=WindowState)
    async def focus(win_id: int) -> WindowState:
        with window_errors():
            win = await ctl.focus(win_id)
        return to_window_state(win)

    @app.post("/api/windows/{win_id}/move/begin", response_model=WindowState)
    async def move_begin(win_id: int) -> WindowState:
        with window_errors():
            win = await ctl.begin_move(win_id)
        return to_window_state(win)

    @app.post("/api/windows/{win_id}/move", response_model=WindowState)
    async def move(win_id: int, payload: MoveDelta) -> WindowState:
        with window_errors():
            win = await ctl.move(win_id, payload.dx, payload.dy)
        return to_window_state(win)

    @app.post("/api/windows/{win_id}/resize/begin", response_model=WindowState)
    async def resize_begin(win_id: int) -> WindowState:
        with window_errors():
            win = await ctl.begin_resize(win_id)
        return to_window_state(win)

    @app.post("/api/windows/{win_id}/resize", response_model=WindowState)
    async def resize(win_id: int, payload: ResizeDelta) -> WindowState:
        with window_errors():
            win = await ctl.resize(win_id, payload.dw, payload.dh)
        return to_window_state(win)

    @app.post("/api/windows/{win_id}/gesture/end")
    async def gesture_end(win_id: int) -> Dict[str, Any]:
        await ctl.end_gesture(win_id)
        return {"ok": True}

    @app.post("/api/windows/{win_id}/close")
    async def close(win_id: int) -> Dict[str, Any]:
        await ctl.close(win_id)
        return {"ok": True}

    # ----- Calculator -----
    @app.get("/api/windows/{win_id}/calculator", response_model=CalculatorState)
    async def calculator_state(win_id: int) -> CalculatorState:
        with window_errors():
            expression = await ctl.calculator_expression(win_id)
        return CalculatorState(window_id=win_id, expression=expression)

    @app.post("/api/windows/{win_id}/calculator/press", response_model=CalculatorState)
    async def calculator_press(win_id: int, payload: CalculatorPress) -> CalculatorState:
        with window_errors():
            expression = await ctl.calculator_press(win_id, payload.button)
        return CalculatorState(window_id=win_id, expression=expression)

    # ----- Notepad -----
    @app.get("/api/windows/{win_id}/notepad", response_model=NotepadState)
    async def notepad_get(win_id: int) -> NotepadState:
        with window_errors():
            text = await ctl.notepad_text(win_id)
        return NotepadState(window_id=win_id, text=text)

    @app.put("/api/windows/{win_id}/notepad", response_model=NotepadState)
    async def notepad_edit(win_id: int, payload: NotepadText) -> NotepadState:
        with window_errors():
            text = await ctl.notepad_edit(win_id, payload.text)
        return NotepadState(window_id=win_id, text=text)

    @app.post("/api/windows/{win_id}/notepad/save")
    async def notepad_save(win_id: int) -> Dict[str, Any]:
        with window_errors():
            await ctl.notepad_save(win_id)
        return {"ok": True}

    # ----- Minesweeper -----
    @app.get("/api/windows/{win_id}/minesweeper", response_model=MinesweeperState)
    async def minesweeper_get(win_id: int) -> MinesweeperState:
        with window_errors():
            grid = await ctl.minesweeper_grid(win_id)
        return to_minesweeper_state(win_id, grid)

    @app.post("/api/windows/{win_id}/minesweeper/reveal", response_model=MinesweeperState)
    async def minesweeper_reveal(win_id: int, payload: CellTarget) -> MinesweeperState:
        with window_errors():
            grid, _ = await ctl.minesweeper_reveal(win_id, payload.row, payload.col)
        return to_minesweeper_state(win_id, grid)

    @app.post("/api/windows/{win_id}/minesweeper/flag", response_model=MinesweeperState)
    async def minesweeper_flag(win_id: int, payload: CellTarget) -> MinesweeperState:
        with window_errors():
            grid = await ctl.minesweeper_flag(win_id, payload.row, payload.col)
        return to_minesweeper_state(win_id, grid)

    @app.post("/api/windows/{win_id}/minesweeper/restart", response_model=MinesweeperState)
    async def minesweeper_restart(win_id: int) -> MinesweeperState:
        with window_errors():
            grid = await ctl.minesweeper_restart(win_id)
        return to_minesweeper_state(win_id, grid)

    @app.websocket("/api/ws")
    async def ws(websocket: WebSocket) -> None:
        await websocket.accept()
        await events.add(websocket)
        try:
            while True:
                # Keep connection alive; ignore client messages for now
                await websocket.receive_text()
        except WebSocketDisconnect:
            await events.remove(websocket)

    return app


app = make_app()
