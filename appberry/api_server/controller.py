from __future__ import annotations

import asyncio
import json
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, TypeVar, Union

from appberry.apps import minesweeper
from appberry.apps.calculator import Calculator
from appberry.apps.minesweeper import GameStatus, Grid
from appberry.apps.notepad import JsonFileStore, KeyValueStore, MemoryStore, Notepad

from .config import Settings
from .events import EventHub
from .models import DesktopState, WindowKind, WindowRecord
from .window_manager import WindowManager


class WrongContent(TypeError):
    """Raised when a window is asked to act as an app it does not host."""


@dataclass
class MinesweeperContent:
    grid: Grid
    rng: random.Random

    def restart(self) -> Grid:
        self.grid = minesweeper.new_game(self.grid.rows, self.grid.cols, self.grid.bomb_count, rng=self.rng)
        return self.grid


Content = Union[Calculator, Notepad, MinesweeperContent]
C = TypeVar("C", Calculator, Notepad, MinesweeperContent)


class Controller:
    """Desktop session shared by every HTTP request.

    All mutations run under one lock so window and game operations never
    interleave; each change is broadcast on the event hub and appended to
    the NDJSON state-event log.
    """

    def __init__(
        self,
        events: EventHub,
        settings: Optional[Settings] = None,
        *,
        rng: Optional[random.Random] = None,
        notepad_store: Optional[KeyValueStore] = None,
    ) -> None:
        self._settings = settings or Settings()
        self._events = events
        self._lock = asyncio.Lock()
        self._wm = WindowManager()
        self._contents: Dict[int, Content] = {}
        self._rng = rng or random.Random()
        if notepad_store is None:
            if self._settings.notepad_store_path:
                notepad_store = JsonFileStore(self._settings.notepad_store_path)
            else:
                notepad_store = MemoryStore()
        self._notepad_store = notepad_store
        self._state_event_log_path = Path(self._settings.state_event_log_path)

    # ----- Query -----
    async def get_state(self) -> DesktopState:
        return self._wm.state

    # ----- Windows -----
    async def open_window(self, kind: WindowKind) -> WindowRecord:
        async with self._lock:
            win = self._wm.open(kind)
            self._contents[win.id] = self._make_content(kind)
        await self._events.emit("window.created", self._serialize_window(win))
        self._append_state_event("window.created", {"window_id": win.id, "kind": win.kind.value})
        return win

    async def focus(self, win_id: int) -> WindowRecord:
        async with self._lock:
            win = self._require(self._wm.focus(win_id), win_id)
        await self._events.emit("window.updated", self._serialize_window(win))
        self._append_state_event("window.focused", {"window_id": win_id, "z": win.z})
        return win

    async def begin_move(self, win_id: int) -> WindowRecord:
        async with self._lock:
            return self._require(self._wm.begin_move(win_id), win_id)

    async def begin_resize(self, win_id: int) -> WindowRecord:
        async with self._lock:
            return self._require(self._wm.begin_resize(win_id), win_id)

    async def move(self, win_id: int, dx: int, dy: int) -> WindowRecord:
        async with self._lock:
            win = self._require(self._wm.move(win_id, dx, dy), win_id)
        await self._events.emit("window.updated", self._serialize_window(win))
        self._append_state_event("window.moved", {"window_id": win_id, "x": win.rect.x, "y": win.rect.y})
        return win

    async def resize(self, win_id: int, dw: int, dh: int) -> WindowRecord:
        async with self._lock:
            win = self._require(self._wm.resize(win_id, dw, dh), win_id)
        await self._events.emit("window.updated", self._serialize_window(win))
        self._append_state_event("window.resized", {"window_id": win_id, "w": win.rect.w, "h": win.rect.h})
        return win

    async def end_gesture(self, win_id: int) -> None:
        async with self._lock:
            self._wm.end_gesture(win_id)

    async def close(self, win_id: int) -> None:
        async with self._lock:
            win = self._wm.close(win_id)
            self._contents.pop(win_id, None)
        if win is None:
            return
        await self._events.emit("window.closed", {"id": win_id})
        self._append_state_event("window.closed", {"window_id": win_id})

    # ----- Start menu -----
    async def toggle_menu(self) -> bool:
        async with self._lock:
            open_ = self._wm.toggle_menu()
        await self._events.emit("menu.updated", {"menu_open": open_})
        return open_

    async def dismiss_menu(self) -> bool:
        async with self._lock:
            open_ = self._wm.dismiss_menu()
        await self._events.emit("menu.updated", {"menu_open": open_})
        return open_

    # ----- Calculator -----
    async def calculator_press(self, win_id: int, button: str) -> str:
        async with self._lock:
            calc = self._content(win_id, Calculator)
            expression = calc.press(button)
        await self._events.emit("calculator.updated", {"window_id": win_id, "expression": expression})
        return expression

    async def calculator_expression(self, win_id: int) -> str:
        async with self._lock:
            return self._content(win_id, Calculator).expression

    # ----- Notepad -----
    async def notepad_text(self, win_id: int) -> str:
        async with self._lock:
            return self._content(win_id, Notepad).text

    async def notepad_edit(self, win_id: int, text: str) -> str:
        async with self._lock:
            return self._content(win_id, Notepad).edit(text)

    async def notepad_save(self, win_id: int) -> None:
        async with self._lock:
            pad = self._content(win_id, Notepad)
            pad.save()
            length = len(pad.text)
        await self._events.emit("notepad.saved", {"window_id": win_id, "length": length})
        self._append_state_event("notepad.saved", {"window_id": win_id, "length": length})

    # ----- Minesweeper -----
    async def minesweeper_grid(self, win_id: int) -> Grid:
        async with self._lock:
            return self._content(win_id, MinesweeperContent).grid

    async def minesweeper_reveal(self, win_id: int, row: int, col: int) -> Tuple[Grid, GameStatus]:
        async with self._lock:
            game = self._content(win_id, MinesweeperContent)
            before = game.grid.status
            grid, status = minesweeper.reveal(game.grid, row, col)
            game.grid = grid
        await self._events.emit("minesweeper.updated", {"window_id": win_id, "status": status.value})
        if status != before:
            self._append_state_event("minesweeper.finished", {"window_id": win_id, "status": status.value})
        return grid, status

    async def minesweeper_flag(self, win_id: int, row: int, col: int) -> Grid:
        async with self._lock:
            game = self._content(win_id, MinesweeperContent)
            grid = minesweeper.toggle_flag(game.grid, row, col)
            game.grid = grid
        await self._events.emit("minesweeper.updated", {"window_id": win_id, "status": grid.status.value})
        return grid

    async def minesweeper_restart(self, win_id: int) -> Grid:
        async with self._lock:
            grid = self._content(win_id, MinesweeperContent).restart()
        await self._events.emit("minesweeper.updated", {"window_id": win_id, "status": grid.status.value})
        self._append_state_event("minesweeper.restarted", {"window_id": win_id})
        return grid

    # ----- Helpers -----
    def _make_content(self, kind: WindowKind) -> Content:
        if kind == WindowKind.calculator:
            return Calculator()
        if kind == WindowKind.notepad:
            pad = Notepad(self._notepad_store)
            pad.mount()
            return pad
        s = self._settings
        grid = minesweeper.new_game(s.minesweeper_rows, s.minesweeper_cols, s.minesweeper_bombs, rng=self._rng)
        return MinesweeperContent(grid=grid, rng=self._rng)

    def _require(self, win: Optional[WindowRecord], win_id: int) -> WindowRecord:
        if win is None:
            raise KeyError(win_id)
        return win

    def _content(self, win_id: int, expected: Type[C]) -> C:
        if win_id not in self._contents:
            raise KeyError(win_id)
        content = self._contents[win_id]
        if not isinstance(content, expected):
            raise WrongContent(f"window {win_id} does not host a {expected.__name__.lower()}")
        return content

    def _serialize_window(self, w: WindowRecord) -> Dict[str, Any]:
        return {
            "id": w.id,
            "kind": w.kind.value,
            "title": w.title,
            "rect": {"x": w.rect.x, "y": w.rect.y, "w": w.rect.w, "h": w.rect.h},
            "z": w.z,
        }

    def _append_state_event(self, event_type: str, data: Dict[str, Any], actor: str = "api") -> None:
        """Append state events as NDJSON for local-first auditability."""
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "actor": actor,
            "data": data,
        }
        try:
            self._state_event_log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._state_event_log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, separators=(",", ":")) + "\n")
        except OSError as exc:
            # Event logging must not break command flow.
            print(f"[WARN] failed to append state event {event_type}: {exc}")
