"""Window bookkeeping for the desktop simulator.

Keeps the open windows in insertion order, hands out ids, and applies
focus, drag and resize gestures. Every operation is synchronous; the
controller serialises calls so they never interleave.

Drags and resizes are begin/update*/end gestures. ``begin_*`` snapshots
the window geometry, each update recomputes the absolute geometry from
that snapshot plus the total pointer offset, and ``end_gesture`` drops the
snapshot. Replaying the same total offset through any number of updates
therefore lands on the same geometry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

from .models import (
    MIN_HEIGHT,
    MIN_WIDTH,
    DesktopState,
    Rect,
    WindowKind,
    WindowRecord,
    default_rect,
)


GestureKind = Literal["move", "resize"]


@dataclass(frozen=True)
class Gesture:
    kind: GestureKind
    origin: Rect


class WindowManager:
    """Owns the window collection and the gestures in flight."""

    def __init__(self, state: Optional[DesktopState] = None) -> None:
        self._state = state or DesktopState()
        self._next_id = 1
        self._gestures: Dict[int, Gesture] = {}

    @property
    def windows(self) -> List[WindowRecord]:
        return self._state.windows

    @property
    def state(self) -> DesktopState:
        return self._state

    def get(self, win_id: int) -> Optional[WindowRecord]:
        for w in self._state.windows:
            if w.id == win_id:
                return w
        return None

    def active_gesture(self, win_id: int) -> Optional[Gesture]:
        return self._gestures.get(win_id)

    # ----- Lifecycle -----
    def open(self, kind: WindowKind) -> WindowRecord:
        open_count = len(self._state.windows)
        win = WindowRecord(
            id=self._next_id,
            kind=kind,
            rect=default_rect(kind, open_count),
            z=open_count + 1,
        )
        self._next_id += 1
        self._state.windows.append(win)
        self._state.menu_open = False
        return win

    def close(self, win_id: int) -> Optional[WindowRecord]:
        win = self.get(win_id)
        if win is None:
            return None
        self._state.windows.remove(win)
        self._gestures.pop(win_id, None)
        return win

    def focus(self, win_id: int) -> Optional[WindowRecord]:
        win = self.get(win_id)
        if win is None:
            return None
        win.z = max([w.z for w in self._state.windows] + [0]) + 1
        return win

    # ----- Gestures -----
    def begin_move(self, win_id: int) -> Optional[WindowRecord]:
        return self._begin(win_id, "move")

    def begin_resize(self, win_id: int) -> Optional[WindowRecord]:
        return self._begin(win_id, "resize")

    def update_move(self, win_id: int, dx: int, dy: int) -> Optional[WindowRecord]:
        win, gesture = self._tracked(win_id, "move")
        if win is None or gesture is None:
            return None
        win.rect.x = gesture.origin.x + dx
        win.rect.y = gesture.origin.y + dy
        return win

    def update_resize(self, win_id: int, dw: int, dh: int) -> Optional[WindowRecord]:
        win, gesture = self._tracked(win_id, "resize")
        if win is None or gesture is None:
            return None
        win.rect.w = max(MIN_WIDTH, gesture.origin.w + dw)
        win.rect.h = max(MIN_HEIGHT, gesture.origin.h + dh)
        return win

    def end_gesture(self, win_id: int) -> None:
        self._gestures.pop(win_id, None)

    def move(self, win_id: int, dx: int, dy: int) -> Optional[WindowRecord]:
        """Offset a window from its drag origin, starting a one-shot drag if none is live."""
        if self._has_gesture(win_id, "move"):
            return self.update_move(win_id, dx, dy)
        if self.begin_move(win_id) is None:
            return None
        try:
            return self.update_move(win_id, dx, dy)
        finally:
            self.end_gesture(win_id)

    def resize(self, win_id: int, dw: int, dh: int) -> Optional[WindowRecord]:
        if self._has_gesture(win_id, "resize"):
            return self.update_resize(win_id, dw, dh)
        if self.begin_resize(win_id) is None:
            return None
        try:
            return self.update_resize(win_id, dw, dh)
        finally:
            self.end_gesture(win_id)

    # ----- Start menu -----
    def toggle_menu(self) -> bool:
        self._state.menu_open = not self._state.menu_open
        return self._state.menu_open

    def dismiss_menu(self) -> bool:
        self._state.menu_open = False
        return False

    # ----- Helpers -----
    def _begin(self, win_id: int, kind: GestureKind) -> Optional[WindowRecord]:
        win = self.get(win_id)
        if win is None:
            return None
        # A new begin on the same window supersedes whatever gesture it had.
        origin = Rect(win.rect.x, win.rect.y, win.rect.w, win.rect.h)
        self._gestures[win_id] = Gesture(kind=kind, origin=origin)
        return win

    def _has_gesture(self, win_id: int, kind: GestureKind) -> bool:
        gesture = self._gestures.get(win_id)
        return gesture is not None and gesture.kind == kind

    def _tracked(self, win_id: int, kind: GestureKind):
        win = self.get(win_id)
        gesture = self._gestures.get(win_id)
        if win is None or gesture is None or gesture.kind != kind:
            return None, None
        return win, gesture
