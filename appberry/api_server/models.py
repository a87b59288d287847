from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Dict, List


class WindowKind(str, enum.Enum):
    # Keep in sync with WindowCreate.kind in schemas.py.
    calculator = "calculator"
    notepad = "notepad"
    minesweeper = "minesweeper"


WINDOW_TITLES: Dict[WindowKind, str] = {
    WindowKind.calculator: "Calculator",
    WindowKind.notepad: "Notepad",
    WindowKind.minesweeper: "Minesweeper",
}

MIN_WIDTH = 120
MIN_HEIGHT = 100


@dataclass
class Rect:
    x: int
    y: int
    w: int
    h: int


@dataclass
class WindowRecord:
    id: int
    kind: WindowKind
    rect: Rect
    z: int = 0

    @property
    def title(self) -> str:
        return WINDOW_TITLES[self.kind]


@dataclass
class DesktopState:
    windows: List[WindowRecord] = field(default_factory=list)
    menu_open: bool = False
    started_at: float = field(default_factory=lambda: time.time())


def default_rect(kind: WindowKind, open_count: int) -> Rect:
    offset = 100 + 20 * open_count
    height = 220 if kind == WindowKind.calculator else 300
    return Rect(offset, offset, 200, height)
