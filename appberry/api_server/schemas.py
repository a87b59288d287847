from __future__ import annotations

from typing import List, Literal, Union

from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr


# ----- Demo routes -----
class EchoPayload(BaseModel):
    field1: StrictStr
    field2: Union[StrictInt, StrictFloat]


class DemoRow(BaseModel):
    id: str
    description: str


# ----- Desktop -----
class RectModel(BaseModel):
    x: int
    y: int
    w: int
    h: int


class WindowCreate(BaseModel):
    kind: Literal["calculator", "notepad", "minesweeper"]


class WindowState(BaseModel):
    id: int
    kind: str
    title: str
    rect: RectModel
    z: int


class DesktopStateModel(BaseModel):
    windows: List[WindowState]
    menu_open: bool
    uptime_sec: float


class MenuState(BaseModel):
    menu_open: bool


class MoveDelta(BaseModel):
    dx: int
    dy: int


class ResizeDelta(BaseModel):
    dw: int
    dh: int


# ----- Apps -----
CalculatorButton = Literal[
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
    "+", "-", "×", "÷", "*", "/", "C", "=",
]


class CalculatorPress(BaseModel):
    button: CalculatorButton


class CalculatorState(BaseModel):
    window_id: int
    expression: str


class NotepadText(BaseModel):
    text: str


class NotepadState(BaseModel):
    window_id: int
    text: str


class CellTarget(BaseModel):
    row: int
    col: int


class MinesweeperState(BaseModel):
    window_id: int
    rows: int
    cols: int
    bomb_count: int
    flags: int
    status: Literal["in_progress", "won", "lost"]
    # "#" hidden, "F" flagged, "*" bomb, "0"-"8" revealed count
    cells: List[List[str]]
