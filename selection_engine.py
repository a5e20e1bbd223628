from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

Cell = Tuple[int, int]  # (row, col)
Step = Tuple[int, int]  # (row delta, col delta), one of the 8 directions


# -----------------------------------------------------------------------------
# Simple logger hook (optional; mirrors puzzle_engine)
# -----------------------------------------------------------------------------
_LOGGER = None  # type: Optional[Callable[[str], None]]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


# -----------------------------------------------------------------------------
# Pointer events
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    x: float
    y: float


@dataclass(frozen=True)
class PointerCancel:
    x: float
    y: float


PointerEvent = Union[PointerDown, PointerMove, PointerUp, PointerCancel]


# -----------------------------------------------------------------------------
# Geometry and config
# -----------------------------------------------------------------------------
@dataclass
class GridGeometry:
    """
    Where the grid sits on screen. Screen points are absolute; centers and
    segments are relative to the grid's top-left corner.
    """
    left: float
    top: float
    width: float
    height: float
    size: int

    @classmethod
    def square(cls, size: int, cell: float, left: float = 0.0, top: float = 0.0) -> "GridGeometry":
        return cls(left=left, top=top, width=size * cell, height=size * cell, size=size)

    @property
    def cell_width(self) -> float:
        return self.width / self.size

    @property
    def cell_height(self) -> float:
        return self.height / self.size

    def cell_at(self, x: float, y: float) -> Optional[Cell]:
        """Cell under a screen point, or None outside the grid."""
        lx = x - self.left
        ly = y - self.top
        if lx < 0 or ly < 0 or lx >= self.width or ly >= self.height:
            return None
        r = int(math.floor(ly / self.cell_height))
        c = int(math.floor(lx / self.cell_width))
        if r < 0 or r >= self.size or c < 0 or c >= self.size:
            return None
        return (r, c)

    def center(self, cell: Cell) -> Point:
        r, c = cell
        return Point(x=(c + 0.5) * self.cell_width, y=(r + 0.5) * self.cell_height)

    def local(self, x: float, y: float) -> Point:
        return Point(x=x - self.left, y=y - self.top)

    def screen_center(self, cell: Cell) -> Point:
        """Absolute screen point of a cell center (for synthesizing events)."""
        p = self.center(cell)
        return Point(x=p.x + self.left, y=p.y + self.top)


@dataclass
class SelectionConfig:
    """Touch tuning knobs. Pixels are screen pixels."""
    min_pixels: float = 10.0        # no direction until one axis moves this far
    diagonal_slop: float = 0.38     # min/max ratio at or above which a drag is diagonal
    axis_dominance: float = 2.4     # how much one axis must beat the other for a straight lock
    end_tolerance: int = 1          # Chebyshev cells between release cell and word end
    release_min_pixels: Optional[float] = 8.0  # drop taps on release; None disables


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point


@dataclass(frozen=True)
class WordFound:
    word: str
    start_cell: Cell
    end_cell: Cell
    start_center: Point
    end_center: Point
    completes_puzzle: bool = False


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"  # pointer down, direction not locked yet
    LOCKED = "locked"


def _sign(v: float) -> int:
    if v > 0:
        return 1
    if v < 0:
        return -1
    return 0


def classify_direction(dx: float, dy: float, config: Optional[SelectionConfig] = None) -> Optional[Step]:
    """
    Map a screen displacement to one of 8 directions, or None if it is too
    short or the angle is ambiguous. Screen y grows downward, like rows.
    """
    cfg = config or SelectionConfig()
    adx = abs(dx)
    ady = abs(dy)

    if adx < cfg.min_pixels and ady < cfg.min_pixels:
        return None

    lo = min(adx, ady)
    hi = max(adx, ady)
    if hi == 0:
        return None

    if lo / hi >= cfg.diagonal_slop:
        return (_sign(dy), _sign(dx))
    if ady >= adx * cfg.axis_dominance:
        return (_sign(dy), 0)
    if adx >= ady * cfg.axis_dominance:
        return (0, _sign(dx))
    return None


def chebyshev(a: Cell, b: Cell) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


# -----------------------------------------------------------------------------
# State machine
# -----------------------------------------------------------------------------
@dataclass
class SelectionEngine:
    """
    One puzzle's drag-to-select logic.

    Feed it pointer events with handle(). A drag locks to one of 8
    directions once it is long enough; on release the locked line is
    matched against the words not found yet. At most one word per gesture.
    """
    grid: List[List[str]]
    words: Sequence[str]
    geometry: GridGeometry
    config: SelectionConfig = field(default_factory=SelectionConfig)
    active: bool = True  # host gate (e.g. countdown still running)

    found: List[str] = field(default_factory=list, init=False)
    locked_segments: List[Segment] = field(default_factory=list, init=False)
    live_segment: Optional[Segment] = field(default=None, init=False)

    start_cell: Optional[Cell] = field(default=None, init=False)
    start_point: Optional[Point] = field(default=None, init=False)
    last_point: Optional[Point] = field(default=None, init=False)
    direction: Optional[Step] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.words = list(self.words)
        self._found_set = set()

    # --- state ---------------------------------------------------------------
    @property
    def state(self) -> GestureState:
        if self.start_cell is None:
            return GestureState.IDLE
        if self.direction is None:
            return GestureState.DRAGGING
        return GestureState.LOCKED

    @property
    def is_complete(self) -> bool:
        return bool(self.words) and all(w in self._found_set for w in self.words)

    def is_found(self, word: str) -> bool:
        return word in self._found_set

    def _clear_gesture(self) -> None:
        self.live_segment = None
        self.start_cell = None
        self.start_point = None
        self.last_point = None
        self.direction = None

    def global_release(self) -> None:
        """Pointer released or cancelled anywhere: drop the gesture, keep found words."""
        self._clear_gesture()

    def reset(self) -> None:
        """Forget found words too (new puzzle on the same engine)."""
        self._clear_gesture()
        self.found = []
        self.locked_segments = []
        self._found_set = set()

    # --- transitions -----------------------------------------------------------
    def handle(self, event: PointerEvent) -> Optional[WordFound]:
        if isinstance(event, PointerDown):
            self._on_down(event)
            return None
        if isinstance(event, PointerMove):
            self._on_move(event)
            return None
        if isinstance(event, (PointerUp, PointerCancel)):
            try:
                return self._on_release(event)
            finally:
                self._clear_gesture()
        raise TypeError(f"unknown pointer event: {event!r}")

    def _on_down(self, ev: PointerDown) -> None:
        if not self.active or self.is_complete:
            return
        # A second down replaces whatever gesture was running
        self._clear_gesture()

        cell = self.geometry.cell_at(ev.x, ev.y)
        if cell is None:
            return

        self.start_cell = cell
        self.start_point = Point(ev.x, ev.y)
        self.last_point = Point(ev.x, ev.y)
        self.live_segment = Segment(self.geometry.center(cell), self.geometry.local(ev.x, ev.y))

    def _on_move(self, ev: PointerMove) -> None:
        if not self.active or self.start_cell is None or self.is_complete:
            return
        self.last_point = Point(ev.x, ev.y)

        if self.direction is None and self.start_point is not None:
            self.direction = classify_direction(
                ev.x - self.start_point.x, ev.y - self.start_point.y, self.config
            )

        self.live_segment = Segment(self.geometry.center(self.start_cell), self.geometry.local(ev.x, ev.y))

    def _on_release(self, ev: Union[PointerUp, PointerCancel]) -> Optional[WordFound]:
        if not self.active or self.is_complete:
            return None
        if self.start_cell is None or self.start_point is None or self.direction is None:
            return None

        lift = Point(ev.x, ev.y)
        min_px = self.config.release_min_pixels
        if min_px is not None:
            if abs(lift.x - self.start_point.x) < min_px and abs(lift.y - self.start_point.y) < min_px:
                return None

        lift_cell = self.geometry.cell_at(lift.x, lift.y)
        return self._match(self.start_cell, self.direction, lift_cell)

    def _match(self, start: Cell, step: Step, lift_cell: Optional[Cell]) -> Optional[WordFound]:
        n = len(self.grid)
        sr, sc = start
        dr, dc = step

        for w in self.words:
            if w in self._found_set:
                continue

            end = (sr + dr * (len(w) - 1), sc + dc * (len(w) - 1))
            if end[0] < 0 or end[0] >= n or end[1] < 0 or end[1] >= n:
                continue

            # Released outside the grid: nothing to compare, keep going
            if lift_cell is not None and chebyshev(lift_cell, end) > self.config.end_tolerance:
                continue

            path = "".join(self.grid[sr + dr * i][sc + dc * i] for i in range(len(w)))
            if path != w and path[::-1] != w:
                continue

            self.found.append(w)
            self._found_set.add(w)
            seg = Segment(self.geometry.center(start), self.geometry.center(end))
            self.locked_segments.append(seg)
            _log(f"[select] found '{w}' {start}->{end}")
            return WordFound(
                word=w,
                start_cell=start,
                end_cell=end,
                start_center=seg.start,
                end_center=seg.end,
                completes_puzzle=self.is_complete,
            )
        return None


def drag_events(geometry: GridGeometry, start: Cell, end: Cell, steps: int = 4) -> List[PointerEvent]:
    """
    Synthesize a straight drag from one cell center to another:
    down, a few moves, up. Handy for non-pointer front-ends and tests.
    """
    a = geometry.screen_center(start)
    b = geometry.screen_center(end)
    events: List[PointerEvent] = [PointerDown(a.x, a.y)]
    n = max(1, int(steps))
    for i in range(1, n + 1):
        t = i / n
        events.append(PointerMove(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t))
    events.append(PointerUp(b.x, b.y))
    return events
