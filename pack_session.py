from __future__ import annotations

import time
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence

from puzzle_engine import PuzzleResult, PuzzleSpec, generate_one_puzzle
from selection_engine import GridGeometry, PointerEvent, SelectionConfig, SelectionEngine, WordFound


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
# Seeds
# -----------------------------------------------------------------------------
def today_key(now: Optional[date] = None) -> str:
    """Local calendar day as YYYY-MM-DD; every player sees the same packs that day."""
    d = now or datetime.now()
    return f"{d.year}-{d.month:02d}-{d.day:02d}"


def daily_pack_seeds(count: int, day: str) -> List[str]:
    return [f"daily-{day}-pack-{i + 1}" for i in range(count)]


def puzzle_seed(pack_seed: str, index: int) -> str:
    return f"{pack_seed}-{index}"


def format_time(ms: float) -> str:
    """MM:SS.hh"""
    ms = max(0, int(ms))
    m = ms // 60000
    s = (ms % 60000) // 1000
    h = (ms % 1000) // 10
    return f"{m:02d}:{s:02d}.{h:02d}"


# -----------------------------------------------------------------------------
# Pack: memoized puzzles
# -----------------------------------------------------------------------------
class PuzzlePack:
    """The puzzles of one pack, generated on first use and kept."""

    def __init__(self, pack_seed: str, bank: Sequence[str], spec: Optional[PuzzleSpec] = None):
        self.pack_seed = pack_seed
        self.bank = list(bank)
        self.spec = spec or PuzzleSpec()
        self._cache: Dict[int, PuzzleResult] = {}

    def __len__(self) -> int:
        return self.spec.pack_size

    def puzzle(self, index: int) -> PuzzleResult:
        if index < 0 or index >= self.spec.pack_size:
            raise IndexError(f"puzzle index {index} outside pack of {self.spec.pack_size}")
        if index not in self._cache:
            self._cache[index] = generate_one_puzzle(self.bank, puzzle_seed(self.pack_seed, index), self.spec)
        return self._cache[index]

    def puzzles(self) -> List[PuzzleResult]:
        return [self.puzzle(i) for i in range(self.spec.pack_size)]


# -----------------------------------------------------------------------------
# Session: one player working through one pack
# -----------------------------------------------------------------------------
class PackSession:
    """
    Drives a pack puzzle by puzzle.

    The first puzzle is built in the constructor, so PuzzleGenerationFailed
    can come out of PackSession(...) as well as out of handle().

    Pointer events go to the current puzzle's SelectionEngine. When its last
    word is found the session moves to the next puzzle; after the last puzzle
    the pack is complete and the clock stops.
    """

    def __init__(
        self,
        pack: PuzzlePack,
        geometry: Optional[GridGeometry] = None,
        config: Optional[SelectionConfig] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.pack = pack
        self.geometry = geometry or GridGeometry.square(pack.spec.grid_size, 40.0)
        self.config = config or SelectionConfig()
        self.clock = clock

        self.puzzle_index = 0
        self.complete = False
        self.history: List[WordFound] = []

        self._started_at: Optional[float] = None
        self._stopped_ms: Optional[float] = None
        self.engine = self._engine_for(0)

    def _engine_for(self, index: int) -> SelectionEngine:
        result = self.pack.puzzle(index)
        return SelectionEngine(
            grid=result.letters,
            words=result.words,
            geometry=self.geometry,
            config=self.config,
            active=self._started_at is not None,
        )

    @property
    def puzzle(self) -> PuzzleResult:
        return self.pack.puzzle(self.puzzle_index)

    @property
    def started(self) -> bool:
        return self._started_at is not None

    def start(self) -> None:
        """Countdown finished: open the grid and start the clock."""
        if self._started_at is not None:
            return
        self._started_at = self.clock()
        self.engine.active = True
        _log(f"[pack] started '{self.pack.pack_seed}'")

    def elapsed_ms(self) -> float:
        if self._stopped_ms is not None:
            return self._stopped_ms
        if self._started_at is None:
            return 0.0
        return (self.clock() - self._started_at) * 1000.0

    def handle(self, event: PointerEvent) -> Optional[WordFound]:
        if self.complete:
            return None
        hit = self.engine.handle(event)
        if hit is None:
            return None

        self.history.append(hit)
        if hit.completes_puzzle:
            self._advance()
        return hit

    def _advance(self) -> None:
        if self.puzzle_index < self.pack.spec.pack_size - 1:
            # Build first: a failed generation leaves the session on the old puzzle
            engine = self._engine_for(self.puzzle_index + 1)
            self.puzzle_index += 1
            self.engine = engine
            _log(f"[pack] '{self.pack.pack_seed}': puzzle {self.puzzle_index + 1}/{self.pack.spec.pack_size}")
            return

        self._stopped_ms = self.elapsed_ms()
        self.complete = True
        self.engine.active = False
        _log(f"[pack] '{self.pack.pack_seed}' complete in {format_time(self._stopped_ms)}")
