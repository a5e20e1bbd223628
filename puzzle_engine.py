from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from seeded_random import create_seeded_random, rand_index

# 8 compass directions (row delta, col delta). The ORDER is part of the
# generated output: placement draws an index into this list.
DIRECTIONS: List[Tuple[int, int]] = [
    (0, 1),
    (0, -1),
    (1, 0),
    (-1, 0),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
]

DIR_NAMES = {
    (0, 1): "E",
    (0, -1): "W",
    (1, 0): "S",
    (-1, 0): "N",
    (1, 1): "SE",
    (1, -1): "SW",
    (-1, 1): "NE",
    (-1, -1): "NW",
}

LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

GRID_SIZE = 10
WORDS_PER_PUZZLE = 10
PACK_SIZE = 5
PACKS_PER_DAY = 50

MAX_ATTEMPTS = 40
MAX_PLACEMENT_TRIES = 600
FILLER_CHAR = "X"

Grid = List[List[str]]
Cell = Tuple[int, int]


# -----------------------------------------------------------------------------
# Simple logger hook
# -----------------------------------------------------------------------------
# app.py can call set_logger(my_ui_logger). If you do nothing, we print().
_LOGGER = None  # type: Optional[Callable[[str], None]]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    """Log to UI if available; otherwise print. Keep messages simple."""
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------
class PuzzleGenerationFailed(RuntimeError):
    """The attempt budget ran out and generate_grid returned the sentinel grid."""

    def __init__(self, seed: str, words: Sequence[str], size: int):
        self.seed = seed
        self.words = list(words)
        self.size = size
        super().__init__(
            f"could not place {len(self.words)} word(s) in a {size}x{size} grid "
            f"for seed '{seed}' (longest: {max((len(w) for w in self.words), default=0)})"
        )


# -----------------------------------------------------------------------------
# Data shapes used across the app
# -----------------------------------------------------------------------------
@dataclass
class PlacedWord:
    """One word located in the grid with its path."""
    text: str
    start: Cell  # (row, col) of the first cell read
    direction: str
    cells: List[Cell]  # all grid coordinates used, in reading order
    reversed: bool = False  # True when the letters along 'cells' spell the word backwards


@dataclass
class PuzzleSpec:
    """
    Sizes and budgets for one puzzle (and for packs of puzzles).
    The defaults are the values the daily packs are built with.
    """
    grid_size: int = GRID_SIZE
    words_per_puzzle: int = WORDS_PER_PUZZLE
    pack_size: int = PACK_SIZE
    packs_per_day: int = PACKS_PER_DAY
    max_attempts: int = MAX_ATTEMPTS
    max_placement_tries: int = MAX_PLACEMENT_TRIES
    filler: str = FILLER_CHAR


@dataclass
class PuzzleResult:
    """
    The outcome of the generator. This is what the renderer and the
    selection engine need.
    """
    seed: str                                # seed base the puzzle was derived from
    words: List[str]                         # puzzle words, in legend / matching order
    letters: Grid                            # final grid of letters
    placed_words: List[PlacedWord] = field(default_factory=list)  # for solution highlighting

    @property
    def size(self) -> int:
        return len(self.letters)


# -----------------------------------------------------------------------------
# Word bank loading (UI calls these)
# -----------------------------------------------------------------------------
def _read_rows(path: str) -> List[List[str]]:
    """Read CSV rows as lists of strings. Strip whitespace in each cell."""
    rows: List[List[str]] = []
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.reader(f)
            for r in reader:
                rows.append([c.strip() for c in r])
        _log(f"csv: loaded {len(rows)} rows from {path}")
    except Exception as e:
        _log(f"csv error: cannot read {path}: {e}")
        raise
    return rows


def load_wordlists_csv(path: str, first_row_header: bool = True) -> Dict[str, List[str]]:
    """
    Load a multi-column wordlist CSV.
    Each column becomes a named list: {header: [words...]}.
    Blank cells are ignored.
    """
    rows = _read_rows(path)
    if not rows:
        return {}
    headers: List[str]
    data_rows: List[List[str]]
    if first_row_header:
        headers = rows[0]
        data_rows = rows[1:]
    else:
        # Create generic headers Col1, Col2, ...
        max_cols = max(len(r) for r in rows)
        headers = [f"Col{i+1}" for i in range(max_cols)]
        data_rows = rows

    cols: Dict[str, List[str]] = {h: [] for h in headers}
    for r in data_rows:
        for i, h in enumerate(headers):
            if i < len(r):
                val = r[i].strip()
                if val:
                    cols[h].append(val)
    _log(f"wordlists: {len(cols)} columns")
    return cols


def parse_word_lines(lines: Sequence[str]) -> List[str]:
    """One word per line; blank lines and '#' comments are skipped."""
    out: List[str] = []
    for line in lines:
        word = line.strip()
        if not word or word.startswith("#"):
            continue
        out.append(word)
    return out


def load_word_bank(path: str, first_row_header: bool = False) -> List[str]:
    """
    Load a word bank in source order.
    - .csv: every non-empty cell, column by column
    - anything else: plain text, one word per line
    """
    p = Path(path)
    if p.suffix.lower() == ".csv":
        cols = load_wordlists_csv(str(p), first_row_header=first_row_header)
        bank = [w for words in cols.values() for w in words]
    else:
        with open(p, "r", encoding="utf-8-sig") as f:
            bank = parse_word_lines(f.readlines())
    _log(f"bank: {len(bank)} words from {p.name}")
    return bank


# -----------------------------------------------------------------------------
# Word picking
# -----------------------------------------------------------------------------
def pick_words(bank: Sequence[str], count: int, grid_size: int, seed: str) -> List[str]:
    """
    Deterministic sample of 'count' words that fit a grid_size grid.

    Keeps bank order for the length filter, shuffles with the seeded stream
    (Fisher-Yates, from the end), takes the first 'count', uppercases them.
    A short bank gives a short list; the caller decides what that means.
    """
    if grid_size <= 0:
        raise ValueError(f"grid_size must be positive, got {grid_size}")
    rand = create_seeded_random(seed)

    shuffled = [w for w in bank if len(w) <= grid_size]
    for i in range(len(shuffled) - 1, 0, -1):
        j = rand_index(rand, i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    picked = [w.upper() for w in shuffled[: max(0, count)]]
    if len(picked) < count:
        _log(f"[pick] only {len(picked)} of {count} words fit {grid_size}x{grid_size} (seed '{seed}')")
    return picked


# -----------------------------------------------------------------------------
# Grid building
# -----------------------------------------------------------------------------
def _empty_grid(size: int) -> Grid:
    return [["" for _ in range(size)] for _ in range(size)]


def _can_place_word(grid: Grid, r: int, c: int, dr: int, dc: int, word: str) -> bool:
    """Check bounds and compatibility (allow crossing on identical letters)."""
    n = len(grid)
    for i, ch in enumerate(word):
        rr = r + dr * i
        cc = c + dc * i
        if rr < 0 or rr >= n or cc < 0 or cc >= n:
            return False
        cell = grid[rr][cc]
        if cell and cell != ch:
            return False
    return True


def _place_one_word(grid: Grid, r: int, c: int, dr: int, dc: int, word: str) -> None:
    for i, ch in enumerate(word):
        grid[r + dr * i][c + dc * i] = ch


def _build_attempt(
    words: Sequence[str],
    rand: Callable[[], float],
    size: int,
    max_tries: int,
) -> Optional[Grid]:
    """
    One generation attempt on its own fresh grid.
    Returns the filled grid, or None if some word found no slot.
    """
    grid = _empty_grid(size)

    for word in words:
        placed = False
        for _ in range(max_tries):
            dr, dc = DIRECTIONS[rand_index(rand, len(DIRECTIONS))]
            r = rand_index(rand, size)
            c = rand_index(rand, size)
            if not _can_place_word(grid, r, c, dr, dc, word):
                continue
            _place_one_word(grid, r, c, dr, dc, word)
            placed = True
            break

        if not placed:
            _log(f"[grid] could not place '{word}' in {size}x{size} after {max_tries} tries")
            return None

    # Fill the rest row-major, consuming the same stream
    for r in range(size):
        for c in range(size):
            if not grid[r][c]:
                grid[r][c] = LETTERS[rand_index(rand, len(LETTERS))]
    return grid


def sentinel_grid(size: int = GRID_SIZE, filler: str = FILLER_CHAR) -> Grid:
    return [[filler for _ in range(size)] for _ in range(size)]


def is_sentinel_grid(grid: Grid, filler: str = FILLER_CHAR) -> bool:
    """True for the failure marker grid (every cell is the filler)."""
    return bool(grid) and all(ch == filler for row in grid for ch in row)


def generate_grid(
    words: Sequence[str],
    seed: str,
    size: int = GRID_SIZE,
    *,
    rng: Optional[Callable[[], float]] = None,
    max_attempts: int = MAX_ATTEMPTS,
    max_tries: int = MAX_PLACEMENT_TRIES,
    filler: str = FILLER_CHAR,
) -> Grid:
    """
    Place 'words' into a size x size grid, fill the gaps, verify.

    IMPORTANT:
    - One stream for the whole call. Failed attempts keep consuming it;
      do NOT reseed per attempt, every derived grid depends on that.
    - If rng is given we use it as-is (seed is then only used for logging).

    Returns the sentinel grid (all 'filler') when every attempt fails.
    """
    if size <= 0:
        raise ValueError(f"grid size must be positive, got {size}")
    rand = rng if rng is not None else create_seeded_random(seed)

    for attempt in range(max_attempts):
        grid = _build_attempt(words, rand, size, max_tries)
        if grid is None:
            continue

        missing = [w for w in words if not grid_contains_word(grid, w)]
        if missing:
            _log(f"[grid] attempt {attempt + 1}: verification failed for {missing}")
            continue

        if attempt:
            _log(f"[grid] seed '{seed}': placed {len(words)} words on attempt {attempt + 1}")
        return grid

    _log(f"[grid] seed '{seed}': gave up after {max_attempts} attempts; returning sentinel grid")
    return sentinel_grid(size, filler)


# -----------------------------------------------------------------------------
# Verification search
# -----------------------------------------------------------------------------
def locate_word(grid: Grid, word: str) -> Optional[PlacedWord]:
    """
    Exhaustive search: every start cell x every direction, forward or reversed.
    Returns the first hit in row-major start order, then direction order.
    """
    n = len(grid)
    rev = word[::-1]
    for r in range(n):
        for c in range(n):
            for dr, dc in DIRECTIONS:
                ok_f = True
                ok_r = True
                cells: List[Cell] = []
                for i in range(len(word)):
                    rr = r + dr * i
                    cc = c + dc * i
                    if rr < 0 or rr >= n or cc < 0 or cc >= n:
                        ok_f = False
                        ok_r = False
                        break
                    if grid[rr][cc] != word[i]:
                        ok_f = False
                    if grid[rr][cc] != rev[i]:
                        ok_r = False
                    if not (ok_f or ok_r):
                        break
                    cells.append((rr, cc))

                if ok_f or ok_r:
                    return PlacedWord(
                        text=word,
                        start=(r, c),
                        direction=DIR_NAMES[(dr, dc)],
                        cells=cells,
                        reversed=not ok_f,
                    )
    return None


def grid_contains_word(grid: Grid, word: str) -> bool:
    return locate_word(grid, word) is not None


def render_preview_ascii(grid: Grid) -> str:
    """
    Simple ASCII for quick debugging.
    """
    lines = []
    for row in grid:
        lines.append(" ".join(ch if ch else "." for ch in row))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# High-level API
# ---------------------------------------------------------------------------
def grid_seed(seed_base: str) -> str:
    return f"{seed_base}-grid"


def generate_one_puzzle(
    bank: Sequence[str],
    seed_base: str,
    spec: Optional[PuzzleSpec] = None,
) -> PuzzleResult:
    """
    Orchestrator:
      - pick words with seed_base
      - build the grid with its own stream, seeded from '<seed_base>-grid'
      - locate every word again for solution drawing
    Raises PuzzleGenerationFailed when the sentinel grid comes back.
    """
    spec = spec or PuzzleSpec()

    words = pick_words(bank, spec.words_per_puzzle, spec.grid_size, seed_base)
    if len(words) < spec.words_per_puzzle:
        _log(
            f"[pick] WARNING: bank has {len(words)} usable words, "
            f"puzzle '{seed_base}' asked for {spec.words_per_puzzle}"
        )

    letters = generate_grid(
        words,
        grid_seed(seed_base),
        spec.grid_size,
        max_attempts=spec.max_attempts,
        max_tries=spec.max_placement_tries,
        filler=spec.filler,
    )
    if is_sentinel_grid(letters, spec.filler):
        raise PuzzleGenerationFailed(seed_base, words, spec.grid_size)

    placed: List[PlacedWord] = []
    for w in words:
        pw = locate_word(letters, w)
        if pw is not None:
            placed.append(pw)

    return PuzzleResult(seed=seed_base, words=words, letters=letters, placed_words=placed)
