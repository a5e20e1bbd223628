from datetime import date

import pytest

import pack_session as ps
import puzzle_engine as eng
from pack_session import (
    PackSession,
    PuzzlePack,
    daily_pack_seeds,
    format_time,
    puzzle_seed,
    today_key,
)
from puzzle_engine import PuzzleGenerationFailed, PuzzleSpec, generate_one_puzzle
from selection_engine import drag_events

BANK = ["cat", "dog", "emu", "fox", "gnu", "hen", "yak", "owl", "ape", "bee", "elk", "ram", "goat", "mole"]
SPEC = PuzzleSpec(grid_size=8, words_per_puzzle=4, pack_size=2)


class SecondPuzzleFails(PuzzlePack):
    def puzzle(self, index):
        if index == 1:
            raise PuzzleGenerationFailed(puzzle_seed(self.pack_seed, 1), ["TOOLONGWORD"], self.spec.grid_size)
        return super().puzzle(index)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture(autouse=True)
def quiet_logs():
    messages = []
    for mod in (eng, ps):
        mod.set_logger(messages.append)
    yield messages
    for mod in (eng, ps):
        mod.set_logger(None)


def solve_current(session):
    """Drag every unfound word of the current puzzle until it is done."""
    index = session.puzzle_index
    puzzle = session.puzzle
    for _ in range(len(puzzle.words)):
        for pw in puzzle.placed_words:
            if session.complete or session.puzzle_index != index:
                return
            if session.engine.is_found(pw.text):
                continue
            for ev in drag_events(session.geometry, pw.cells[0], pw.cells[-1]):
                session.handle(ev)


def test_seed_helpers():
    assert today_key(date(2026, 1, 5)) == "2026-01-05"
    assert daily_pack_seeds(2, "2026-10-18") == [
        "daily-2026-10-18-pack-1",
        "daily-2026-10-18-pack-2",
    ]
    assert puzzle_seed("daily-2026-10-18-pack-1", 3) == "daily-2026-10-18-pack-1-3"


def test_format_time():
    assert format_time(0) == "00:00.00"
    assert format_time(83456) == "01:23.45"
    assert format_time(-5) == "00:00.00"
    assert format_time(61 * 60000 + 999) == "61:00.99"


def test_pack_memoizes_puzzles():
    pack = PuzzlePack("pack-a", BANK, SPEC)
    first = pack.puzzle(0)
    assert pack.puzzle(0) is first
    expected = generate_one_puzzle(BANK, "pack-a-0", SPEC)
    assert first.letters == expected.letters
    assert first.words == expected.words
    assert len(pack) == 2
    assert len(pack.puzzles()) == 2


def test_pack_index_out_of_range():
    pack = PuzzlePack("pack-a", BANK, SPEC)
    with pytest.raises(IndexError):
        pack.puzzle(2)


def test_session_ignores_input_until_started():
    session = PackSession(PuzzlePack("pack-b", BANK, SPEC), clock=FakeClock())
    pw = session.puzzle.placed_words[0]
    for ev in drag_events(session.geometry, pw.cells[0], pw.cells[-1]):
        assert session.handle(ev) is None
    assert session.engine.found == []
    assert session.elapsed_ms() == 0.0


def test_session_advances_and_completes_pack():
    clock = FakeClock()
    session = PackSession(PuzzlePack("pack-c", BANK, SPEC), clock=clock)
    session.start()

    solve_current(session)
    assert session.puzzle_index == 1
    assert not session.complete
    assert session.engine.active
    assert session.engine.found == []

    clock.now += 83.456
    solve_current(session)
    assert session.complete
    assert len(session.history) == 2 * SPEC.words_per_puzzle
    assert format_time(session.elapsed_ms()) == "01:23.45"

    # clock keeps running, the pack time does not
    clock.now += 10
    assert format_time(session.elapsed_ms()) == "01:23.45"
    pw = session.puzzle.placed_words[0]
    for ev in drag_events(session.geometry, pw.cells[0], pw.cells[-1]):
        assert session.handle(ev) is None


def test_start_is_idempotent():
    clock = FakeClock()
    session = PackSession(PuzzlePack("pack-d", BANK, SPEC), clock=clock)
    session.start()
    clock.now += 2
    session.start()
    assert session.elapsed_ms() == pytest.approx(2000.0)


def test_start_and_completion_go_to_the_session_logger(quiet_logs):
    session = PackSession(PuzzlePack("pack-e", BANK, SPEC), clock=FakeClock())
    session.start()
    solve_current(session)
    solve_current(session)
    assert session.complete
    assert "[pack] started 'pack-e'" in quiet_logs
    assert any(m.startswith("[pack] 'pack-e' complete in") for m in quiet_logs)


def test_first_puzzle_failure_raises_from_constructor():
    spec = PuzzleSpec(grid_size=3, words_per_puzzle=10, max_attempts=2, max_placement_tries=20)
    with pytest.raises(PuzzleGenerationFailed):
        PackSession(PuzzlePack("pack-f", BANK, spec), clock=FakeClock())


def test_failed_advance_keeps_the_session_on_the_solved_puzzle():
    session = PackSession(SecondPuzzleFails("pack-g", BANK, SPEC), clock=FakeClock())
    session.start()
    first_words = list(session.puzzle.words)

    with pytest.raises(PuzzleGenerationFailed):
        solve_current(session)

    assert session.puzzle_index == 0
    assert session.engine.words == first_words
    assert session.engine.is_complete
    assert session.puzzle.words == first_words
    assert not session.complete
