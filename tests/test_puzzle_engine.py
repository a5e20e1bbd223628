from pathlib import Path

import pytest

import puzzle_engine as eng
from puzzle_engine import (
    FILLER_CHAR,
    PuzzleGenerationFailed,
    PuzzleSpec,
    generate_grid,
    generate_one_puzzle,
    grid_contains_word,
    is_sentinel_grid,
    load_word_bank,
    locate_word,
    pick_words,
)
from seeded_random import create_seeded_random

BANK_PATH = Path(__file__).resolve().parent.parent / "data" / "word_bank.txt"

ANIMALS = ["cat", "dog", "emu", "fox", "gnu", "hen", "yak", "owl", "ape", "bee", "elk", "ram"]
SAFE_WORDS = ["CAT", "DOG", "EMU", "FOX", "GOAL", "PITCH", "KEEPER", "CORNER"]


@pytest.fixture(autouse=True)
def quiet_logs():
    messages = []
    eng.set_logger(messages.append)
    yield messages
    eng.set_logger(None)


# -----------------------------------------------------------------------------
# pick_words
# -----------------------------------------------------------------------------
def test_pick_words_is_deterministic():
    bank = load_word_bank(str(BANK_PATH))
    a = pick_words(bank, 10, 10, "daily-2026-10-18-pack-1-0")
    b = pick_words(bank, 10, 10, "daily-2026-10-18-pack-1-0")
    assert a == b
    assert len(a) == 10


def test_pick_words_filters_long_words_and_uppercases():
    bank = ["short", "tiny", "muchtoolongword", "fits", "ok"]
    picked = pick_words(bank, 10, 5, "seed")
    assert sorted(picked) == ["FITS", "OK", "SHORT", "TINY"]


def test_pick_words_short_bank_is_not_padded(quiet_logs):
    picked = pick_words(["one", "two", "three"], 10, 10, "seed")
    assert len(picked) == 3
    assert any("only 3 of 10" in m for m in quiet_logs)


def test_pick_words_zero_count():
    assert pick_words(ANIMALS, 0, 10, "seed") == []


def test_pick_words_full_count_is_a_permutation():
    picked = pick_words(ANIMALS, len(ANIMALS), 10, "perm")
    assert sorted(picked) == sorted(w.upper() for w in ANIMALS)


def test_pick_words_two_word_shuffle_uses_first_draw():
    seed = "two-words"
    first = create_seeded_random(seed)()
    expected = ["B", "A"] if int(first * 2) == 0 else ["A", "B"]
    assert pick_words(["a", "b"], 2, 10, seed) == expected


def test_pick_words_known_order():
    # Reference output of the browser build for the same bank and seed
    assert pick_words(ANIMALS, 12, 10, "daily-2026-10-18-pack-1-0") == [
        "YAK", "OWL", "EMU", "ELK", "APE", "DOG", "BEE", "HEN", "GNU", "CAT", "RAM", "FOX",
    ]
    assert pick_words(ANIMALS, 5, 10, "seed") == ["FOX", "DOG", "YAK", "GNU", "APE"]


def test_pick_words_known_daily_selection():
    bank = load_word_bank(str(BANK_PATH))
    assert pick_words(bank, 10, 10, "daily-2026-10-18-pack-1-0") == [
        "MIDFIELD", "COUNTER", "CURL", "SCISSOR", "OWNGOAL",
        "SWEEPER", "REFEREE", "LEAGUE", "ARC", "DRAW",
    ]


def test_pick_words_seed_changes_selection():
    assert pick_words(ANIMALS, 6, 10, "seed-1") != pick_words(ANIMALS, 6, 10, "seed-2")


def test_pick_words_rejects_bad_grid_size():
    with pytest.raises(ValueError):
        pick_words(ANIMALS, 3, 0, "seed")


# -----------------------------------------------------------------------------
# generate_grid
# -----------------------------------------------------------------------------
def test_generate_grid_is_deterministic():
    assert generate_grid(SAFE_WORDS, "grid-seed") == generate_grid(SAFE_WORDS, "grid-seed")


def test_generate_grid_known_layout():
    # Reference output of the browser build; pins direction order, draw order and fill
    grid = generate_grid(SAFE_WORDS, "daily-2026-10-18-pack-1-0-grid")
    assert ["".join(row) for row in grid] == [
        "CXEDPITCHK",
        "IIEBTPGODL",
        "UMWMUXEXQF",
        "GRQBUCATIJ",
        "WIQSTUACSO",
        "EREPEEKOUW",
        "UIOOFAZRMT",
        "LIJSOOSNTQ",
        "ESSLXKKEEY",
        "LLAOGGURWY",
    ]


def test_generate_grid_known_daily_puzzle():
    words = [
        "MIDFIELD", "COUNTER", "CURL", "SCISSOR", "OWNGOAL",
        "SWEEPER", "REFEREE", "LEAGUE", "ARC", "DRAW",
    ]
    grid = generate_grid(words, "daily-2026-10-18-pack-1-0-grid")
    assert ["".join(row) for row in grid] == [
        "TPIHCURLKE",
        "RDLEIFDIMU",
        "ERHHPUSFHG",
        "FARMWOYJSA",
        "EWAWCVNYWE",
        "ROSSICSCEL",
        "EPLCOUNTER",
        "ELXFFFOIPF",
        "BOWNGOALEW",
        "CRAMHZDFRH",
    ]


def test_generate_grid_places_every_word():
    for seed in ["a", "b", "daily-2026-10-18-pack-2-4-grid"]:
        grid = generate_grid(SAFE_WORDS, seed)
        assert not is_sentinel_grid(grid)
        for w in SAFE_WORDS:
            assert grid_contains_word(grid, w), (seed, w)


def test_generated_grid_is_fully_populated_with_capitals():
    grid = generate_grid(SAFE_WORDS, "fill")
    assert len(grid) == 10
    for row in grid:
        assert len(row) == 10
        for ch in row:
            assert len(ch) == 1 and "A" <= ch <= "Z"


def test_generate_grid_custom_size():
    grid = generate_grid(["CAT", "DOG"], "small", size=5)
    assert len(grid) == 5 and all(len(r) == 5 for r in grid)
    assert grid_contains_word(grid, "CAT")
    assert grid_contains_word(grid, "DOG")


def test_findability_holds_for_daily_words():
    bank = load_word_bank(str(BANK_PATH))
    for i in range(3):
        seed = f"daily-2026-10-18-pack-1-{i}"
        words = pick_words(bank, 10, 10, seed)
        grid = generate_grid(words, f"{seed}-grid")
        if is_sentinel_grid(grid):
            continue
        for w in words:
            assert grid_contains_word(grid, w)


def test_word_longer_than_grid_returns_sentinel():
    grid = generate_grid(["CAT", "ABCDEFGHIJK"], "too-long")
    assert grid == [[FILLER_CHAR] * 10 for _ in range(10)]
    assert is_sentinel_grid(grid)


def test_exhaustion_consumes_one_stream_across_attempts():
    calls = []
    rand = create_seeded_random("counting")

    def counting():
        calls.append(1)
        return rand()

    grid = generate_grid(["ABCDEFGHIJK"], "ignored", rng=counting)
    assert is_sentinel_grid(grid)
    # 40 attempts x 600 tries x (direction, row, col)
    assert len(calls) == 40 * 600 * 3


def test_passed_rng_is_used_instead_of_seed():
    ours = generate_grid(SAFE_WORDS, "other", rng=create_seeded_random("grid-seed"))
    assert ours == generate_grid(SAFE_WORDS, "grid-seed")


def test_generate_grid_rejects_bad_size():
    with pytest.raises(ValueError):
        generate_grid(["CAT"], "s", size=0)


def test_sentinel_uses_custom_filler():
    grid = generate_grid(["TOOLONG"], "s", size=3, max_attempts=2, max_tries=5, filler="#")
    assert is_sentinel_grid(grid, "#")
    assert not is_sentinel_grid(grid)


# -----------------------------------------------------------------------------
# locate_word
# -----------------------------------------------------------------------------
def _grid(rows):
    return [list(r) for r in rows]


def test_locate_word_forward_and_reversed():
    grid = _grid([
        "CATZ",
        "ZZZZ",
        "ZGOD",
        "ZZZZ",
    ])
    cat = locate_word(grid, "CAT")
    assert cat.start == (0, 0)
    assert cat.direction == "E"
    assert cat.cells == [(0, 0), (0, 1), (0, 2)]
    assert not cat.reversed

    dog = locate_word(grid, "DOG")
    assert dog.reversed
    assert [grid[r][c] for r, c in dog.cells] == list("GOD")


def test_locate_word_diagonal_and_missing():
    grid = _grid([
        "SZZZ",
        "ZUZZ",
        "ZZNZ",
        "ZZZZ",
    ])
    sun = locate_word(grid, "SUN")
    assert sun.cells == [(0, 0), (1, 1), (2, 2)]
    assert locate_word(grid, "MOON") is None
    assert not grid_contains_word(grid, "SUNNY")


def test_render_preview_ascii():
    assert eng.render_preview_ascii([["A", ""], ["B", "C"]]) == "A .\nB C"


# -----------------------------------------------------------------------------
# generate_one_puzzle / word bank
# -----------------------------------------------------------------------------
def test_generate_one_puzzle_uses_word_and_grid_seeds():
    spec = PuzzleSpec(grid_size=8, words_per_puzzle=5)
    res = generate_one_puzzle(ANIMALS, "pack-x-0", spec)
    assert res.words == pick_words(ANIMALS, 5, 8, "pack-x-0")
    assert res.letters == generate_grid(res.words, "pack-x-0-grid", 8)
    assert res.size == 8
    assert [pw.text for pw in res.placed_words] == res.words


def test_generate_one_puzzle_raises_on_exhaustion():
    # 8 straight lines in a 3x3 grid cannot hold 10 distinct 3-letter words
    spec = PuzzleSpec(grid_size=3, words_per_puzzle=10, max_attempts=3, max_placement_tries=50)
    with pytest.raises(PuzzleGenerationFailed) as info:
        generate_one_puzzle(ANIMALS, "dense", spec)
    assert info.value.seed == "dense"
    assert len(info.value.words) == 10


def test_load_word_bank_text_skips_comments():
    bank = load_word_bank(str(BANK_PATH))
    assert bank[0] == "GOAL"
    assert all(not w.startswith("#") and w for w in bank)


def test_load_word_bank_csv(tmp_path):
    p = tmp_path / "bank.csv"
    p.write_text("Animals,Colors\ncat,red\ndog,\n,blue\n", encoding="utf-8")
    assert load_word_bank(str(p), first_row_header=True) == ["cat", "dog", "red", "blue"]
    assert eng.load_wordlists_csv(str(p)) == {"Animals": ["cat", "dog"], "Colors": ["red", "blue"]}
