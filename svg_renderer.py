from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

# Import shapes for type hints only
from puzzle_engine import PuzzleResult
from selection_engine import Segment


# -----------------------------------------------------------------------------
# Simple logger hook (optional; mirrors puzzle_engine)
# -----------------------------------------------------------------------------
_LOGGER = None  # type: Optional[callable]


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


@dataclass
class Appearance:
    """
    Visual settings used by the SVG renderer.
    Keep this in sync with your UI fields.
    """
    # Grid
    cell_bg_color: str = "#FFFFFF"
    cell_line_color: str = "#0a1f44"
    cell_line_thickness: float = 1.0
    draw_cell_lines: bool = False

    # Letters
    grid_font_family: str = "Arial"
    grid_font_size: int = 24
    grid_font_bold: bool = True
    grid_font_color: str = "#0a1f44"

    # Word list under the grid
    list_font_family: str = "Arial"
    list_font_size: int = 14
    list_font_color: str = "#0a1f44"
    list_align: str = "Left"  # "Left", "Center", "Right"
    list_bold: bool = False
    found_opacity: float = 0.35  # found words are struck through and faded

    legend_columns: int = 2
    show_legend: bool = True
    solution_show_legend: bool = False

    # Selection lines (found words + the live drag)
    line_color: str = "#0a1f44"
    line_width: float = 1.5
    line_opacity: float = 0.35

    # --- Solution marking options ---
    solution_mark_style: str = "circle"     # "highlight" | "circle"
    solution_circle_width: float = 2.0
    solution_circle_band_frac: float = 0.55    # fraction of cell height
    solution_circle_pad_len: float = 2.0       # extra length at each end (px)
    solution_mark_color: str = "#D94242"

    # Border
    add_border: bool = False
    border_thickness: float = 2.0
    border_color: str = "#0a1f44"
    # Distance of border rectangle to the grid (px)
    border_distance: float = 2.0


# -----------------------------------------------------------------------------
# Tiny helper to build safe SVG text (no external lib, very basic)
# -----------------------------------------------------------------------------
def _esc(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _text_anchor(align: str) -> str:
    if align.lower().startswith("c"):
        return "middle"
    if align.lower().startswith("r"):
        return "end"
    return "start"


def cell_px(appearance: Appearance) -> int:
    """Cell edge in SVG pixels: font_size * 1.6."""
    return max(12, int(appearance.grid_font_size * 1.6))


# -----------------------------------------------------------------------------
# Shared pieces
# -----------------------------------------------------------------------------
def _layout(rows: int, cols: int, legend: Sequence[str], appearance: Appearance):
    cell = cell_px(appearance)
    pad = int(cell * 0.4)
    grid_w = cols * cell
    grid_h = rows * cell

    col_count = max(1, int(appearance.legend_columns))
    legend_line_h = max(12, int(appearance.list_font_size * 1.4))
    legend_rows = (len(legend) + col_count - 1) // col_count
    legend_h = legend_rows * legend_line_h + (pad if legend else 0)

    total_w = grid_w + pad * 2
    total_h = grid_h + legend_h + pad * 2
    return cell, pad, grid_w, grid_h, legend_line_h, total_w, total_h


def _grid_base(out: List[str], pad: int, cell: int, rows: int, cols: int, appearance: Appearance) -> None:
    grid_w = cols * cell
    grid_h = rows * cell

    # Optional border (around GRID, offset by border_distance)
    if appearance.add_border:
        d = float(appearance.border_distance or 0.0)
        out.append(
            f'<rect x="{pad - d}" y="{pad - d}" width="{grid_w + 2 * d}" height="{grid_h + 2 * d}" '
            f'stroke="{appearance.border_color}" stroke-width="{appearance.border_thickness}" fill="none" />'
        )

    out.append(
        f'<rect x="{pad}" y="{pad}" width="{grid_w}" height="{grid_h}" '
        f'fill="{appearance.cell_bg_color}" stroke="none" />'
    )

    if appearance.draw_cell_lines:
        stroke = appearance.cell_line_color
        sw = appearance.cell_line_thickness
        for c in range(cols + 1):
            x = pad + c * cell
            out.append(f'<line x1="{x}" y1="{pad}" x2="{x}" y2="{pad + grid_h}" stroke="{stroke}" stroke-width="{sw}" />')
        for r in range(rows + 1):
            y = pad + r * cell
            out.append(f'<line x1="{pad}" y1="{y}" x2="{pad + grid_w}" y2="{y}" stroke="{stroke}" stroke-width="{sw}" />')


def _letters(out: List[str], letters: Sequence[Sequence[str]], pad: int, cell: int, appearance: Appearance) -> None:
    font_weight = "bold" if appearance.grid_font_bold else "normal"
    out.append(
        f'<g font-family="{_esc(appearance.grid_font_family)}" font-size="{appearance.grid_font_size}" '
        f'font-weight="{font_weight}" fill="{appearance.grid_font_color}">'
    )
    # Center letters in cells
    txt_dy = int(appearance.grid_font_size * 0.35)
    for r, row in enumerate(letters):
        for c, ch in enumerate(row):
            x = pad + c * cell + cell // 2
            y = pad + r * cell + cell // 2 + txt_dy
            out.append(f'<text x="{x}" y="{y}" text-anchor="middle">{_esc(ch)}</text>')
    out.append('</g>')


def _legend(
    out: List[str],
    legend: Sequence[str],
    found: Iterable[str],
    pad: int,
    grid_w: int,
    grid_h: int,
    line_h: int,
    appearance: Appearance,
) -> None:
    if not legend:
        return
    found_set = set(found)
    col_count = max(1, int(appearance.legend_columns))
    lx = pad
    ly = pad + grid_h + pad
    col_w = grid_w // col_count
    anchor = _text_anchor(appearance.list_align)
    font_weight = "bold" if appearance.list_bold else "normal"

    out.append(
        f'<g font-family="{_esc(appearance.list_font_family)}" font-size="{appearance.list_font_size}" '
        f'font-weight="{font_weight}" fill="{appearance.list_font_color}">'
    )
    # Column-major layout
    per_col = (len(legend) + col_count - 1) // col_count
    for i, word in enumerate(legend):
        col_idx = i // per_col
        row_idx = i % per_col
        tx = lx + col_idx * col_w
        if anchor == "middle":
            tx += col_w // 2
        elif anchor == "end":
            tx += col_w - 4
        else:
            tx += 4
        ty = ly + (row_idx + 1) * line_h
        if word in found_set:
            out.append(
                f'<text x="{tx}" y="{ty}" text-anchor="{anchor}" text-decoration="line-through" '
                f'fill-opacity="{appearance.found_opacity}">{_esc(word)}</text>'
            )
        else:
            out.append(f'<text x="{tx}" y="{ty}" text-anchor="{anchor}">{_esc(word)}</text>')
    out.append('</g>')


def _segment_line(seg: Segment, pad: int, scale: float, appearance: Appearance) -> str:
    x1 = pad + seg.start.x * scale
    y1 = pad + seg.start.y * scale
    x2 = pad + seg.end.x * scale
    y2 = pad + seg.end.y * scale
    return (
        f'<line x1="{x1:.2f}" y1="{y1:.2f}" x2="{x2:.2f}" y2="{y2:.2f}" '
        f'stroke="{appearance.line_color}" stroke-width="{appearance.line_width}" '
        f'stroke-opacity="{appearance.line_opacity}" stroke-linecap="round" />'
    )


# -----------------------------------------------------------------------------
# Core renderers
# -----------------------------------------------------------------------------
def render_puzzle_svg(
    letters: Sequence[Sequence[str]],
    words: Sequence[str],
    appearance: Appearance,
    found: Iterable[str] = (),
    segments: Iterable[Segment] = (),
    live: Optional[Segment] = None,
    source_cell: Optional[float] = None,
) -> str:
    """
    Play view: grid, letters, word list, and the selection lines.

    'segments' and 'live' come from the SelectionEngine, in its grid-local
    pixels; source_cell is that geometry's cell size so they can be scaled
    onto this drawing (None = same size as ours).
    """
    rows = len(letters)
    cols = len(letters[0]) if rows else 0
    legend = list(words) if appearance.show_legend else []

    cell, pad, grid_w, grid_h, legend_line_h, total_w, total_h = _layout(rows, cols, legend, appearance)
    scale = cell / float(source_cell) if source_cell else 1.0

    out: List[str] = []
    out.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{total_w}" height="{total_h}" '
        f'viewBox="0 0 {total_w} {total_h}">'
    )
    _grid_base(out, pad, cell, rows, cols, appearance)

    # Lines go under the letters
    for seg in segments:
        out.append(_segment_line(seg, pad, scale, appearance))
    if live is not None:
        out.append(_segment_line(live, pad, scale, appearance))

    _letters(out, letters, pad, cell, appearance)
    _legend(out, legend, found, pad, grid_w, grid_h, legend_line_h, appearance)

    out.append('</svg>')
    return "\n".join(out)


def render_solution_svg(result: PuzzleResult, appearance: Appearance) -> str:
    """
    Solution SVG:
      - Draw grid + letters like the puzzle.
      - Mark answers with either:
          * "highlight": per-cell soft rects behind letters
          * "circle": rotated pill per word with semicircular endcaps,
            extended to fully include the first & last letters (including diagonals).
    """
    letters = result.letters
    rows = len(letters)
    cols = len(letters[0]) if rows else 0
    legend = list(result.words) if appearance.solution_show_legend else []

    cell, pad, grid_w, grid_h, legend_line_h, total_w, total_h = _layout(rows, cols, legend, appearance)

    out: List[str] = []
    out.append(f'<svg xmlns="http://www.w3.org/2000/svg" width="{total_w}" height="{total_h}" viewBox="0 0 {total_w} {total_h}">')
    _grid_base(out, pad, cell, rows, cols, appearance)

    mark_style = (appearance.solution_mark_style or "circle").lower()
    color = appearance.solution_mark_color or "#D94242"

    if mark_style == "highlight":
        used = set()
        for pw in result.placed_words:
            used.update(pw.cells)
        for (r, c) in sorted(used):
            x = pad + c * cell + 1
            y = pad + r * cell + 1
            out.append(
                f'<rect x="{x}" y="{y}" width="{cell-2}" height="{cell-2}" '
                f'fill="{color}" fill-opacity="0.35" stroke="none" />'
            )
    else:
        sw = float(appearance.solution_circle_width or 2.0)
        rect_h = max(1.0, float(appearance.solution_circle_band_frac or 0.55) * cell)
        pad_len = float(appearance.solution_circle_pad_len or 0.0)
        rx = ry = rect_h * 0.5  # true half-circle endcaps

        for pw in result.placed_words:
            if not pw.cells:
                continue
            (r0, c0) = pw.cells[0]
            (r1, c1) = pw.cells[-1]
            x0 = pad + c0 * cell + 0.5 * cell
            y0 = pad + r0 * cell + 0.5 * cell
            x1 = pad + c1 * cell + 0.5 * cell
            y1 = pad + r1 * cell + 0.5 * cell

            dx = x1 - x0
            dy = y1 - y0
            D = math.hypot(dx, dy)
            if D > 1e-6:
                ux, uy = dx / D, dy / D
            else:
                ux, uy = 1.0, 0.0

            # 0.5*cell for axis-aligned; ~0.707*cell for 45°
            ext_each = 0.5 * cell * (abs(ux) + abs(uy)) + pad_len

            rect_w = D + 2.0 * ext_each
            cx = (x0 + x1) * 0.5
            cy = (y0 + y1) * 0.5
            ang = math.degrees(math.atan2(dy, dx)) if D > 1e-6 else 0.0
            out.append(
                f'<rect x="{cx - rect_w * 0.5:.2f}" y="{cy - rect_h * 0.5:.2f}" '
                f'width="{rect_w:.2f}" height="{rect_h:.2f}" '
                f'fill="none" stroke="{color}" stroke-width="{sw:.2f}" '
                f'rx="{rx:.2f}" ry="{ry:.2f}" transform="rotate({ang:.2f} {cx:.2f} {cy:.2f})" />'
            )

    _letters(out, letters, pad, cell, appearance)
    _legend(out, legend, (), pad, grid_w, grid_h, legend_line_h, appearance)

    if len(result.placed_words) < len(result.words):
        _log(f"svg: solution for '{result.seed}' marks {len(result.placed_words)} of {len(result.words)} words")

    out.append('</svg>')
    return "\n".join(out)


def save_svg(svg_text: str, path: str) -> None:
    """Write an SVG string to disk."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(svg_text)
