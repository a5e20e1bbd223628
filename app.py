import io, zipfile, csv
import streamlit as st
import re
from datetime import date
from pathlib import Path

import puzzle_engine as eng
import selection_engine as sel
import pack_session as ps
import svg_renderer as svg


DEFAULT_BANK = Path(__file__).with_name("data") / "word_bank.txt"
PLAY_CELL_PX = 40.0


def load_css(path: str | Path) -> None:
    css_path = Path(path)
    css = css_path.read_text(encoding="utf-8")
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)


def _ui_log(msg: str) -> None:
    st.session_state.setdefault("log", []).append(msg)


for _mod in (eng, sel, ps, svg):
    _mod.set_logger(_ui_log)


# ---- preview helper: scale an SVG to a target pixel width (keeps aspect) ----

def _scale_svg_for_preview(svg_text: str, target_width_px: int) -> tuple[str, int]:
    """
    Returns (scaled_svg_text, new_height_px).
    Only used for UI preview; original SVGs stay full size for ZIP/PNG/PDF.
    """
    s = svg_text
    m = re.search(r'viewBox="0\s+0\s+([\d.]+)\s+([\d.]+)"', s)
    if not m:
        return s, 600  # fallback
    vw, vh = float(m.group(1)), float(m.group(2))

    scale = max(0.05, float(target_width_px) / max(1.0, vw))
    new_h = max(50, int(round(vh * scale)))

    # rewrite width/height only on the <svg ...> tag
    s = re.sub(r'(<svg\b[^>]*\bwidth=")[^"]+(")',  rf'\g<1>{int(target_width_px)}\g<2>', s, count=1)
    s = re.sub(r'(<svg\b[^>]*\bheight=")[^"]+(")', rf'\g<1>{new_h}\g<2>',            s, count=1)
    if 'preserveAspectRatio' not in s[:400]:
        s = re.sub(r'<svg\b', '<svg preserveAspectRatio="xMidYMid meet"', s, count=1)
    return s, new_h


def _bank_from_upload(upload) -> list[str]:
    """Uploaded bank: .csv (every non-empty cell) or text (one word per line)."""
    text = io.TextIOWrapper(upload, encoding="utf-8-sig")
    if upload.name.lower().endswith(".csv"):
        return [c.strip() for r in csv.reader(text) for c in r if c.strip()]
    return eng.parse_word_lines(text.readlines())


st.set_page_config(page_title="Word Search League", layout="wide")
# If styles.css is next to app.py:
load_css(Path(__file__).with_name("styles.css"))
st.title("Word Search League")


# --- Controls in the sidebar (clean + compact) ---
with st.sidebar:
    tab_pack, tab_settings = st.tabs(["Pack", "Settings"])

    # ---------------------------
    # TAB 1: Pack
    # ---------------------------
    with tab_pack:
        day = st.date_input("Day", value=date.today())
        r1c1, r1c2 = st.columns(2)
        with r1c1:
            grid_size = st.number_input("Grid size", 5, 20, eng.GRID_SIZE, format="%d")
        with r1c2:
            words_per_puzzle = st.number_input("Words per puzzle", 1, 25, eng.WORDS_PER_PUZZLE, format="%d")

        bank_file = st.file_uploader("Word bank (optional): .txt or .csv", type=["txt", "csv"])

        spec = eng.PuzzleSpec(grid_size=int(grid_size), words_per_puzzle=int(words_per_puzzle))
        day_key = ps.today_key(day)
        seeds = ps.daily_pack_seeds(spec.packs_per_day, day_key)
        pack_no = st.selectbox("Pack", list(range(1, len(seeds) + 1)), format_func=lambda i: f"Pack {i}")
        pack_seed = seeds[pack_no - 1]

    # ---------------------------
    # TAB 2: Settings
    # ---------------------------
    with tab_settings:
        st.caption("Touch tuning")
        end_tol = st.number_input("End tolerance (cells)", 0, 3, 1, format="%d")
        st.caption("Output formats")
        make_png  = st.checkbox("Also make PNG", value=True)
        make_pdf  = st.checkbox("Also make PDF", value=False)
        make_pptx = st.checkbox("Also make PPTX (simple insert)", value=False)
        st.caption("Preview")
        size_label = st.select_slider("Preview size", options=["Small","Medium","Large"], value="Medium")
        PREVIEW_W = {"Small": 420, "Medium": 560, "Large": 720}[size_label]


# --- Word bank ---
try:
    bank = _bank_from_upload(bank_file) if bank_file is not None else eng.load_word_bank(str(DEFAULT_BANK))
except Exception as e:
    st.error("Could not read the word bank")
    st.exception(e)
    st.stop()

usable = [w for w in bank if len(w) <= spec.grid_size]
if len(usable) < spec.words_per_puzzle:
    st.error(f"Word bank has {len(usable)} words that fit a {spec.grid_size}x{spec.grid_size} grid; "
             f"{spec.words_per_puzzle} are needed per puzzle.")
    st.stop()


# --- Session (one per pack + settings) ---
session_key = (pack_seed, spec.grid_size, spec.words_per_puzzle, int(end_tol), len(bank), hash(tuple(bank)))
if st.session_state.get("session_key") != session_key:
    pack = ps.PuzzlePack(pack_seed, bank, spec)
    try:
        st.session_state["session"] = ps.PackSession(
            pack,
            geometry=sel.GridGeometry.square(spec.grid_size, PLAY_CELL_PX),
            config=sel.SelectionConfig(end_tolerance=int(end_tol)),
        )
    except eng.PuzzleGenerationFailed as e:
        st.session_state.pop("session_key", None)
        st.error("Puzzle generation failed (word set too long/dense for this grid size)")
        st.exception(e)
        st.stop()
    st.session_state["session_key"] = session_key
    st.session_state["last_hit"] = None

session: ps.PackSession = st.session_state["session"]
look = svg.Appearance()

try:
    puzzle = session.puzzle
except eng.PuzzleGenerationFailed as e:
    st.error("Puzzle generation failed (word set too long/dense for this grid size)")
    st.exception(e)
    st.stop()


tab_play, tab_sol, tab_export = st.tabs(["Play", "Solution", "Export"])

# ---------------------------
# Play
# ---------------------------
with tab_play:
    n = spec.grid_size
    head1, head2 = st.columns([3, 1])
    with head1:
        st.subheader(f"{pack_seed} · Puzzle {session.puzzle_index + 1}/{spec.pack_size}")
    with head2:
        st.metric("Time", ps.format_time(session.elapsed_ms()))

    if not session.started:
        if st.button("Start", type="primary"):
            session.start()
            st.rerun()

    engine = session.engine
    board = svg.render_puzzle_svg(
        puzzle.letters,
        puzzle.words,
        look,
        found=engine.found,
        segments=engine.locked_segments,
        live=engine.live_segment,
        source_cell=PLAY_CELL_PX,
    )
    board_preview, bh = _scale_svg_for_preview(board, PREVIEW_W)
    st.components.v1.html(board_preview, height=bh + 6, scrolling=False)

    if session.started and not session.complete:
        with st.form("drag"):
            st.caption("Drag from one cell to another (rows and columns start at 1)")
            c1, c2, c3, c4 = st.columns(4)
            with c1:
                r0 = st.number_input("From row", 1, n, 1, format="%d")
            with c2:
                c0 = st.number_input("From col", 1, n, 1, format="%d")
            with c3:
                r1 = st.number_input("To row", 1, n, 1, format="%d")
            with c4:
                c1_ = st.number_input("To col", 1, n, 1, format="%d")
            if st.form_submit_button("Drag"):
                hit = None
                try:
                    for ev in sel.drag_events(session.geometry, (r0 - 1, c0 - 1), (r1 - 1, c1_ - 1)):
                        hit = session.handle(ev) or hit
                except eng.PuzzleGenerationFailed as e:
                    st.error("Next puzzle could not be generated (word set too long/dense for this grid size)")
                    st.exception(e)
                    st.stop()
                st.session_state["last_hit"] = hit.word if hit else ""
                st.rerun()

    last = st.session_state.get("last_hit")
    if last:
        st.success(f"Found {last}")
    elif last == "":
        st.info("No word there")

    if session.complete:
        st.balloons()
        st.success(f"Puzzle Pack Complete · {ps.format_time(session.elapsed_ms())}")


# ---------------------------
# Solution
# ---------------------------
with tab_sol:
    sol = svg.render_solution_svg(puzzle, look)
    sol_preview, hs = _scale_svg_for_preview(sol, PREVIEW_W)
    st.components.v1.html(sol_preview, height=hs + 6, scrolling=False)
    st.code(eng.render_preview_ascii(puzzle.letters), language=None)


# ---------------------------
# Export whole pack
# ---------------------------
with tab_export:
    go = st.button("Build pack ZIP", type="primary")

if go:
    with tab_export:
        try:
            from cairosvg import svg2png, svg2pdf
        except Exception as e:
            st.error("cairosvg not installed or failed to import")
            st.exception(e)
            st.stop()

        try:
            from pptx import Presentation
            from pptx.util import Inches
        except Exception as e:
            if make_pptx:
                st.error("python-pptx failed to import")
                st.exception(e)
                st.stop()
            else:
                Presentation = None  # not used

        svgs = []
        try:
            for idx, res in enumerate(session.pack.puzzles(), 1):
                svgs.append((f"puzzle_{idx:03d}.svg", svg.render_puzzle_svg(res.letters, res.words, look)))
                svgs.append((f"solution_{idx:03d}.svg", svg.render_solution_svg(res, look)))
        except Exception as e:
            st.error("Puzzle generation/rendering failed")
            st.exception(e)
            st.stop()

        # --- ZIP outputs ---
        try:
            imgs_for_pptx = []
            mem = io.BytesIO()
            with zipfile.ZipFile(mem, "w", zipfile.ZIP_DEFLATED) as zf:
                for name, s in svgs:
                    zf.writestr(name, s)

                for name, s in svgs:
                    try:
                        if make_png:
                            zf.writestr(name.replace(".svg", ".png"),
                                        svg2png(bytestring=s.encode("utf-8")))
                    except Exception as e:
                        zf.writestr(name.replace(".svg", ".PNG_ERROR.txt"),
                                    (f"PNG conversion failed for {name}:\n{e}").encode("utf-8"))

                    try:
                        if make_pdf:
                            zf.writestr(name.replace(".svg", ".pdf"),
                                        svg2pdf(bytestring=s.encode("utf-8")))
                    except Exception as e:
                        zf.writestr(name.replace(".svg", ".PDF_ERROR.txt"),
                                    (f"PDF conversion failed for {name}:\n{e}").encode("utf-8"))

                    try:
                        if make_pptx and name.startswith("puzzle_"):
                            imgs_for_pptx.append(svg2png(bytestring=s.encode("utf-8")))
                    except Exception as e:
                        zf.writestr(name.replace(".svg", ".PPTX_IMAGE_ERROR.txt"),
                                    (f"PPTX image prep failed for {name}:\n{e}").encode("utf-8"))

                if make_pptx and imgs_for_pptx:
                    prs = Presentation()
                    blank = prs.slide_layouts[6]
                    for png in imgs_for_pptx:
                        slide = prs.slides.add_slide(blank)
                        slide.shapes.add_picture(io.BytesIO(png), Inches(0.5), Inches(0.5), height=Inches(6.5))
                    out = io.BytesIO(); prs.save(out)
                    zf.writestr(f"{pack_seed}.pptx", out.getvalue())

            mem.seek(0)
            st.download_button("Download ZIP", data=mem.read(), file_name=f"{pack_seed}.zip", mime="application/zip")
        except Exception as e:
            st.error("Failed to package outputs")
            st.exception(e)
            st.stop()


with st.expander("Log"):
    st.text("\n".join(st.session_state.get("log", [])[-200:]))
