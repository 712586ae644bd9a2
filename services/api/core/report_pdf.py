# services/api/core/report_pdf.py

from __future__ import annotations
import html
import re
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable, Iterable, List, Optional, Protocol, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import MethodReturnValue, TableBordersLayout, TableCellFillMode, TextEmphasis
from fpdf.fonts import FontFace

from models import ClientFile, Field, Folder, Project

RGB = Tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)
NAVY: RGB = (15, 25, 45)
GRAY_LABEL: RGB = (80, 80, 80)
GRAY_FOOTER: RGB = (100, 100, 100)
CARD_FILL: RGB = (248, 248, 250)
CARD_BORDER: RGB = (230, 230, 232)
DIVIDER: RGB = (220, 220, 220)
ROW_ALT_FILL: RGB = (252, 252, 253)

# Layout constants, in points (A4 = 595.28 x 841.89)
MARGIN = 44
HEADER_HEIGHT = 36
FOOTER_HEIGHT = 28
LINE_HEIGHT = 14
NOTE_LINE_HEIGHT = LINE_HEIGHT - 2
SECTION_GAP = 20
PROJECT_MIN_SPACE = 80   # title + meta line + at least one table row
NOTES_MIN_SPACE = 60

DEFAULT_ATTRIBUTION = "Shared securely via Lunex - lunexweb.com"

_TAG_RE = re.compile(r"<[^>]+>")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

# Core PDF fonts are latin-1 only.
_PUNCTUATION = str.maketrans({
    "—": "-", "–": "-", "•": "-",
    "‘": "'", "’": "'", "“": '"', "”": '"',
    "…": "...",
})


def pdf_text(value: Optional[str]) -> str:
    s = (value or "").translate(_PUNCTUATION)
    return s.encode("latin-1", "replace").decode("latin-1")


# ---------- Page composition collaborator -----------------------------------

class PageCanvas(Protocol):
    """What the layout steps need from a page-composition library."""

    page_width: float
    page_height: float

    def add_page(self) -> None: ...
    def page_count(self) -> int: ...
    def current_page(self) -> int: ...
    def set_page(self, page: int) -> None: ...
    def rect(self, x: float, y: float, w: float, h: float, *,
             fill: Optional[RGB] = None, stroke: Optional[RGB] = None) -> None: ...
    def line(self, x1: float, y1: float, x2: float, y2: float, *, color: RGB) -> None: ...
    def text(self, x: float, y: float, value: str, *, size: float,
             bold: bool = False, color: RGB = BLACK) -> None: ...
    def string_width(self, value: str, *, size: float, bold: bool = False) -> float: ...
    def wrap_text(self, value: str, width: float, *, size: float) -> List[str]: ...
    def table(self, y: float, headings: Sequence[str], rows: Sequence[Sequence[str]]) -> float: ...
    def output(self) -> bytes: ...


class _BrandedPDF(FPDF):
    """Navy brand band behind the top of every physical page."""

    def header(self):
        self.set_fill_color(*NAVY)
        self.rect(0, 0, self.w, HEADER_HEIGHT, style="F")


class FpdfCanvas:
    """
    fpdf2-backed canvas: A4 portrait in points, with auto page breaks kept
    clear of the footer band (tables flow onto new pages by themselves).
    """

    def __init__(self, *, title: Optional[str] = None, author: Optional[str] = None):
        self._pdf = _BrandedPDF(orientation="P", unit="pt", format="A4")
        self._pdf.set_margins(MARGIN, MARGIN, MARGIN)
        self._pdf.set_auto_page_break(auto=True, margin=FOOTER_HEIGHT + LINE_HEIGHT)
        self._pdf.set_title(pdf_text(title or "Report"))
        self._pdf.set_author(pdf_text(author or ""))
        self._pdf.add_page()

        self.page_width = self._pdf.w
        self.page_height = self._pdf.h

    def add_page(self) -> None:
        self._pdf.add_page()

    def page_count(self) -> int:
        return len(self._pdf.pages)

    def current_page(self) -> int:
        return self._pdf.page

    def set_page(self, page: int) -> None:
        self._pdf.page = page

    def _font(self, size: float, bold: bool = False) -> None:
        self._pdf.set_font("Helvetica", "B" if bold else "", size)

    def rect(self, x, y, w, h, *, fill=None, stroke=None) -> None:
        if fill is not None:
            self._pdf.set_fill_color(*fill)
            self._pdf.rect(x, y, w, h, style="F")
        if stroke is not None:
            self._pdf.set_draw_color(*stroke)
            self._pdf.set_line_width(0.5)
            self._pdf.rect(x, y, w, h, style="D")

    def line(self, x1, y1, x2, y2, *, color) -> None:
        self._pdf.set_draw_color(*color)
        self._pdf.set_line_width(0.5)
        self._pdf.line(x1, y1, x2, y2)

    def text(self, x, y, value, *, size, bold=False, color=BLACK) -> None:
        self._font(size, bold)
        self._pdf.set_text_color(*color)
        self._pdf.text(x, y, pdf_text(value))

    def string_width(self, value, *, size, bold=False) -> float:
        self._font(size, bold)
        return self._pdf.get_string_width(pdf_text(value))

    def wrap_text(self, value, width, *, size) -> List[str]:
        self._font(size)
        return self._pdf.multi_cell(
            width, NOTE_LINE_HEIGHT, pdf_text(value),
            dry_run=True, output=MethodReturnValue.LINES,
        )

    def table(self, y, headings, rows) -> float:
        pdf = self._pdf
        pdf.set_y(y)
        self._font(10)
        pdf.set_text_color(*BLACK)
        pdf.set_draw_color(*CARD_BORDER)
        label_style = FontFace(color=GRAY_LABEL)
        with pdf.table(
            width=pdf.epw,
            col_widths=(1, 2),
            line_height=LINE_HEIGHT,
            padding=(8, 10),
            text_align="LEFT",
            borders_layout=TableBordersLayout.HORIZONTAL_LINES,
            headings_style=FontFace(emphasis=TextEmphasis.B, color=WHITE, fill_color=NAVY),
            cell_fill_color=ROW_ALT_FILL,
            cell_fill_mode=TableCellFillMode.ROWS,
        ) as table:
            head = table.row()
            for h in headings:
                head.cell(pdf_text(h))
            for values in rows:
                row = table.row()
                for i, v in enumerate(values):
                    row.cell(pdf_text(v), style=label_style if i == 0 else None)
        return pdf.y

    def output(self) -> bytes:
        return bytes(self._pdf.output())


# ---------- Layout cursor ----------------------------------------------------

@dataclass(frozen=True)
class LayoutCursor:
    """Vertical position (points from the page top) on a physical page."""
    y: float
    page: int = 1

    def down(self, dy: float) -> "LayoutCursor":
        return LayoutCursor(self.y + dy, self.page)


def content_bottom(canvas: PageCanvas) -> float:
    """Lowest baseline allowed before the footer band."""
    return canvas.page_height - FOOTER_HEIGHT - LINE_HEIGHT


def break_threshold(canvas: PageCanvas, min_space: float) -> float:
    return canvas.page_height - MARGIN - FOOTER_HEIGHT - min_space


def new_page(canvas: PageCanvas) -> LayoutCursor:
    canvas.add_page()
    return LayoutCursor(MARGIN, canvas.current_page())


def ensure_space(canvas: PageCanvas, cursor: LayoutCursor, min_space: float) -> LayoutCursor:
    if cursor.y > break_threshold(canvas, min_space):
        return new_page(canvas)
    return cursor


# ---------- Content helpers --------------------------------------------------

def select_projects(client_file: ClientFile, project_ids: Optional[Iterable[str]] = None) -> List[Project]:
    """
    Projects to export, in the order requested. No ids means every project in
    the file's natural order; unknown ids are skipped.
    """
    ids = list(project_ids or [])
    if not ids:
        return list(client_file.projects)
    by_id = {p.id: p for p in client_file.projects}
    selected: List[Project] = []
    seen = set()
    for pid in ids:
        if pid in by_id and pid not in seen:
            seen.add(pid)
            selected.append(by_id[pid])
    return selected


def _strip_html(content: str) -> str:
    return " ".join(html.unescape(_TAG_RE.sub(" ", content or "")).split())


def project_notes_text(project: Project) -> str:
    """Structured note entries win over the legacy notes field when any has text."""
    entries = [_strip_html(e.content) for e in project.note_entries]
    entries = [e for e in entries if e]
    if entries:
        return " ".join(entries)
    return (project.notes or "").strip()


def folder_summary_line(folder: Folder) -> str:
    n = len(folder.files)
    return f"  -  {folder.name}  -  {n} file{'' if n == 1 else 's'}"


def client_card_rows(client_file: ClientFile) -> List[Tuple[str, str]]:
    rows = [("Type", client_file.type)]
    if client_file.reference:
        rows.append(("Reference", client_file.reference))
    if client_file.phone:
        rows.append(("Phone", client_file.phone))
    if client_file.email:
        rows.append(("Email", client_file.email))
    return rows


def client_card_height(client_file: ClientFile) -> float:
    return 28 + len(client_card_rows(client_file)) * LINE_HEIGHT + 16


def format_generated_date(d: date) -> str:
    return f"{d.day} {d:%b %Y}"


def report_filename(client_file: ClientFile, today: date, brand: str = "lunex") -> str:
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", client_file.name)[:50]
    return f"{brand.lower()}-{safe_name}-{today.isoformat()}.pdf"


# ---------- Drawing steps (cursor in, cursor out) ---------------------------

def draw_brand_header(canvas: PageCanvas, generated_on: date) -> LayoutCursor:
    label = f"Generated on {format_generated_date(generated_on)}"
    width = canvas.string_width(label, size=10)
    canvas.text(canvas.page_width - MARGIN - width, 24, label, size=10, color=WHITE)
    return LayoutCursor(HEADER_HEIGHT + SECTION_GAP, canvas.current_page())


def draw_client_card(canvas: PageCanvas, cursor: LayoutCursor, client_file: ClientFile) -> LayoutCursor:
    height = client_card_height(client_file)
    if cursor.y + height > content_bottom(canvas):
        cursor = new_page(canvas)

    top = cursor.y
    width = canvas.page_width - 2 * MARGIN
    canvas.rect(MARGIN, top, width, height, fill=CARD_FILL, stroke=CARD_BORDER)
    canvas.text(MARGIN + 10, top + 20, client_file.name, size=18, bold=True)

    y = top + 48
    for label, value in client_card_rows(client_file):
        canvas.text(MARGIN + 10, y + 4, label, size=9, color=GRAY_LABEL)
        canvas.text(MARGIN + 86, y + 4, value, size=10)
        y += LINE_HEIGHT
    return LayoutCursor(top + height + SECTION_GAP, cursor.page)


def draw_field_table(canvas: PageCanvas, cursor: LayoutCursor, fields: Sequence[Field]) -> LayoutCursor:
    rows = [(f.name, f.value or "-") for f in fields]
    final_y = canvas.table(cursor.y, ("Field", "Value"), rows)
    return LayoutCursor(final_y + SECTION_GAP, canvas.current_page())


def draw_folder_summary(canvas: PageCanvas, cursor: LayoutCursor, folders: Sequence[Folder]) -> LayoutCursor:
    bottom = content_bottom(canvas)
    if cursor.y + 18 + LINE_HEIGHT > bottom:
        cursor = new_page(canvas)
    canvas.text(MARGIN, cursor.y + 4, "Folders", size=11, bold=True)
    cursor = cursor.down(18)
    for folder in folders:
        if cursor.y + 4 > bottom:
            cursor = new_page(canvas)
        canvas.text(MARGIN, cursor.y + 4, folder_summary_line(folder), size=10)
        cursor = cursor.down(LINE_HEIGHT)
    return cursor.down(10)


def draw_notes(canvas: PageCanvas, cursor: LayoutCursor, notes: str) -> LayoutCursor:
    cursor = ensure_space(canvas, cursor, NOTES_MIN_SPACE)
    canvas.text(MARGIN, cursor.y + 4, "Notes", size=11, bold=True)
    cursor = cursor.down(18)

    bottom = content_bottom(canvas)
    for line in canvas.wrap_text(notes, canvas.page_width - 2 * MARGIN - 8, size=10):
        if cursor.y > bottom:
            cursor = new_page(canvas)
        canvas.text(MARGIN + 4, cursor.y, line, size=10)
        cursor = cursor.down(NOTE_LINE_HEIGHT)
    return cursor.down(SECTION_GAP)


def draw_project(canvas: PageCanvas, cursor: LayoutCursor, project: Project) -> LayoutCursor:
    cursor = ensure_space(canvas, cursor, PROJECT_MIN_SPACE)

    canvas.text(MARGIN, cursor.y + 4, project.name, size=14, bold=True)
    cursor = cursor.down(18)
    meta = f"{project.project_number or project.id}  ·  {project.status}"
    canvas.text(MARGIN, cursor.y + 4, meta, size=10, color=GRAY_LABEL)
    cursor = cursor.down(22)

    if project.fields:
        cursor = draw_field_table(canvas, cursor, project.fields)
    if project.folders:
        cursor = draw_folder_summary(canvas, cursor, project.folders)

    notes = project_notes_text(project)
    if notes:
        return draw_notes(canvas, cursor, notes)
    return cursor.down(8)


def stamp_footers(canvas: PageCanvas, attribution: str = DEFAULT_ATTRIBUTION) -> int:
    """Divider, attribution and "Page n of total" on every page. Returns total."""
    total = canvas.page_count()
    w, h = canvas.page_width, canvas.page_height
    for page in range(1, total + 1):
        canvas.set_page(page)
        canvas.line(MARGIN, h - FOOTER_HEIGHT, w - MARGIN, h - FOOTER_HEIGHT, color=DIVIDER)
        canvas.text(MARGIN, h - 14, attribution, size=9, color=GRAY_FOOTER)
        label = f"Page {page} of {total}"
        canvas.text(w - MARGIN - canvas.string_width(label, size=9), h - 14, label,
                    size=9, color=GRAY_FOOTER)
    canvas.set_page(total)
    return total


# ---------- Public API -------------------------------------------------------

def build_file_report(
    client_file: ClientFile,
    canvas: PageCanvas,
    *,
    generated_on: date,
    project_ids: Optional[Iterable[str]] = None,
    attribution: str = DEFAULT_ATTRIBUTION,
) -> LayoutCursor:
    """
    Lay out the whole report on `canvas` (which starts with one blank page)
    and stamp the footers. Returns the cursor after the last project.
    """
    cursor = draw_brand_header(canvas, generated_on)
    cursor = draw_client_card(canvas, cursor, client_file)
    for project in select_projects(client_file, project_ids):
        cursor = draw_project(canvas, cursor, project)
    stamp_footers(canvas, attribution)
    return cursor


SaveCallback = Callable[[str, bytes], Awaitable[None]]


async def generate_file_pdf(
    client_file: ClientFile,
    save: SaveCallback,
    *,
    project_ids: Optional[Iterable[str]] = None,
    business_name: Optional[str] = None,
    brand: str = "lunex",
    attribution: str = DEFAULT_ATTRIBUTION,
    today: Optional[date] = None,
    canvas_factory: Callable[..., PageCanvas] = FpdfCanvas,
) -> str:
    """
    Render the client file report and hand it to `save(filename, data)`.

    Composition errors are not caught here. Returns the file name used.
    """
    today = today or date.today()
    canvas = canvas_factory(
        title=client_file.name,
        author=(business_name or "").strip() or "Lunex.com",
    )
    build_file_report(
        client_file,
        canvas,
        generated_on=today,
        project_ids=project_ids,
        attribution=attribution,
    )
    filename = report_filename(client_file, today, brand=brand)
    await save(filename, canvas.output())
    return filename
