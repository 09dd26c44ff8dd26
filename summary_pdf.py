from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from price_composer import LineItem, Summary, format_dollars

logger = logging.getLogger(__name__)

ROW_H = 7 * mm
NOTE_BASE = 6 * mm
NOTE_H = 4 * mm


@dataclass(frozen=True)
class SummaryPdfArtifact:
    summary: Summary
    product_name: str
    size_label: str
    generated_on: date
    roof_description: str = ""
    preview_png_bytes: Optional[bytes] = None


def make_summary_pdf_bytes(artifact: SummaryPdfArtifact) -> bytes:
    """
    Render the selection summary as a one-or-more page PDF.

    Page 1 has a header, the product block (with the outline preview when given) and
    the line-item table; rows that do not fit continue on further pages and the total
    always follows the last row.
    """
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    # Uncompressed so markers can be found in the raw bytes.
    c.setPageCompression(0)
    w, h = A4

    margin = 18 * mm
    x0 = margin
    y_top = h - margin
    pad = 4 * mm
    summary = artifact.summary

    header_h = 26 * mm
    _rect(c, x0, y_top - header_h, w - 2 * margin, header_h)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(x0 + pad, y_top - 10 * mm, "Skylight Selection Summary")
    c.setFont("Helvetica", 9)
    c.drawString(x0 + pad, y_top - 16 * mm, f"Date: {artifact.generated_on.isoformat()}")
    c.setFont("Helvetica-Bold", 12)
    c.drawRightString(w - margin - pad, y_top - 10 * mm, f"Total (RRP): {format_dollars(summary.total)}")

    y = y_top - header_h - 6 * mm

    block_h = 42 * mm
    block_w = w - 2 * margin
    _rect(c, x0, y - block_h, block_w, block_h)
    text_w = block_w * 0.55
    c.setFont("Helvetica-Bold", 11)
    _draw_truncated(c, x0 + pad, y - 9 * mm, artifact.product_name, max_width=text_w - pad)
    c.setFont("Helvetica", 9)
    _draw_truncated(c, x0 + pad, y - 15 * mm, f"Size: {summary.size_code} ({artifact.size_label})", max_width=text_w - pad)
    if artifact.roof_description:
        _draw_truncated(c, x0 + pad, y - 21 * mm, f"Roof: {artifact.roof_description}", max_width=text_w - pad)

    if artifact.preview_png_bytes:
        try:
            img = ImageReader(BytesIO(artifact.preview_png_bytes))
            c.drawImage(
                img,
                x0 + text_w,
                y - block_h + pad,
                width=block_w - text_w - pad,
                height=block_h - 2 * pad,
                preserveAspectRatio=True,
                anchor="e",
                mask="auto",
            )
        except (OSError, ValueError) as e:
            logger.warning("Skipping unreadable preview image: %s", e)

    y = y - block_h - 8 * mm
    footer_y = margin
    notes = summary.notes[:3]
    notes_top = footer_y + NOTE_BASE + max(0, len(notes) - 1) * NOTE_H
    # The total row is drawn 2 mm plus one row below the last item; keep it clear of the notes.
    rows_floor = max(footer_y + 24 * mm, notes_top + 8 * mm + ROW_H)
    remaining = list(summary.line_items)
    while True:
        y, remaining = _render_rows(c, remaining, x0=x0, y=y, page_w=w, margin=margin, pad=pad, bottom_y=rows_floor)
        if not remaining:
            break
        c.showPage()
        c.setFont("Helvetica-Bold", 10)
        c.drawString(x0, h - margin, "LINE ITEMS (CONTINUED)")
        y = h - margin - 8 * mm

    y -= 2 * mm
    _hline(c, x0, w - margin, y)
    y -= ROW_H
    c.setFont("Helvetica-Bold", 11)
    c.drawString(x0 + pad, y, "Total Estimate (RRP)")
    c.drawRightString(w - margin - pad, y, format_dollars(summary.total))

    note_y = footer_y + NOTE_BASE
    c.setFont("Helvetica", 8)
    for n in notes:
        _draw_truncated(c, x0, note_y, f"Note: {n}", max_width=w - 2 * margin)
        note_y += NOTE_H

    c.setFillColor(colors.grey)
    c.drawString(x0, footer_y, f"Catalog: {summary.catalog_revision}")
    c.setFillColor(colors.black)

    c.showPage()
    c.save()
    return buf.getvalue()


def _render_rows(
    c: canvas.Canvas,
    rows: list[LineItem],
    *,
    x0: float,
    y: float,
    page_w: float,
    margin: float,
    pad: float,
    bottom_y: float,
) -> tuple[float, list[LineItem]]:
    """Draw the table header and as many rows as fit above `bottom_y`; returns the rest."""
    c.setFont("Helvetica-Bold", 9)
    c.drawString(x0 + pad, y, "ITEM")
    c.drawRightString(page_w - margin - pad, y, "AMOUNT")
    y -= 3 * mm
    _hline(c, x0, page_w - margin, y)
    y -= ROW_H

    desc_max_w = page_w - 2 * margin - 40 * mm
    rendered = 0
    for li in rows:
        if y < bottom_y:
            break
        c.setFont("Helvetica-Oblique" if li.advisory else "Helvetica", 9)
        if li.advisory:
            c.setFillColor(colors.grey)
        _draw_truncated(c, x0 + pad, y, li.label, max_width=desc_max_w)
        c.drawRightString(page_w - margin - pad, y, format_dollars(li.amount))
        c.setFillColor(colors.black)
        y -= ROW_H
        rendered += 1
    return y + ROW_H, rows[rendered:]


def _rect(c: canvas.Canvas, x: float, y: float, w: float, h: float) -> None:
    c.rect(x, y, w, h, stroke=1, fill=0)


def _hline(c: canvas.Canvas, x1: float, x2: float, y: float) -> None:
    c.line(x1, y, x2, y)


def _draw_truncated(c: canvas.Canvas, x: float, y: float, text: str, *, max_width: float) -> None:
    """
    Draw text truncated with an ASCII ellipsis so it stays inside its box.
    """
    t = (text or "").strip()
    if not t or max_width <= 0:
        return
    if c.stringWidth(t) <= max_width:
        c.drawString(x, y, t)
        return
    ell = "..."
    lo = 0
    hi = len(t)
    best = ""
    while lo <= hi:
        mid = (lo + hi) // 2
        cand = (t[:mid].rstrip() + ell) if mid < len(t) else t
        if c.stringWidth(cand) <= max_width:
            best = cand
            lo = mid + 1
        else:
            hi = mid - 1
    if best:
        c.drawString(x, y, best)
