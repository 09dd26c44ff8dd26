from __future__ import annotations

import re
import unittest
from dataclasses import replace
from datetime import date

from reportlab.lib.units import mm

from default_catalog import load_default_catalog
from price_composer import LineItem, compute_summary
from selection_state import RoofPitch, SelectionState, TrussSpacing
from size_views import render_size_outline_png
from skylight_catalog import OpeningType, ProductCategory
from summary_pdf import SummaryPdfArtifact, make_summary_pdf_bytes

CATALOG = load_default_catalog()

# drawString emits "1 0 0 1 x y Tm ... (text) Tj" in an uncompressed content stream.
_TEXT_RE = re.compile(rb"1 0 0 1 ([-\d.]+) ([-\d.]+) Tm[^(]*\(((?:[^()\\]|\\.)*)\) Tj")


def _text_positions(pdf: bytes) -> list[tuple[bytes, float]]:
    return [(m.group(3), float(m.group(2))) for m in _TEXT_RE.finditer(pdf)]


def _summary():
    state = SelectionState(
        product_category=ProductCategory.SKYLIGHT,
        roof_pitch=RoofPitch.FLAT,
        opening_type=OpeningType.FIXED,
        structural_spacing=TrussSpacing.MM_600,
        size_code="2222",
        selected_product_id="fcm",
        selected_blind_id="fscc",
    )
    return compute_summary(state, CATALOG)


class TestSummaryPdf(unittest.TestCase):
    def _count_pdf_pages(self, pdf: bytes) -> int:
        """
        Best-effort page count without extra dependencies.

        Each page object includes "/Type /Page", the page tree "/Type /Pages".
        """
        return max(0, pdf.count(b"/Type /Page") - pdf.count(b"/Type /Pages"))

    def test_make_summary_pdf_bytes_returns_pdf(self) -> None:
        artifact = SummaryPdfArtifact(
            summary=_summary(),
            product_name="Flat Roof Fixed (FCM)",
            size_label="665 x 665 mm",
            generated_on=date(2026, 1, 15),
            roof_description="Flat roof",
        )
        pdf = make_summary_pdf_bytes(artifact)
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(len(pdf), 1000)
        self.assertIn(b"Total Estimate", pdf)
        self.assertIn(b"ZZZ 199 Blind Tray", pdf)
        self.assertIn(b"$1,091", pdf)
        self.assertIn(b"2026-01-15", pdf)
        self.assertEqual(self._count_pdf_pages(pdf), 1)

    def test_pdf_embeds_preview(self) -> None:
        size = CATALOG.size("2222")
        preview = render_size_outline_png(size, category=ProductCategory.SKYLIGHT)
        artifact = SummaryPdfArtifact(
            summary=_summary(),
            product_name="Flat Roof Fixed (FCM)",
            size_label="665 x 665 mm",
            generated_on=date(2026, 1, 15),
            preview_png_bytes=preview,
        )
        pdf = make_summary_pdf_bytes(artifact)
        self.assertIn(b"/Subtype /Image", pdf)

    def test_long_item_list_continues_on_next_page(self) -> None:
        summary = _summary()
        many = tuple(LineItem(code=f"X{i}", label=f"Extra item {i}", amount=1) for i in range(60))
        big = replace(summary, line_items=summary.line_items + many, total=summary.total + 60)
        pdf = make_summary_pdf_bytes(
            SummaryPdfArtifact(
                summary=big,
                product_name="Flat Roof Fixed (FCM)",
                size_label="665 x 665 mm",
                generated_on=date(2026, 1, 15),
            )
        )
        self.assertGreaterEqual(self._count_pdf_pages(pdf), 2)
        self.assertIn(rb"LINE ITEMS \(CONTINUED\)", pdf)
        self.assertIn(b"Extra item 59", pdf)

    def test_total_row_stays_clear_of_notes(self) -> None:
        summary = replace(_summary(), notes=("First note", "Second note", "Third note"))
        for extra in range(0, 45):
            many = tuple(LineItem(code=f"X{i}", label=f"Extra item {i}", amount=1) for i in range(extra))
            big = replace(summary, line_items=summary.line_items + many, total=summary.total + extra)
            pdf = make_summary_pdf_bytes(
                SummaryPdfArtifact(
                    summary=big,
                    product_name="Flat Roof Fixed",
                    size_label="665 x 665 mm",
                    generated_on=date(2026, 1, 15),
                )
            )
            positions = _text_positions(pdf)
            total_y = [y for text, y in positions if text.startswith(b"Total Estimate")]
            note_y = [y for text, y in positions if text.startswith(b"Note: ")]
            self.assertEqual(len(total_y), 1)
            self.assertEqual(len(note_y), 3)
            self.assertGreaterEqual(total_y[0] - max(note_y), 4 * mm, f"{extra} extra items")


if __name__ == "__main__":
    unittest.main()
