from __future__ import annotations

import unittest
from io import BytesIO

from PIL import Image

from default_catalog import load_default_catalog
from selection_state import Orientation
from size_views import render_size_outline_png
from skylight_catalog import ProductCategory

CATALOG = load_default_catalog()


class TestSizeViews(unittest.TestCase):
    def test_returns_png_of_requested_size(self) -> None:
        png = render_size_outline_png(CATALOG.size("C04"), category=ProductCategory.SKYLIGHT, canvas_px=(400, 300))
        self.assertTrue(png.startswith(b"\x89PNG"))
        with Image.open(BytesIO(png)) as img:
            self.assertEqual(img.size, (400, 300))

    def test_render_is_deterministic_for_same_inputs(self) -> None:
        a = render_size_outline_png(CATALOG.size("MK04"), category=ProductCategory.ROOF_WINDOW)
        b = render_size_outline_png(CATALOG.size("MK04"), category=ProductCategory.ROOF_WINDOW)
        self.assertEqual(a, b)

    def test_orientation_changes_output(self) -> None:
        size = CATALOG.size("2246")
        portrait = render_size_outline_png(size, category=ProductCategory.SKYLIGHT)
        landscape = render_size_outline_png(size, category=ProductCategory.SKYLIGHT, orientation=Orientation.LANDSCAPE)
        self.assertNotEqual(portrait, landscape)

    def test_tunnel_is_drawn_differently(self) -> None:
        size = CATALOG.size("014")
        tunnel = render_size_outline_png(size, category=ProductCategory.SUN_TUNNEL)
        square = render_size_outline_png(size, category=ProductCategory.SKYLIGHT)
        self.assertNotEqual(tunnel, square)


if __name__ == "__main__":
    unittest.main()
