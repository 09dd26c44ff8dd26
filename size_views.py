from __future__ import annotations

from io import BytesIO
from typing import Tuple

from PIL import Image, ImageColor, ImageDraw

from selection_state import Orientation
from skylight_catalog import ProductCategory, SizeCode

_NAMED_COLORS: dict[str, str] = {
    "Charcoal": "#3c4043",
    "Aluminium": "#b0b3b8",
    "Glass": "#cfe8fc",
    "White": "#f5f5f5",
    "Dimension": "#5f6368",
}


def _color(value: str) -> Tuple[int, int, int]:
    """
    Convert a named color (selector palette) or any CSS hex to an RGB tuple.
    """
    v = (value or "").strip() or "Charcoal"
    v = _NAMED_COLORS.get(v, v)
    return ImageColor.getrgb(v)


def _clamp_int(name: str, value: int, *, min_value: int, max_value: int) -> int:
    if not isinstance(value, int):
        raise TypeError(f"{name} must be int (got {type(value).__name__})")
    return max(min_value, min(max_value, value))


def _encode_png(img: Image.Image) -> bytes:
    buf = BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def render_size_outline_png(
    size: SizeCode,
    *,
    category: ProductCategory,
    orientation: Orientation = Orientation.PORTRAIT,
    frame_color: str = "Charcoal",
    canvas_px: Tuple[int, int] = (480, 360),
) -> bytes:
    """
    Draw the chosen unit to scale as a front-on outline with its dimensions.

    Skylights and roof windows are drawn as a frame around a glazed panel; sun tunnels
    as a round diffuser. Landscape orientation swaps the drawn width and height.
    Output is deterministic for the same inputs.
    """
    cw = _clamp_int("canvas_width_px", int(canvas_px[0]), min_value=200, max_value=2000)
    ch = _clamp_int("canvas_height_px", int(canvas_px[1]), min_value=160, max_value=1600)
    width_mm = _clamp_int("width_mm", size.width_mm, min_value=1, max_value=5000)
    height_mm = _clamp_int("height_mm", size.height_mm, min_value=1, max_value=5000)
    if orientation == Orientation.LANDSCAPE:
        width_mm, height_mm = height_mm, width_mm

    img = Image.new("RGB", (cw, ch), (250, 250, 250))
    d = ImageDraw.Draw(img)
    frame = _color(frame_color)
    glass = _color("Glass")
    dim = _color("Dimension")

    # Leave room on the right and bottom for the dimension lines.
    avail_w = cw * 0.70
    avail_h = ch * 0.70
    scale = min(avail_w / width_mm, avail_h / height_mm)
    w = max(4, int(width_mm * scale))
    h = max(4, int(height_mm * scale))
    x0 = int((cw - w) / 2) - 16
    y0 = int((ch - h) / 2) - 12

    if category == ProductCategory.SUN_TUNNEL:
        d.ellipse([x0, y0, x0 + w, y0 + h], fill=_color("White"), outline=frame, width=4)
        inset = max(6, int(min(w, h) * 0.12))
        d.ellipse([x0 + inset, y0 + inset, x0 + w - inset, y0 + h - inset], fill=glass, outline=frame, width=1)
    else:
        d.rectangle([x0, y0, x0 + w, y0 + h], fill=frame)
        inset = max(4, int(min(w, h) * 0.08))
        d.rectangle([x0 + inset, y0 + inset, x0 + w - inset, y0 + h - inset], fill=glass, outline=_color("Aluminium"))

    # Width dimension (below)
    dy = y0 + h + 18
    d.line([(x0, dy), (x0 + w, dy)], fill=dim, width=1)
    d.line([(x0, dy - 5), (x0, dy + 5)], fill=dim, width=1)
    d.line([(x0 + w, dy - 5), (x0 + w, dy + 5)], fill=dim, width=1)
    d.text((x0 + w // 2 - 18, dy + 6), f"{width_mm} mm", fill=dim)

    # Height dimension (right)
    dx = x0 + w + 18
    d.line([(dx, y0), (dx, y0 + h)], fill=dim, width=1)
    d.line([(dx - 5, y0), (dx + 5, y0)], fill=dim, width=1)
    d.line([(dx - 5, y0 + h), (dx + 5, y0 + h)], fill=dim, width=1)
    d.text((dx + 8, y0 + h // 2 - 6), f"{height_mm} mm", fill=dim)

    d.text((12, 10), size.code, fill=frame)
    d.rectangle([4, 4, cw - 5, ch - 5], outline=(200, 200, 200), width=2)
    return _encode_png(img)
