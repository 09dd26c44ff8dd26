from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from domain_filter import blind_tray_for, eligible_screens, tunnel_fixed_code
from selection_state import DerivedRoofType, RoofPitch, SelectionState
from skylight_catalog import AccessoryKind, Catalog, Product, ProductCategory

logger = logging.getLogger(__name__)

CATEGORY_NOUNS = {
    ProductCategory.SKYLIGHT: "Skylight",
    ProductCategory.ROOF_WINDOW: "Roof Window",
    ProductCategory.SUN_TUNNEL: "Sun Tunnel",
}


class IncompleteStateError(AssertionError):
    def __init__(self, missing: Tuple[str, ...]) -> None:
        self.missing = missing
        super().__init__(f"selection is not complete; missing: {', '.join(missing)}")


@dataclass(frozen=True)
class LineItem:
    code: str
    label: str
    amount: int
    # Informational rows (e.g. "custom flashing required") that never carry a charge.
    advisory: bool = False


@dataclass(frozen=True)
class Summary:
    product_id: str
    size_code: str
    catalog_revision: str
    line_items: Tuple[LineItem, ...]
    total: int
    notes: Tuple[str, ...] = ()

    def to_payload(self) -> Dict[str, object]:
        return {
            "product_id": self.product_id,
            "size_code": self.size_code,
            "catalog_revision": self.catalog_revision,
            "line_items": [
                {"code": li.code, "label": li.label, "amount": li.amount, "advisory": li.advisory}
                for li in self.line_items
            ],
            "total": self.total,
            "notes": list(self.notes),
        }


def format_dollars(amount: int) -> str:
    return f"${amount:,.0f}"


def missing_fields(state: SelectionState) -> Tuple[str, ...]:
    missing: List[str] = []
    for name in ("product_category", "roof_pitch", "selected_product_id", "size_code"):
        if getattr(state, name) is None:
            missing.append(name)
    if state.roof_pitch == RoofPitch.PITCHED and state.roof_material is None:
        missing.append("roof_material")
    if state.product_category == ProductCategory.SKYLIGHT:
        if state.opening_type is None:
            missing.append("opening_type")
        if state.structural_spacing is None:
            missing.append("structural_spacing")
    if state.product_category == ProductCategory.ROOF_WINDOW and state.structural_spacing is None:
        missing.append("structural_spacing")
    return tuple(missing)


def compute_summary(state: SelectionState, catalog: Catalog) -> Summary:
    """
    Itemized price for a completed selection.

    Each rule adds at most one line: base product, flashing, blind, insect screen,
    blind tray (flat roof + blind only), tunnel extension. Prices missing from the
    sparse blind/accessory tables count as 0 instead of failing. Calling this before
    the selection is complete raises IncompleteStateError.
    """
    missing = missing_fields(state)
    if missing:
        raise IncompleteStateError(missing)
    product = catalog.product(state.selected_product_id)
    if product is None:
        raise IncompleteStateError(("selected_product_id (unknown product)",))

    size = str(state.size_code)
    notes: List[str] = []
    line_items: List[LineItem] = []

    base = product.prices.get(size)
    if base is None:
        logger.warning("No base price for %s %s; pricing as 0", product.id, size)
        notes.append(f"{product.model} has no list price for size {size}.")
    noun = CATEGORY_NOUNS.get(product.category, "Product")
    line_items.append(LineItem(code="BASE", label=f"{product.model} {size} {noun}", amount=int(base or 0)))

    line_items.append(_flashing_line(state, product, catalog, notes))

    blind = catalog.blind(state.selected_blind_id)
    if blind is not None:
        blind_price = blind.prices.get(size, 0)
        if blind_price > 0:
            line_items.append(LineItem(code="BLIND", label=f"{blind.model} {size} {blind.name}", amount=blind_price))
        else:
            logger.warning("Blind %s is not orderable for size %s", blind.id, size)
            line_items.append(
                LineItem(
                    code="BLIND",
                    label=f"{blind.model} {size} {blind.name} (not available in this size)",
                    amount=0,
                    advisory=True,
                )
            )

    if state.insect_screen_requested:
        screens = eligible_screens(state, catalog)
        if screens:
            screen = screens[0]
            line_items.append(
                LineItem(code="INSECT_SCREEN", label=f"{screen.model} {size} {screen.name}", amount=screen.prices[size])
            )
        else:
            logger.warning("Insect screen requested but none is priced for %s %s", product.id, size)

    if state.is_flat_roof and blind is not None:
        tray = blind_tray_for(state, catalog)
        if tray is not None:
            line_items.append(LineItem(code="BLIND_TRAY", label=f"{tray.name} ({size})", amount=tray.prices[size]))
        else:
            notes.append(f"No blind tray is listed for size {size}.")

    if product.category == ProductCategory.SUN_TUNNEL and state.selected_addon_id:
        addon = catalog.accessory(state.selected_addon_id)
        if addon is not None and addon.kind == AccessoryKind.EXTENSION and product.model in addon.compatible_models:
            # Keyed by the tunnel's own fixed code, not the selected size.
            addon_price = addon.prices.get(tunnel_fixed_code(product), 0)
            line_items.append(LineItem(code="EXTENSION", label=addon.name, amount=addon_price))

    total = sum(li.amount for li in line_items)
    return Summary(
        product_id=product.id,
        size_code=size,
        catalog_revision=catalog.revision,
        line_items=tuple(line_items),
        total=total,
        notes=tuple(notes),
    )


def _flashing_line(state: SelectionState, product: Product, catalog: Catalog, notes: List[str]) -> LineItem:
    roof = state.derived_roof_type
    size = str(state.size_code)
    if product.category == ProductCategory.SUN_TUNNEL:
        if roof == DerivedRoofType.TILED:
            return LineItem(code="FLASHING", label="Integrated Flashing (Included)", amount=0, advisory=True)
        return LineItem(code="FLASHING", label="Custom Flashing Required (Not Included)", amount=0, advisory=True)

    if roof == DerivedRoofType.TILED:
        price = catalog.flashing.prices.get(size, 0)
        if price <= 0:
            notes.append(f"EDW flashing for {size} is supplied at no charge.")
        return LineItem(code="FLASHING", label=f"EDW {size} Flashing (Tile/Corrugated)", amount=price)
    if roof == DerivedRoofType.WIDE_METAL:
        return LineItem(code="FLASHING", label="Custom Flashing Required (Not Included)", amount=0, advisory=True)
    return LineItem(code="FLASHING", label="Custom Curb Flashing Required (Not Included)", amount=0, advisory=True)


def summary_text(summary: Summary, *, product_name: Optional[str] = None) -> str:
    lines = [
        "Skylight Selection - Summary",
        f"Catalog: {summary.catalog_revision}",
        f"Product: {product_name or summary.product_id} ({summary.size_code})",
        "",
        "Line items:",
    ]
    for li in summary.line_items:
        lines.append(f"- {li.label}: {format_dollars(li.amount)}")
    lines.append("")
    lines.append(f"Total Estimate (RRP): {format_dollars(summary.total)}")
    if summary.notes:
        lines.append("")
        lines.append("Notes:")
        for n in summary.notes:
            lines.append(f"- {n}")
    return "\n".join(lines) + "\n"


def summary_csv(summary: Summary) -> str:
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=["code", "label", "amount", "advisory"])
    w.writeheader()
    for li in summary.line_items:
        w.writerow({"code": li.code, "label": li.label, "amount": li.amount, "advisory": li.advisory})
    return buf.getvalue()
