from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from selection_state import DerivedRoofType, Orientation, SelectionState, TrussSpacing
from skylight_catalog import (
    Accessory,
    AccessoryKind,
    Blind,
    BlindKind,
    Catalog,
    OpeningType,
    Product,
    ProductCategory,
    RoofType,
    SizeCode,
    SizeUniverse,
)

logger = logging.getLogger(__name__)

# Flat roofs: overall curb width prefix per structural spacing (1430 is the 460mm exception on 600).
FLAT_SPACING_PREFIXES: Dict[TrussSpacing, Tuple[str, ...]] = {
    TrussSpacing.MM_600: ("14", "22"),
    TrussSpacing.MM_900: ("30", "34"),
    TrussSpacing.MM_1200: ("46",),
}

# Pitched roofs (skylights and roof windows): width series letter per structural spacing.
PITCHED_SPACING_PREFIX: Dict[TrussSpacing, str] = {
    TrussSpacing.MM_600: "C",
    TrussSpacing.MM_900: "M",
    TrussSpacing.MM_1200: "S",
}

# Flat-roof sizes not supported in landscape mounting.
LANDSCAPE_EXCLUDED_CODES: FrozenSet[str] = frozenset({"2270", "3072", "4672"})

ROOF_WINDOW_SERIES_SUFFIX = "K"


def eligible_products(state: SelectionState, catalog: Catalog) -> Tuple[Product, ...]:
    """
    Products still selectable given the choices made so far.

    Category gate, then roof compatibility, then opening type. A filter whose field is
    not set yet is a no-op.
    """
    out: List[Product] = []
    for p in _category_gate(state, catalog):
        if not _roof_compatible(p, state.derived_roof_type):
            continue
        if state.opening_type is not None and p.opening_type != state.opening_type:
            continue
        out.append(p)
    return tuple(out)


def eligible_opening_types(state: SelectionState, catalog: Catalog) -> Tuple[OpeningType, ...]:
    # Ignores an already-chosen opening type: this is the menu for the opening step itself.
    present = {
        p.opening_type for p in _category_gate(state, catalog) if _roof_compatible(p, state.derived_roof_type)
    }
    return tuple(o for o in OpeningType if o in present)


def eligible_size_codes(state: SelectionState, catalog: Catalog) -> Tuple[SizeCode, ...]:
    codes = set()
    for p in eligible_products(state, catalog):
        codes.update(p.compatible_sizes)

    codes = restrict_by_spacing(codes, state.structural_spacing, flat=state.is_flat_roof)
    codes = restrict_by_orientation(codes, state.orientation)

    universe = size_universe_for(state)
    if universe == SizeUniverse.ROOF_WINDOW and state.spacing_specified:
        series = PITCHED_SPACING_PREFIX[state.structural_spacing] + ROOF_WINDOW_SERIES_SUFFIX
        codes = {c for c in codes if c.startswith(series)}

    result = tuple(s for s in catalog.sizes_in(universe) if s.code in codes)
    logger.debug(
        "eligible sizes category=%s roof=%s spacing=%s orientation=%s -> %s",
        _value(state.product_category),
        _value(state.derived_roof_type),
        _value(state.structural_spacing),
        state.orientation.value,
        [s.code for s in result],
    )
    return result


def restrict_by_spacing(
    codes: Iterable[str], spacing: Optional[TrussSpacing], *, flat: bool
) -> FrozenSet[str]:
    """
    Keep only the size codes whose prefix fits the structural spacing.

    This narrows the given set; it never adds codes back. Unset or unspecified spacing
    leaves the set as is.
    """
    codes = frozenset(codes)
    if spacing is None or spacing == TrussSpacing.UNSPECIFIED:
        return codes
    if flat:
        prefixes = FLAT_SPACING_PREFIXES[spacing]
        return frozenset(c for c in codes if any(c.startswith(pre) for pre in prefixes))
    prefix = PITCHED_SPACING_PREFIX[spacing]
    return frozenset(c for c in codes if c.startswith(prefix))


def restrict_by_orientation(codes: Iterable[str], orientation: Orientation) -> FrozenSet[str]:
    codes = frozenset(codes)
    if orientation != Orientation.LANDSCAPE:
        return codes
    return codes - LANDSCAPE_EXCLUDED_CODES


def size_universe_for(state: SelectionState) -> SizeUniverse:
    if state.product_category == ProductCategory.ROOF_WINDOW:
        return SizeUniverse.ROOF_WINDOW
    if state.product_category == ProductCategory.SUN_TUNNEL:
        return SizeUniverse.SUN_TUNNEL
    if state.is_flat_roof:
        return SizeUniverse.FLAT
    return SizeUniverse.PITCHED


def results_candidates(state: SelectionState, catalog: Catalog) -> Tuple[Tuple[Product, str], ...]:
    """
    (product, size code) pairs shown on the results step.

    With a size already chosen (or forced) only products offering that size are listed;
    without one every eligible product is paired with each of its remaining sizes.
    """
    products = eligible_products(state, catalog)
    if state.product_category == ProductCategory.SUN_TUNNEL and state.selected_product_id:
        products = tuple(p for p in products if p.id == state.selected_product_id)

    if results_size_fixed(state):
        return tuple((p, state.size_code) for p in products if state.size_code in p.compatible_sizes)

    sizes = eligible_size_codes(state, catalog)
    return tuple((p, s.code) for p in products for s in sizes if s.code in p.compatible_sizes)


def results_size_fixed(state: SelectionState) -> bool:
    """
    Whether the size was settled before the results step (picked on the size step or
    forced with a tunnel). Otherwise results pairs products with sizes, even on a later
    visit where size_code is already filled in from an earlier pick.
    """
    if not state.size_code:
        return False
    if state.product_category in (ProductCategory.SUN_TUNNEL, ProductCategory.ROOF_WINDOW):
        return True
    return state.spacing_specified


def eligible_blinds(state: SelectionState, catalog: Catalog) -> Tuple[Blind, ...]:
    return _orderable_blinds(state, catalog, screens=False)


def eligible_screens(state: SelectionState, catalog: Catalog) -> Tuple[Blind, ...]:
    return _orderable_blinds(state, catalog, screens=True)


def blind_tray_for(state: SelectionState, catalog: Catalog) -> Optional[Accessory]:
    """The curb tray a blind needs on a flat roof, when one is sold for this size."""
    product = catalog.product(state.selected_product_id)
    if product is None or not state.size_code:
        return None
    for a in catalog.accessories:
        if a.kind != AccessoryKind.BLIND_TRAY or product.model not in a.compatible_models:
            continue
        if a.prices.get(state.size_code, 0) > 0:
            return a
    return None


def eligible_extensions(product: Optional[Product], catalog: Catalog) -> Tuple[Accessory, ...]:
    if product is None or product.category != ProductCategory.SUN_TUNNEL:
        return ()
    code = tunnel_fixed_code(product)
    return tuple(
        a
        for a in catalog.accessories
        if a.kind == AccessoryKind.EXTENSION
        and product.model in a.compatible_models
        and a.prices.get(code, 0) > 0
    )


def tunnel_fixed_code(product: Product) -> str:
    return product.compatible_sizes[0]


def _category_gate(state: SelectionState, catalog: Catalog) -> Tuple[Product, ...]:
    category = state.product_category
    if category is None:
        return catalog.products
    if category == ProductCategory.ROOF_WINDOW:
        windows = tuple(p for p in catalog.products if p.category == ProductCategory.ROOF_WINDOW)
        chosen = tuple(p for p in windows if p.id == state.selected_product_id)
        return chosen or windows
    return tuple(p for p in catalog.products if p.category == category)


def _roof_compatible(product: Product, roof: Optional[DerivedRoofType]) -> bool:
    if roof is None:
        return True
    if roof == DerivedRoofType.FLAT:
        return RoofType.FLAT in product.roof_types
    return RoofType.PITCHED in product.roof_types


def _orderable_blinds(state: SelectionState, catalog: Catalog, *, screens: bool) -> Tuple[Blind, ...]:
    product = catalog.product(state.selected_product_id)
    if product is None or not state.size_code:
        return ()
    out: List[Blind] = []
    for b in catalog.blinds:
        if (b.kind == BlindKind.ACCESSORY) != screens:
            continue
        if product.model not in b.compatible_models:
            continue
        # Zero or missing price means not orderable for this size.
        if b.prices.get(state.size_code, 0) <= 0:
            continue
        out.append(b)
    return tuple(out)


def _value(member: object) -> Optional[str]:
    return getattr(member, "value", None)
