from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from skylight_catalog import (
    Accessory,
    AccessoryKind,
    Blind,
    BlindKind,
    Catalog,
    Flashing,
    OpeningType,
    Product,
    ProductCategory,
    RoofType,
    SizeCode,
    SizeUniverse,
    build_catalog,
)

logger = logging.getLogger(__name__)


def load_catalog(path: Path) -> Catalog:
    """
    Load a catalog from a JSON document.

    Rows that are not well-formed are skipped (and logged) rather than aborting the load;
    the assembled catalog still goes through `build_catalog`, so a document that skips a
    row another row depends on fails there with a CatalogError.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected JSON object in {path}")

    revision = data.get("revision")
    if not isinstance(revision, str) or not revision.strip():
        raise ValueError(f"Missing/invalid 'revision' in {path}")

    sizes: Dict[SizeUniverse, List[SizeCode]] = {}
    raw_sizes = data.get("sizes", {})
    if isinstance(raw_sizes, dict):
        for universe_key, rows in raw_sizes.items():
            try:
                universe = SizeUniverse(str(universe_key))
            except ValueError:
                logger.warning("Skipping unknown size universe %r in %s", universe_key, path)
                continue
            if not isinstance(rows, list):
                continue
            out: List[SizeCode] = []
            for row in rows:
                size = _parse_size(row)
                if size is None:
                    logger.warning("Skipping malformed size row %r in %s", row, path)
                    continue
                out.append(size)
            sizes[universe] = out

    products: List[Product] = []
    for row in _rows(data.get("products")):
        product = _parse_product(row)
        if product is None:
            logger.warning("Skipping malformed product row %r in %s", row.get("id"), path)
            continue
        products.append(product)

    raw_flashing = data.get("flashing")
    if not isinstance(raw_flashing, dict):
        raise ValueError(f"Missing/invalid 'flashing' in {path}")
    flashing = Flashing(
        id=str(raw_flashing.get("id") or "flashing").strip(),
        name=str(raw_flashing.get("name") or "Flashing").strip(),
        prices=_parse_prices(raw_flashing.get("prices")),
    )

    blinds: List[Blind] = []
    for row in _rows(data.get("blinds")):
        blind = _parse_blind(row)
        if blind is None:
            logger.warning("Skipping malformed blind row %r in %s", row.get("id"), path)
            continue
        blinds.append(blind)

    accessories: List[Accessory] = []
    for row in _rows(data.get("accessories")):
        accessory = _parse_accessory(row)
        if accessory is None:
            logger.warning("Skipping malformed accessory row %r in %s", row.get("id"), path)
            continue
        accessories.append(accessory)

    tunnel_skus: Dict[str, str] = {}
    raw_tunnels = data.get("tunnel_skus", {})
    if isinstance(raw_tunnels, dict):
        for role, product_id in raw_tunnels.items():
            if isinstance(role, str) and isinstance(product_id, str) and product_id.strip():
                tunnel_skus[role.strip()] = product_id.strip()

    return build_catalog(
        revision=revision.strip(),
        sizes=sizes,
        products=products,
        flashing=flashing,
        blinds=blinds,
        accessories=accessories,
        tunnel_skus=tunnel_skus,
    )


def _rows(raw: object) -> List[Mapping[str, object]]:
    if not isinstance(raw, list):
        return []
    return [r for r in raw if isinstance(r, dict)]


def _str_field(row: Mapping[str, object], key: str) -> Optional[str]:
    val = row.get(key)
    if not isinstance(val, str) or not val.strip():
        return None
    return val.strip()


def _parse_size(row: object) -> Optional[SizeCode]:
    if not isinstance(row, dict):
        return None
    code = _str_field(row, "code")
    width = row.get("width")
    height = row.get("height")
    if code is None or not isinstance(width, int) or not isinstance(height, int):
        return None
    label = _str_field(row, "label") or f"{width} x {height}"
    return SizeCode(code=code, width_mm=width, height_mm=height, label=label)


def _parse_prices(raw: object) -> Dict[str, int]:
    prices: Dict[str, int] = {}
    if not isinstance(raw, dict):
        return prices
    for code, val in raw.items():
        if isinstance(code, str) and code.strip() and isinstance(val, int) and not isinstance(val, bool):
            prices[code.strip()] = val
    return prices


def _parse_models(raw: object) -> frozenset:
    if not isinstance(raw, list):
        return frozenset()
    return frozenset(m.strip() for m in raw if isinstance(m, str) and m.strip())


def _parse_product(row: Mapping[str, object]) -> Optional[Product]:
    product_id = _str_field(row, "id")
    model = _str_field(row, "model")
    if product_id is None or model is None:
        return None
    try:
        category = ProductCategory(str(row.get("category")))
        opening_type = OpeningType(str(row.get("openingType")))
    except ValueError:
        return None
    roof_types_raw = row.get("roofType")
    if not isinstance(roof_types_raw, list):
        return None
    try:
        roof_types = frozenset(RoofType(str(r)) for r in roof_types_raw)
    except ValueError:
        return None
    prices = _parse_prices(row.get("prices"))
    compatible_raw = row.get("compatibleSizes")
    if isinstance(compatible_raw, list):
        compatible = tuple(c.strip() for c in compatible_raw if isinstance(c, str) and c.strip())
    else:
        compatible = tuple(prices.keys())
    return Product(
        id=product_id,
        model=model,
        name=_str_field(row, "name") or model,
        category=category,
        roof_types=roof_types,
        opening_type=opening_type,
        compatible_sizes=compatible,
        prices=prices,
    )


def _parse_blind(row: Mapping[str, object]) -> Optional[Blind]:
    blind_id = _str_field(row, "id")
    model = _str_field(row, "model")
    if blind_id is None or model is None:
        return None
    try:
        kind = BlindKind(str(row.get("type")))
    except ValueError:
        return None
    return Blind(
        id=blind_id,
        model=model,
        name=_str_field(row, "name") or model,
        subtitle=_str_field(row, "subtitle") or "",
        kind=kind,
        compatible_models=_parse_models(row.get("compatibleModels")),
        prices=_parse_prices(row.get("prices")),
    )


def _parse_accessory(row: Mapping[str, object]) -> Optional[Accessory]:
    accessory_id = _str_field(row, "id")
    if accessory_id is None:
        return None
    try:
        kind = AccessoryKind(str(row.get("kind")))
    except ValueError:
        return None
    return Accessory(
        id=accessory_id,
        name=_str_field(row, "name") or accessory_id,
        kind=kind,
        compatible_models=_parse_models(row.get("compatibleModels")),
        prices=_parse_prices(row.get("prices")),
    )
