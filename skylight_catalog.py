from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple


class SizeUniverse(str, Enum):
    PITCHED = "pitched"
    FLAT = "flat"
    ROOF_WINDOW = "roof-window"
    SUN_TUNNEL = "sun-tunnel"


class RoofType(str, Enum):
    PITCHED = "pitched"
    FLAT = "flat"


class OpeningType(str, Enum):
    FIXED = "fixed"
    MANUAL = "manual"
    ELECTRIC = "electric"
    SOLAR = "solar"


class ProductCategory(str, Enum):
    SKYLIGHT = "skylight"
    ROOF_WINDOW = "roof-window"
    SUN_TUNNEL = "sun-tunnel"


class BlindKind(str, Enum):
    DARKENING = "darkening"
    TRANSLUCENT = "translucent"
    ACCESSORY = "accessory"


class AccessoryKind(str, Enum):
    BLIND_TRAY = "blind-tray"
    EXTENSION = "extension"


class CatalogError(ValueError):
    pass


@dataclass(frozen=True)
class SizeCode:
    code: str
    width_mm: int
    height_mm: int
    label: str


@dataclass(frozen=True)
class Product:
    id: str
    model: str
    name: str
    category: ProductCategory
    roof_types: FrozenSet[RoofType]
    opening_type: OpeningType
    compatible_sizes: Tuple[str, ...]
    # key: size code -> RRP in whole dollars
    prices: Mapping[str, int]


@dataclass(frozen=True)
class Flashing:
    id: str
    name: str
    prices: Mapping[str, int]


@dataclass(frozen=True)
class Blind:
    id: str
    model: str
    name: str
    kind: BlindKind
    compatible_models: FrozenSet[str]
    prices: Mapping[str, int]
    subtitle: str = ""


@dataclass(frozen=True)
class Accessory:
    id: str
    name: str
    kind: AccessoryKind
    compatible_models: FrozenSet[str]
    prices: Mapping[str, int]


@dataclass(frozen=True)
class Catalog:
    revision: str
    # key: universe -> sizes in display order
    sizes: Mapping[SizeUniverse, Tuple[SizeCode, ...]]
    products: Tuple[Product, ...]
    flashing: Flashing
    blinds: Tuple[Blind, ...]
    accessories: Tuple[Accessory, ...]
    # key: tunnel role ("rigid" / "flexible" / "universal") -> product id
    tunnel_skus: Mapping[str, str] = field(default_factory=dict)

    def product(self, product_id: Optional[str]) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def blind(self, blind_id: Optional[str]) -> Optional[Blind]:
        for b in self.blinds:
            if b.id == blind_id:
                return b
        return None

    def accessory(self, accessory_id: Optional[str]) -> Optional[Accessory]:
        for a in self.accessories:
            if a.id == accessory_id:
                return a
        return None

    def sizes_in(self, universe: SizeUniverse) -> Tuple[SizeCode, ...]:
        return tuple(self.sizes.get(universe, ()))

    def size(self, code: Optional[str]) -> Optional[SizeCode]:
        for universe_sizes in self.sizes.values():
            for s in universe_sizes:
                if s.code == code:
                    return s
        return None

    def universe_for(self, code: str) -> Optional[SizeUniverse]:
        for universe, universe_sizes in self.sizes.items():
            if any(s.code == code for s in universe_sizes):
                return universe
        return None

    def tunnel_product(self, role: str) -> Optional[Product]:
        return self.product(self.tunnel_skus.get(role))


TUNNEL_ROLES = ("rigid", "flexible", "universal")


def build_catalog(
    *,
    revision: str,
    sizes: Mapping[SizeUniverse, Iterable[SizeCode]],
    products: Iterable[Product],
    flashing: Flashing,
    blinds: Iterable[Blind],
    accessories: Iterable[Accessory],
    tunnel_skus: Mapping[str, str],
) -> Catalog:
    """
    Assemble a Catalog and check its invariants once.

    Lookups in the domain filter and price composer rely on these checks and never
    re-validate, so anything that gets past here is treated as trusted data.
    """
    catalog = Catalog(
        revision=revision,
        sizes={u: tuple(v) for u, v in sizes.items()},
        products=tuple(products),
        flashing=flashing,
        blinds=tuple(blinds),
        accessories=tuple(accessories),
        tunnel_skus=dict(tunnel_skus),
    )
    validate_catalog(catalog)
    return catalog


def validate_catalog(catalog: Catalog) -> None:
    if not catalog.revision.strip():
        raise CatalogError("catalog revision must not be empty")

    seen_codes: Dict[str, SizeUniverse] = {}
    for universe, universe_sizes in catalog.sizes.items():
        for s in universe_sizes:
            other = seen_codes.get(s.code)
            if other is not None:
                raise CatalogError(f"size code {s.code!r} appears in both {other.value} and {universe.value}")
            if s.width_mm <= 0 or s.height_mm <= 0:
                raise CatalogError(f"size code {s.code!r} must have positive dimensions")
            seen_codes[s.code] = universe

    _check_unique_ids("product", [p.id for p in catalog.products])
    _check_unique_ids("blind", [b.id for b in catalog.blinds])
    _check_unique_ids("accessory", [a.id for a in catalog.accessories])

    models = {p.model for p in catalog.products}
    for p in catalog.products:
        compatible = set(p.compatible_sizes)
        priced = set(p.prices.keys())
        if compatible != priced:
            unpriced = sorted(compatible - priced)
            orphan = sorted(priced - compatible)
            raise CatalogError(
                f"product {p.id!r} prices do not match compatible sizes "
                f"(unpriced={unpriced}, orphan prices={orphan})"
            )
        if not p.roof_types:
            raise CatalogError(f"product {p.id!r} has no roof type")
        _check_known_codes(f"product {p.id!r}", compatible, seen_codes)

    _check_known_codes(f"flashing {catalog.flashing.id!r}", catalog.flashing.prices.keys(), seen_codes)

    for b in catalog.blinds:
        _check_known_codes(f"blind {b.id!r}", b.prices.keys(), seen_codes)
        unknown = sorted(set(b.compatible_models) - models)
        if unknown:
            raise CatalogError(f"blind {b.id!r} names unknown product models {unknown}")

    for a in catalog.accessories:
        _check_known_codes(f"accessory {a.id!r}", a.prices.keys(), seen_codes)
        unknown = sorted(set(a.compatible_models) - models)
        if unknown:
            raise CatalogError(f"accessory {a.id!r} names unknown product models {unknown}")

    for role in TUNNEL_ROLES:
        p = catalog.tunnel_product(role)
        if p is None:
            raise CatalogError(f"tunnel role {role!r} does not reference a catalog product")
        if p.category != ProductCategory.SUN_TUNNEL:
            raise CatalogError(f"tunnel role {role!r} references non-tunnel product {p.id!r}")
        if len(p.compatible_sizes) != 1:
            raise CatalogError(f"tunnel product {p.id!r} must have exactly one fixed size code")
    universal = catalog.tunnel_product("universal")
    if universal is not None and RoofType.FLAT not in universal.roof_types:
        raise CatalogError(f"universal tunnel {universal.id!r} must support flat roofs")


def _check_unique_ids(label: str, ids: list[str]) -> None:
    seen: set[str] = set()
    for i in ids:
        if not i:
            raise CatalogError(f"{label} id must not be empty")
        if i in seen:
            raise CatalogError(f"duplicate {label} id {i!r}")
        seen.add(i)


def _check_known_codes(owner: str, codes: Iterable[str], known: Mapping[str, SizeUniverse]) -> None:
    unknown = sorted(c for c in codes if c not in known)
    if unknown:
        raise CatalogError(f"{owner} references unknown size codes {unknown}")
