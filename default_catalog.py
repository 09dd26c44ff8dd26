from __future__ import annotations

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

PITCHED = frozenset({RoofType.PITCHED})
FLAT = frozenset({RoofType.FLAT})


def _size(code: str, width_mm: int, height_mm: int) -> SizeCode:
    return SizeCode(code=code, width_mm=width_mm, height_mm=height_mm, label=f"{width_mm} x {height_mm}")


PITCHED_SIZES = (
    _size("C01", 550, 700),
    _size("C04", 550, 980),
    _size("C06", 550, 1180),
    _size("C08", 550, 1400),
    _size("C12", 550, 1800),
    _size("M02", 780, 780),
    _size("M04", 780, 980),
    _size("M06", 780, 1180),
    _size("M08", 780, 1400),
    _size("S01", 1140, 700),
    _size("S06", 1140, 1180),
)

# Overall curb dimensions.
FLAT_SIZES = (
    _size("1430", 460, 870),
    _size("2222", 665, 665),
    _size("2230", 665, 870),
    _size("2234", 665, 970),
    _size("2246", 665, 1275),
    _size("2270", 665, 1885),
    _size("3030", 870, 870),
    _size("3046", 870, 1275),
    _size("3055", 870, 1505),
    _size("3072", 870, 1935),
    _size("3434", 970, 970),
    _size("3446", 970, 1275),
    _size("4622", 1275, 665),
    _size("4646", 1275, 1275),
    _size("4672", 1275, 1935),
)

ROOF_WINDOW_SIZES = (
    _size("CK02", 550, 780),
    _size("CK04", 550, 980),
    _size("MK04", 780, 980),
    _size("MK06", 780, 1180),
    _size("MK08", 780, 1400),
    _size("SK06", 1140, 1180),
)

# Round diffusers, listed by bounding square; tunnels have a single fixed code each.
SUN_TUNNEL_SIZES = (
    SizeCode(code="0K14", width_mm=350, height_mm=350, label="350 x 350"),
    SizeCode(code="014", width_mm=350, height_mm=350, label="350 x 350"),
)


def _product(
    id: str,
    model: str,
    name: str,
    category: ProductCategory,
    roof_types: frozenset,
    opening_type: OpeningType,
    prices: dict[str, int],
) -> Product:
    return Product(
        id=id,
        model=model,
        name=name,
        category=category,
        roof_types=roof_types,
        opening_type=opening_type,
        compatible_sizes=tuple(prices.keys()),
        prices=prices,
    )


PRODUCTS = (
    _product(
        "fs", "FS", "Fixed Skylight (FS)", ProductCategory.SKYLIGHT, PITCHED, OpeningType.FIXED,
        {
            "C01": 532, "C04": 614, "C06": 705, "C08": 788, "C12": 1114,
            "M02": 725, "M04": 765, "M06": 866, "M08": 969,
            "S01": 843, "S06": 1006,
        },
    ),
    _product(
        "vs", "VS", "Manual Opening Skylight (VS)", ProductCategory.SKYLIGHT, PITCHED, OpeningType.MANUAL,
        {
            "C01": 1228, "C04": 1248, "C06": 1334, "C08": 1402,
            "M02": 1402, "M04": 1463, "M06": 1597, "M08": 1731,
            "S01": 1540, "S06": 1941,
        },
    ),
    _product(
        "vse", "VSE", "Electric Opening Skylight (VSE)", ProductCategory.SKYLIGHT, PITCHED, OpeningType.ELECTRIC,
        {
            "C01": 2311, "C04": 2339, "C06": 2402, "C08": 2461,
            "M04": 2509, "M06": 2618, "M08": 2727,
            "S01": 2595, "S06": 2894,
        },
    ),
    _product(
        "vss", "VSS", "Solar Opening Skylight (VSS)", ProductCategory.SKYLIGHT, PITCHED, OpeningType.SOLAR,
        {
            "C01": 2492, "C04": 2522, "C06": 2590, "C08": 2653,
            "M02": 2643, "M04": 2705, "M06": 2822, "M08": 2941,
            "S01": 2798, "S06": 3120,
        },
    ),
    _product(
        "ggl", "GGL", "Centre Pivot Roof Window (GGL)", ProductCategory.ROOF_WINDOW, PITCHED, OpeningType.MANUAL,
        {"CK02": 814, "CK04": 863, "MK04": 1010, "MK08": 1234, "SK06": 1528},
    ),
    _product(
        "gpl", "GPL", "Dual Action Roof Window (GPL)", ProductCategory.ROOF_WINDOW, PITCHED, OpeningType.MANUAL,
        {"CK04": 969, "MK04": 1114, "MK06": 1221, "MK08": 1381, "SK06": 1608},
    ),
    # FCM has no 4622 in the price list.
    _product(
        "fcm", "FCM", "Flat Roof Fixed (FCM)", ProductCategory.SKYLIGHT, FLAT, OpeningType.FIXED,
        {
            "1430": 351, "2222": 381, "2230": 414, "2234": 438, "2246": 497, "2270": 896,
            "3030": 481, "3046": 611, "3055": 745, "3072": 1889,
            "3434": 547, "3446": 645, "4646": 677, "4672": 2102,
        },
    ),
    _product(
        "vcm", "VCM", "Flat Roof Manual (VCM)", ProductCategory.SKYLIGHT, FLAT, OpeningType.MANUAL,
        {"2222": 1296, "2234": 1400, "2246": 1547, "3030": 1621, "3046": 1760, "3434": 1694, "4646": 2064},
    ),
    _product(
        "vcs", "VCS", "Flat Roof Solar (VCS)", ProductCategory.SKYLIGHT, FLAT, OpeningType.SOLAR,
        {
            "2222": 2510, "2234": 2654, "2246": 2828, "3030": 2837, "3046": 2976,
            "3434": 2899, "4622": 2846, "4646": 3119,
        },
    ),
    _product(
        "twr", "TWR", "Rigid Sun Tunnel (TWR)", ProductCategory.SUN_TUNNEL, PITCHED, OpeningType.FIXED,
        {"0K14": 747},
    ),
    _product(
        "twf", "TWF", "Flexible Sun Tunnel (TWF)", ProductCategory.SUN_TUNNEL, PITCHED, OpeningType.FIXED,
        {"0K14": 461},
    ),
    _product(
        "tcr", "TCR", "Sun Tunnel (TCR)", ProductCategory.SUN_TUNNEL, frozenset({RoofType.FLAT, RoofType.PITCHED}),
        OpeningType.FIXED,
        {"014": 795},
    ),
)

EDW_FLASHING = Flashing(
    id="edw",
    name="EDW Flashing (Tile/Corrugated)",
    prices={
        "C01": 109, "C04": 114, "C06": 115, "C08": 122, "C12": 152,
        "M02": 131, "M04": 131, "M06": 135, "M08": 138,
        "S01": 139, "S06": 162,
        "CK02": 109, "CK04": 126, "MK04": 145, "MK06": 149, "MK08": 152, "SK06": 170,
    },
)

_SKYLIGHT_BLIND_PRICES = {
    "C01": 614, "C04": 614, "C06": 614, "C08": 614,
    "M02": 628, "M04": 628, "M06": 628, "M08": 628,
    "S01": 641, "S06": 641,
}

BLINDS = (
    Blind(
        id="fscd", model="FSCD", name="Solar Honeycomb", subtitle="(Darkening)", kind=BlindKind.DARKENING,
        compatible_models=frozenset({"FS"}),
        prices={**_SKYLIGHT_BLIND_PRICES, "C12": 768},
    ),
    # C12 is listed at 0: not orderable for that size.
    Blind(
        id="fsld", model="FSLD", name="Solar Translucent", subtitle="(Light Filtering)", kind=BlindKind.TRANSLUCENT,
        compatible_models=frozenset({"FS"}),
        prices={**_SKYLIGHT_BLIND_PRICES, "C12": 0},
    ),
    Blind(
        id="fsch", model="FSCH", name="Solar Honeycomb", subtitle="(Darkening)", kind=BlindKind.DARKENING,
        compatible_models=frozenset({"VS", "VSE", "VSS"}),
        prices=dict(_SKYLIGHT_BLIND_PRICES),
    ),
    Blind(
        id="fslh", model="FSLH", name="Solar Translucent", subtitle="(Light Filtering)", kind=BlindKind.TRANSLUCENT,
        compatible_models=frozenset({"VS", "VSE", "VSS"}),
        prices=dict(_SKYLIGHT_BLIND_PRICES),
    ),
    Blind(
        id="fhc", model="FHC", name="Manual Honeycomb Blackout", subtitle="(Room Darkening)", kind=BlindKind.DARKENING,
        compatible_models=frozenset({"GGL", "GPL"}),
        prices={"CK02": 247, "CK04": 265, "MK04": 273, "MK06": 292, "MK08": 318, "SK06": 342},
    ),
    Blind(
        id="zil", model="ZIL", name="Insect Screen", kind=BlindKind.ACCESSORY,
        compatible_models=frozenset({"GGL", "GPL"}),
        prices={"CK02": 339, "CK04": 339, "MK04": 419, "MK06": 419, "MK08": 419, "SK06": 465},
    ),
    Blind(
        id="fscc", model="FSCC", name="Solar Honeycomb", subtitle="(Darkening)", kind=BlindKind.DARKENING,
        compatible_models=frozenset({"FCM", "VCM", "VCS"}),
        prices={
            "1430": 615, "2222": 615, "2230": 615, "2234": 615, "2246": 615, "2270": 706,
            "3030": 620, "3046": 627, "3055": 640, "3072": 706,
            "3434": 660, "3446": 660, "4646": 680, "4672": 706,
        },
    ),
)

ACCESSORIES = (
    # No tray for 1430, 3055, 3072 or 4672.
    Accessory(
        id="zzz199", name="ZZZ 199 Blind Tray", kind=AccessoryKind.BLIND_TRAY,
        compatible_models=frozenset({"FCM", "VCM", "VCS"}),
        prices={
            "2222": 95, "2230": 95, "2234": 95, "2246": 95, "2270": 122,
            "3030": 98, "3046": 98, "3434": 101, "3446": 101, "4622": 105, "4646": 105,
        },
    ),
    Accessory(
        id="ztr0k14", name="ZTR 0K14 Rigid 1240mm Extension", kind=AccessoryKind.EXTENSION,
        compatible_models=frozenset({"TWR", "TCR"}),
        prices={"0K14": 297, "014": 297},
    ),
)


def load_default_catalog() -> Catalog:
    """
    Hardcoded RRP catalog for the selector.

    Small enough to keep in source; swap in a JSON catalog via `catalog_loader.load_catalog`
    when the price list changes.
    """
    return build_catalog(
        revision="RRP price list (built-in)",
        sizes={
            SizeUniverse.PITCHED: PITCHED_SIZES,
            SizeUniverse.FLAT: FLAT_SIZES,
            SizeUniverse.ROOF_WINDOW: ROOF_WINDOW_SIZES,
            SizeUniverse.SUN_TUNNEL: SUN_TUNNEL_SIZES,
        },
        products=PRODUCTS,
        flashing=EDW_FLASHING,
        blinds=BLINDS,
        accessories=ACCESSORIES,
        tunnel_skus={"rigid": "twr", "flexible": "twf", "universal": "tcr"},
    )
