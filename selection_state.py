from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from skylight_catalog import OpeningType, ProductCategory


class StepId(str, Enum):
    PRODUCT_TYPE = "product-type"
    PITCH = "pitch"
    MATERIAL = "material"
    SUN_TUNNEL_TYPE = "sun-tunnel-type"
    ROOF_WINDOW_MODEL = "roof-window-model"
    OPENING = "opening"
    TRUSS = "truss"
    SIZE = "size"
    RESULTS = "results"
    BLINDS = "blinds"
    ADDON = "addon"
    SUMMARY = "summary"


class RoofPitch(str, Enum):
    PITCHED = "pitched"
    FLAT = "flat"


class RoofMaterial(str, Enum):
    TILED_CORRUGATED = "tiled-corrugated"
    WIDE_METAL = "wide-metal"


class DerivedRoofType(str, Enum):
    FLAT = "flat"
    TILED = "tiled"
    WIDE_METAL = "wide-metal"


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class TrussSpacing(str, Enum):
    MM_600 = "600"
    MM_900 = "900"
    MM_1200 = "1200"
    UNSPECIFIED = "unspecified"


class TunnelType(str, Enum):
    RIGID = "rigid"
    FLEXIBLE = "flexible"


INITIAL_STEP = StepId.PRODUCT_TYPE


@dataclass(frozen=True)
class SelectionState:
    product_category: Optional[ProductCategory] = None
    roof_pitch: Optional[RoofPitch] = None
    roof_material: Optional[RoofMaterial] = None
    opening_type: Optional[OpeningType] = None
    orientation: Orientation = Orientation.PORTRAIT
    structural_spacing: Optional[TrussSpacing] = None
    size_code: Optional[str] = None
    selected_product_id: Optional[str] = None
    selected_blind_id: Optional[str] = None
    insect_screen_requested: bool = False
    selected_addon_id: Optional[str] = None
    # Steps visited before the current one, oldest first.
    history: Tuple[StepId, ...] = ()

    @property
    def derived_roof_type(self) -> Optional[DerivedRoofType]:
        """
        Roof type used for compatibility filtering; never set directly.

        flat pitch => flat; pitched + tiled/corrugated => tiled; pitched + wide-span metal => wide-metal.
        A pitched roof without a material yet has no derived type.
        """
        if self.roof_pitch == RoofPitch.FLAT:
            return DerivedRoofType.FLAT
        if self.roof_pitch == RoofPitch.PITCHED:
            if self.roof_material == RoofMaterial.TILED_CORRUGATED:
                return DerivedRoofType.TILED
            if self.roof_material == RoofMaterial.WIDE_METAL:
                return DerivedRoofType.WIDE_METAL
        return None

    @property
    def is_flat_roof(self) -> bool:
        return self.roof_pitch == RoofPitch.FLAT

    @property
    def spacing_specified(self) -> bool:
        return self.structural_spacing is not None and self.structural_spacing != TrussSpacing.UNSPECIFIED


def empty_state() -> SelectionState:
    return SelectionState()
