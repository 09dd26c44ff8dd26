from __future__ import annotations

import unittest

from default_catalog import load_default_catalog
from domain_filter import (
    LANDSCAPE_EXCLUDED_CODES,
    blind_tray_for,
    eligible_blinds,
    eligible_extensions,
    eligible_opening_types,
    eligible_products,
    eligible_screens,
    eligible_size_codes,
    restrict_by_orientation,
    restrict_by_spacing,
    results_candidates,
    size_universe_for,
)
from selection_state import Orientation, RoofMaterial, RoofPitch, SelectionState, TrussSpacing
from skylight_catalog import OpeningType, ProductCategory, SizeUniverse

CATALOG = load_default_catalog()


def _pitched_skylight(**kw) -> SelectionState:
    base = dict(
        product_category=ProductCategory.SKYLIGHT,
        roof_pitch=RoofPitch.PITCHED,
        roof_material=RoofMaterial.TILED_CORRUGATED,
    )
    base.update(kw)
    return SelectionState(**base)


def _flat_skylight(**kw) -> SelectionState:
    base = dict(product_category=ProductCategory.SKYLIGHT, roof_pitch=RoofPitch.FLAT)
    base.update(kw)
    return SelectionState(**base)


def _codes(state: SelectionState) -> list[str]:
    return [s.code for s in eligible_size_codes(state, CATALOG)]


class TestEligibleProducts(unittest.TestCase):
    def test_category_and_roof_filter(self) -> None:
        ids = [p.id for p in eligible_products(_flat_skylight(), CATALOG)]
        self.assertEqual(ids, ["fcm", "vcm", "vcs"])

    def test_opening_type_filter(self) -> None:
        ids = [p.id for p in eligible_products(_pitched_skylight(opening_type=OpeningType.ELECTRIC), CATALOG)]
        self.assertEqual(ids, ["vse"])

    def test_unset_fields_do_not_filter(self) -> None:
        self.assertEqual(len(eligible_products(SelectionState(), CATALOG)), len(CATALOG.products))

    def test_roof_window_collapses_to_chosen_model(self) -> None:
        state = SelectionState(product_category=ProductCategory.ROOF_WINDOW, roof_pitch=RoofPitch.PITCHED)
        self.assertEqual([p.id for p in eligible_products(state, CATALOG)], ["ggl", "gpl"])
        chosen = SelectionState(
            product_category=ProductCategory.ROOF_WINDOW, roof_pitch=RoofPitch.PITCHED, selected_product_id="gpl"
        )
        self.assertEqual([p.id for p in eligible_products(chosen, CATALOG)], ["gpl"])

    def test_flat_opening_types(self) -> None:
        opts = eligible_opening_types(_flat_skylight(), CATALOG)
        self.assertEqual(opts, (OpeningType.FIXED, OpeningType.MANUAL, OpeningType.SOLAR))


class TestEligibleSizeCodes(unittest.TestCase):
    def test_pitched_manual_600_gives_c_series_without_c12(self) -> None:
        state = _pitched_skylight(opening_type=OpeningType.MANUAL, structural_spacing=TrussSpacing.MM_600)
        self.assertEqual(_codes(state), ["C01", "C04", "C06", "C08"])

    def test_flat_fixed_1200_gives_46_series_of_fcm(self) -> None:
        state = _flat_skylight(opening_type=OpeningType.FIXED, structural_spacing=TrussSpacing.MM_1200)
        # FCM has no 4622.
        self.assertEqual(_codes(state), ["4646", "4672"])

    def test_flat_600_includes_1430_exception(self) -> None:
        state = _flat_skylight(opening_type=OpeningType.FIXED, structural_spacing=TrussSpacing.MM_600)
        self.assertEqual(_codes(state), ["1430", "2222", "2230", "2234", "2246", "2270"])

    def test_landscape_drops_excluded_codes_only(self) -> None:
        portrait = _flat_skylight(opening_type=OpeningType.FIXED, structural_spacing=TrussSpacing.MM_900)
        landscape = _flat_skylight(
            opening_type=OpeningType.FIXED,
            structural_spacing=TrussSpacing.MM_900,
            orientation=Orientation.LANDSCAPE,
        )
        self.assertIn("3072", _codes(portrait))
        removed = set(_codes(portrait)) - set(_codes(landscape))
        self.assertEqual(removed, {"3072"})

    def test_unspecified_spacing_keeps_everything(self) -> None:
        state = _pitched_skylight(opening_type=OpeningType.FIXED, structural_spacing=TrussSpacing.UNSPECIFIED)
        self.assertEqual(len(_codes(state)), len(CATALOG.product("fs").compatible_sizes))

    def test_roof_window_series(self) -> None:
        state = SelectionState(
            product_category=ProductCategory.ROOF_WINDOW,
            roof_pitch=RoofPitch.PITCHED,
            roof_material=RoofMaterial.TILED_CORRUGATED,
            selected_product_id="ggl",
            structural_spacing=TrussSpacing.MM_900,
        )
        self.assertEqual(_codes(state), ["MK04", "MK08"])
        self.assertEqual(size_universe_for(state), SizeUniverse.ROOF_WINDOW)

    def test_sizes_always_within_universe(self) -> None:
        states = [
            _pitched_skylight(structural_spacing=s) for s in TrussSpacing
        ] + [
            _flat_skylight(structural_spacing=s, orientation=o) for s in TrussSpacing for o in Orientation
        ]
        for state in states:
            universe = {s.code for s in CATALOG.sizes_in(size_universe_for(state))}
            self.assertTrue(set(_codes(state)) <= universe, state)

    def test_electric_flat_has_no_sizes(self) -> None:
        state = _flat_skylight(opening_type=OpeningType.ELECTRIC, structural_spacing=TrussSpacing.MM_600)
        self.assertEqual(_codes(state), [])


class TestRestrictions(unittest.TestCase):
    def test_spacing_filter_is_idempotent(self) -> None:
        all_codes = [s.code for u in SizeUniverse for s in CATALOG.sizes_in(u)]
        for flat in (True, False):
            for spacing in TrussSpacing:
                once = restrict_by_spacing(all_codes, spacing, flat=flat)
                self.assertEqual(restrict_by_spacing(once, spacing, flat=flat), once)
                self.assertTrue(once <= set(all_codes))

    def test_orientation_only_removes_denylisted_codes(self) -> None:
        all_codes = {s.code for u in SizeUniverse for s in CATALOG.sizes_in(u)}
        removed = all_codes - restrict_by_orientation(all_codes, Orientation.LANDSCAPE)
        self.assertTrue(removed <= LANDSCAPE_EXCLUDED_CODES)
        self.assertEqual(restrict_by_orientation(all_codes, Orientation.PORTRAIT), all_codes)


class TestResultsAndAddOns(unittest.TestCase):
    def test_results_pairs_when_size_unknown(self) -> None:
        state = _flat_skylight(opening_type=OpeningType.MANUAL, structural_spacing=TrussSpacing.UNSPECIFIED)
        pairs = [(p.id, code) for p, code in results_candidates(state, CATALOG)]
        self.assertEqual([c for _, c in pairs], list(CATALOG.product("vcm").compatible_sizes))
        self.assertTrue(all(pid == "vcm" for pid, _ in pairs))

    def test_results_with_size_lists_products_offering_it(self) -> None:
        state = _pitched_skylight(structural_spacing=TrussSpacing.MM_900, size_code="M02")
        ids = [p.id for p, _ in results_candidates(state, CATALOG)]
        # VSE has no M02.
        self.assertEqual(ids, ["fs", "vs", "vss"])

    def test_zero_priced_blind_is_not_orderable(self) -> None:
        state = _pitched_skylight(selected_product_id="fs", size_code="C12")
        self.assertEqual([b.id for b in eligible_blinds(state, CATALOG)], ["fscd"])
        state = _pitched_skylight(selected_product_id="fs", size_code="C04")
        self.assertEqual([b.id for b in eligible_blinds(state, CATALOG)], ["fscd", "fsld"])

    def test_screens_only_for_roof_windows(self) -> None:
        window = SelectionState(
            product_category=ProductCategory.ROOF_WINDOW, selected_product_id="ggl", size_code="MK04"
        )
        self.assertEqual([s.id for s in eligible_screens(window, CATALOG)], ["zil"])
        self.assertEqual(eligible_screens(_pitched_skylight(selected_product_id="vs", size_code="C04"), CATALOG), ())

    def test_blind_tray_depends_on_size(self) -> None:
        self.assertEqual(blind_tray_for(_flat_skylight(selected_product_id="fcm", size_code="2222"), CATALOG).id, "zzz199")
        self.assertIsNone(blind_tray_for(_flat_skylight(selected_product_id="fcm", size_code="1430"), CATALOG))

    def test_extensions_for_rigid_and_universal_tunnels(self) -> None:
        self.assertEqual([a.id for a in eligible_extensions(CATALOG.product("twr"), CATALOG)], ["ztr0k14"])
        self.assertEqual([a.id for a in eligible_extensions(CATALOG.product("tcr"), CATALOG)], ["ztr0k14"])
        self.assertEqual(eligible_extensions(CATALOG.product("twf"), CATALOG), ())
        self.assertEqual(eligible_extensions(CATALOG.product("fs"), CATALOG), ())
        self.assertEqual(eligible_extensions(None, CATALOG), ())


if __name__ == "__main__":
    unittest.main()
