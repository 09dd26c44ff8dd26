from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from domain_filter import (
    eligible_blinds,
    eligible_extensions,
    eligible_opening_types,
    eligible_screens,
    eligible_size_codes,
    results_candidates,
    results_size_fixed,
    tunnel_fixed_code,
)
from selection_state import (
    INITIAL_STEP,
    Orientation,
    RoofMaterial,
    RoofPitch,
    SelectionState,
    StepId,
    TrussSpacing,
    TunnelType,
    empty_state,
)
from skylight_catalog import Catalog, OpeningType, ProductCategory

logger = logging.getLogger(__name__)

CONTINUE = "continue"
NO_BLIND = "none"
PAIR_SEPARATOR = "@"

CATEGORY_LABELS = {
    ProductCategory.SKYLIGHT: "Skylight",
    ProductCategory.ROOF_WINDOW: "Roof Window",
    ProductCategory.SUN_TUNNEL: "Sun Tunnel",
}
PITCH_LABELS = {
    RoofPitch.PITCHED: "Pitched Roof",
    RoofPitch.FLAT: "Flat Roof",
}
MATERIAL_LABELS = {
    RoofMaterial.TILED_CORRUGATED: "Tiled / Corrugated Metal",
    RoofMaterial.WIDE_METAL: "Wide-span Metal (Trimdek / Klip-Lok)",
}
OPENING_LABELS = {
    OpeningType.FIXED: "Fixed (Non-opening)",
    OpeningType.MANUAL: "Manual Opening",
    OpeningType.ELECTRIC: "Electric Opening",
    OpeningType.SOLAR: "Solar Powered",
}
TRUSS_LABELS = {
    TrussSpacing.MM_600: "600mm",
    TrussSpacing.MM_900: "900mm",
    TrussSpacing.MM_1200: "1200mm",
    TrussSpacing.UNSPECIFIED: "Not sure",
}
ORIENTATION_LABELS = {
    Orientation.PORTRAIT: "Portrait",
    Orientation.LANDSCAPE: "Landscape",
}
STEP_TITLES = {
    StepId.PRODUCT_TYPE: "What are you looking for?",
    StepId.PITCH: "Is your roof pitched or flat?",
    StepId.MATERIAL: "What is the roof material?",
    StepId.SUN_TUNNEL_TYPE: "Rigid or flexible tunnel?",
    StepId.ROOF_WINDOW_MODEL: "Which roof window?",
    StepId.OPENING: "How should the skylight open?",
    StepId.TRUSS: "What is your truss/rafter spacing?",
    StepId.SIZE: "Select Size",
    StepId.RESULTS: "Recommended Products",
    StepId.BLINDS: "Do you require blinds?",
    StepId.ADDON: "Do you need an extension?",
    StepId.SUMMARY: "Selection Summary",
}


class InvalidChoiceError(ValueError):
    def __init__(self, step: StepId, choice: str, allowed: Iterable[str]) -> None:
        self.step = step
        self.choice = choice
        self.allowed = tuple(allowed)
        super().__init__(
            f"{choice!r} is not a valid choice for step {step.value!r} (allowed: {', '.join(self.allowed) or 'none'})"
        )


@dataclass(frozen=True)
class Option:
    value: str
    label: str
    # False for toggles that keep the user on the same step.
    advances: bool = True
    selected: bool = False
    amount: Optional[int] = None


@dataclass(frozen=True)
class Transition:
    state: SelectionState
    step: StepId
    # Fields assigned as a side effect of the choice (not the chosen field itself).
    forced: Mapping[str, object] = field(default_factory=dict)


def get_options_for_step(step: StepId, state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    builder = _OPTION_BUILDERS.get(step)
    if builder is None:
        return ()
    return builder(state, catalog)


def is_dead_end(step: StepId, state: SelectionState, catalog: Catalog) -> bool:
    """
    True when the step has nothing to pick that moves the user forward.

    Toggles alone (e.g. orientation on the size step) do not count as a way forward.
    """
    if step == StepId.SUMMARY:
        return False
    options = get_options_for_step(step, state, catalog)
    dead = not any(o.advances for o in options)
    if dead:
        logger.info("No valid configuration at step %s; user must go back", step.value)
    return dead


def apply_choice(step: StepId, state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    """
    Apply one user choice and return the resulting state and step.

    The input state is never modified. A choice not offered by `get_options_for_step`
    raises InvalidChoiceError. When the step changes, the departed step is pushed onto
    the history so `go_back` can return to it.
    """
    allowed = [o.value for o in get_options_for_step(step, state, catalog)]
    if choice not in allowed:
        raise InvalidChoiceError(step, choice, allowed)

    handler = _HANDLERS[step]
    result = handler(state, choice, catalog)
    new_state = result.state
    if result.step != step:
        new_state = replace(new_state, history=state.history + (step,))

    logger.debug(
        "transition %s --%s--> %s forced=%s",
        step.value,
        choice,
        result.step.value,
        dict(result.forced),
    )
    return Transition(state=new_state, step=result.step, forced=dict(result.forced))


def go_back(state: SelectionState) -> Transition:
    """
    Return to the previously visited step.

    Fields set by the forward transition being undone (including forced ones such as a
    tunnel product picked from the pitch step) are kept; the next forward choice
    overwrites them.
    """
    if not state.history:
        return Transition(state=state, step=INITIAL_STEP)
    previous = state.history[-1]
    return Transition(state=replace(state, history=state.history[:-1]), step=previous)


def reset() -> SelectionState:
    return empty_state()


def parse_results_choice(choice: str) -> Tuple[str, Optional[str]]:
    product_id, sep, size_code = choice.partition(PAIR_SEPARATOR)
    return product_id, (size_code if sep else None)


# Option builders


def _product_type_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    return tuple(Option(value=c.value, label=CATEGORY_LABELS[c]) for c in ProductCategory)


def _pitch_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    return tuple(Option(value=p.value, label=PITCH_LABELS[p]) for p in RoofPitch)


def _material_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    return tuple(Option(value=m.value, label=MATERIAL_LABELS[m]) for m in RoofMaterial)


def _sun_tunnel_type_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    out = []
    for t in TunnelType:
        product = catalog.tunnel_product(t.value)
        if product is None:
            continue
        code = tunnel_fixed_code(product)
        out.append(Option(value=t.value, label=product.name, amount=product.prices.get(code)))
    return tuple(out)


def _roof_window_model_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    # All windows, not just the one picked on an earlier pass.
    return tuple(
        Option(value=p.id, label=p.name, selected=p.id == state.selected_product_id)
        for p in catalog.products
        if p.category == ProductCategory.ROOF_WINDOW
    )


def _opening_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    return tuple(Option(value=o.value, label=OPENING_LABELS[o]) for o in eligible_opening_types(state, catalog))


def _truss_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    return tuple(Option(value=t.value, label=TRUSS_LABELS[t]) for t in TrussSpacing)


def _size_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    out = [Option(value=s.code, label=f"{s.code} ({s.label} mm)") for s in eligible_size_codes(state, catalog)]
    if state.is_flat_roof:
        for o in Orientation:
            out.append(
                Option(
                    value=o.value,
                    label=ORIENTATION_LABELS[o],
                    advances=False,
                    selected=state.orientation == o,
                )
            )
    return tuple(out)


def _results_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    out = []
    paired = not results_size_fixed(state)
    for product, code in results_candidates(state, catalog):
        value = f"{product.id}{PAIR_SEPARATOR}{code}" if paired else product.id
        size = catalog.size(code)
        size_txt = f"{code} ({size.label} mm)" if size is not None else code
        out.append(Option(value=value, label=f"{product.name} - {size_txt}", amount=product.prices.get(code)))
    return tuple(out)


def _blinds_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    size = state.size_code or ""
    blinds = eligible_blinds(state, catalog)
    if state.product_category == ProductCategory.ROOF_WINDOW:
        out = [
            Option(
                value=b.id,
                label=f"{b.name} ({b.model})",
                advances=False,
                selected=b.id == state.selected_blind_id,
                amount=b.prices.get(size),
            )
            for b in blinds
        ]
        out.extend(
            Option(
                value=s.id,
                label=f"{s.name} ({s.model})",
                advances=False,
                selected=state.insect_screen_requested,
                amount=s.prices.get(size),
            )
            for s in eligible_screens(state, catalog)
        )
        out.append(Option(value=CONTINUE, label="Continue"))
        return tuple(out)

    out = [Option(value=b.id, label=f"{b.name} ({b.model})", amount=b.prices.get(size)) for b in blinds]
    out.append(Option(value=NO_BLIND, label="No Blinds"))
    return tuple(out)


def _addon_options(state: SelectionState, catalog: Catalog) -> Tuple[Option, ...]:
    product = catalog.product(state.selected_product_id)
    out = []
    for a in eligible_extensions(product, catalog):
        out.append(
            Option(
                value=a.id,
                label=a.name,
                advances=False,
                selected=a.id == state.selected_addon_id,
                amount=a.prices.get(tunnel_fixed_code(product)),
            )
        )
    out.append(Option(value=CONTINUE, label="Continue"))
    return tuple(out)


_OPTION_BUILDERS: Dict[StepId, Callable[[SelectionState, Catalog], Tuple[Option, ...]]] = {
    StepId.PRODUCT_TYPE: _product_type_options,
    StepId.PITCH: _pitch_options,
    StepId.MATERIAL: _material_options,
    StepId.SUN_TUNNEL_TYPE: _sun_tunnel_type_options,
    StepId.ROOF_WINDOW_MODEL: _roof_window_model_options,
    StepId.OPENING: _opening_options,
    StepId.TRUSS: _truss_options,
    StepId.SIZE: _size_options,
    StepId.RESULTS: _results_options,
    StepId.BLINDS: _blinds_options,
    StepId.ADDON: _addon_options,
}


# Transition handlers. Each returns the new state (history untouched) and next step.


def _on_product_type(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    category = ProductCategory(choice)
    fresh = SelectionState(product_category=category, history=state.history)
    if category == ProductCategory.ROOF_WINDOW:
        return Transition(
            state=replace(fresh, roof_pitch=RoofPitch.PITCHED),
            step=StepId.MATERIAL,
            forced={"roof_pitch": RoofPitch.PITCHED},
        )
    return Transition(state=fresh, step=StepId.PITCH)


def _on_pitch(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    pitch = RoofPitch(choice)
    new_state = replace(state, roof_pitch=pitch)
    if state.product_category == ProductCategory.SUN_TUNNEL:
        if pitch == RoofPitch.FLAT:
            return _force_tunnel(new_state, "universal", catalog)
        return Transition(state=new_state, step=StepId.MATERIAL)
    if pitch == RoofPitch.FLAT:
        return Transition(state=new_state, step=StepId.OPENING)
    return Transition(state=new_state, step=StepId.MATERIAL)


def _on_material(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    material = RoofMaterial(choice)
    new_state = replace(state, roof_material=material)
    if state.product_category == ProductCategory.SUN_TUNNEL:
        if material == RoofMaterial.WIDE_METAL:
            return _force_tunnel(new_state, "universal", catalog)
        return Transition(state=new_state, step=StepId.SUN_TUNNEL_TYPE)
    if state.product_category == ProductCategory.ROOF_WINDOW:
        return Transition(state=new_state, step=StepId.ROOF_WINDOW_MODEL)
    return Transition(state=new_state, step=StepId.OPENING)


def _on_sun_tunnel_type(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    return _force_tunnel(state, TunnelType(choice).value, catalog)


def _on_roof_window_model(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    return Transition(state=replace(state, selected_product_id=choice), step=StepId.TRUSS)


def _on_opening(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    return Transition(
        state=replace(state, opening_type=OpeningType(choice), orientation=Orientation.PORTRAIT),
        step=StepId.TRUSS,
        forced={"orientation": Orientation.PORTRAIT},
    )


def _on_truss(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    spacing = TrussSpacing(choice)
    # Size is always re-picked (or re-derived on results) after a spacing choice.
    new_state = replace(state, structural_spacing=spacing, size_code=None)
    forced = {"size_code": None}
    if spacing != TrussSpacing.UNSPECIFIED or state.product_category == ProductCategory.ROOF_WINDOW:
        return Transition(state=new_state, step=StepId.SIZE, forced=forced)
    return Transition(state=new_state, step=StepId.RESULTS, forced=forced)


def _on_size(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    if choice in {o.value for o in Orientation}:
        return Transition(state=replace(state, orientation=Orientation(choice)), step=StepId.SIZE)
    return Transition(state=replace(state, size_code=choice), step=StepId.RESULTS)


def _on_results(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    product_id, paired_size = parse_results_choice(choice)
    forced: Dict[str, object] = {
        "selected_blind_id": None,
        "insect_screen_requested": False,
        "selected_addon_id": None,
    }
    new_state = replace(
        state,
        selected_product_id=product_id,
        selected_blind_id=None,
        insect_screen_requested=False,
        selected_addon_id=None,
    )
    if paired_size is not None:
        new_state = replace(new_state, size_code=paired_size)

    product = catalog.product(product_id)
    if eligible_extensions(product, catalog):
        return Transition(state=new_state, step=StepId.ADDON, forced=forced)
    if eligible_blinds(new_state, catalog) or eligible_screens(new_state, catalog):
        return Transition(state=new_state, step=StepId.BLINDS, forced=forced)
    return Transition(state=new_state, step=StepId.SUMMARY, forced=forced)


def _on_blinds(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    if state.product_category == ProductCategory.ROOF_WINDOW:
        # Toggles; only Continue advances.
        if choice == CONTINUE:
            return Transition(state=state, step=StepId.SUMMARY)
        if any(s.id == choice for s in eligible_screens(state, catalog)):
            return Transition(
                state=replace(state, insect_screen_requested=not state.insect_screen_requested),
                step=StepId.BLINDS,
            )
        toggled = None if state.selected_blind_id == choice else choice
        return Transition(state=replace(state, selected_blind_id=toggled), step=StepId.BLINDS)

    blind_id = None if choice == NO_BLIND else choice
    return Transition(state=replace(state, selected_blind_id=blind_id), step=StepId.SUMMARY)


def _on_addon(state: SelectionState, choice: str, catalog: Catalog) -> Transition:
    if choice == CONTINUE:
        return Transition(state=state, step=StepId.SUMMARY)
    toggled = None if state.selected_addon_id == choice else choice
    return Transition(state=replace(state, selected_addon_id=toggled), step=StepId.ADDON)


def _force_tunnel(state: SelectionState, role: str, catalog: Catalog) -> Transition:
    product = catalog.tunnel_product(role)
    if product is None:
        # The catalog guarantees every tunnel role at load time.
        raise KeyError(f"catalog has no {role!r} tunnel")
    code = tunnel_fixed_code(product)
    return Transition(
        state=replace(state, selected_product_id=product.id, size_code=code),
        step=StepId.RESULTS,
        forced={"selected_product_id": product.id, "size_code": code},
    )


_HANDLERS: Dict[StepId, Callable[[SelectionState, str, Catalog], Transition]] = {
    StepId.PRODUCT_TYPE: _on_product_type,
    StepId.PITCH: _on_pitch,
    StepId.MATERIAL: _on_material,
    StepId.SUN_TUNNEL_TYPE: _on_sun_tunnel_type,
    StepId.ROOF_WINDOW_MODEL: _on_roof_window_model,
    StepId.OPENING: _on_opening,
    StepId.TRUSS: _on_truss,
    StepId.SIZE: _on_size,
    StepId.RESULTS: _on_results,
    StepId.BLINDS: _on_blinds,
    StepId.ADDON: _on_addon,
}
