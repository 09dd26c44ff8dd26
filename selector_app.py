from __future__ import annotations

import hashlib
import hmac
import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional, Tuple

import streamlit as st
from dotenv import load_dotenv

from catalog_loader import load_catalog
from default_catalog import load_default_catalog
from price_composer import IncompleteStateError, Summary, compute_summary, format_dollars, summary_csv
from selection_state import INITIAL_STEP, DerivedRoofType, Orientation, SelectionState, StepId, empty_state
from size_views import render_size_outline_png
from skylight_catalog import Catalog, CatalogError, ProductCategory, SizeCode
from step_flow import STEP_TITLES, InvalidChoiceError, Option, apply_choice, get_options_for_step, go_back, is_dead_end, reset
from summary_pdf import SummaryPdfArtifact, make_summary_pdf_bytes

logger = logging.getLogger(__name__)

ROOF_LABELS = {
    DerivedRoofType.FLAT: "Flat roof",
    DerivedRoofType.TILED: "Pitched, tiled / corrugated",
    DerivedRoofType.WIDE_METAL: "Pitched, wide-span metal",
}


def _read_secret_or_env_str(key: str) -> str:
    """
    Read a configuration value from Streamlit Secrets (preferred) or environment variables.

    Returns a stripped string; returns "" when missing.
    """
    val: object = ""
    try:
        val = st.secrets.get(key, "")  # type: ignore[attr-defined]
    except (FileNotFoundError, KeyError, AttributeError):
        # No secrets.toml configured.
        val = ""
    if not val:
        val = os.environ.get(key, "")
    if isinstance(val, str):
        return val.strip()
    return str(val).strip() if val is not None else ""


def _configure_logging() -> None:
    level_name = (_read_secret_or_env_str("SELECTOR_LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _sha256_hex(text: str) -> str:
    if not isinstance(text, str):
        raise TypeError("text must be str")
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _password_gate() -> None:
    """
    Optional in-app password gate for hosted deployments.

    Enable by setting ONE of:
    - APP_PASSWORD (plain text), or
    - APP_PASSWORD_SHA256 (hex sha256 of the password)

    If neither is set, the app runs without a gate.
    """
    expected_password = _read_secret_or_env_str("APP_PASSWORD")
    expected_sha = _read_secret_or_env_str("APP_PASSWORD_SHA256").lower()
    if not expected_password and not expected_sha:
        return

    if bool(st.session_state.get("_auth_ok", False)):
        if st.sidebar.button("Log out", key="auth_logout", use_container_width=True):
            st.session_state["_auth_ok"] = False
            st.rerun()
        return

    st.markdown("## Login")
    st.caption("Enter the password to access the selector.")

    with st.form("auth_form", clear_on_submit=False):
        pw = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)

    if submitted:
        pw = str(pw or "")
        if expected_sha:
            ok = hmac.compare_digest(_sha256_hex(pw), expected_sha)
        else:
            ok = hmac.compare_digest(pw, expected_password)
        if ok:
            st.session_state["_auth_ok"] = True
            st.rerun()
        logger.info("Rejected login attempt")
        st.error("Incorrect password.")

    st.stop()


@st.cache_data(show_spinner=False)
def _cached_catalog(catalog_path: str) -> Catalog:
    if catalog_path:
        logger.info("Loading catalog from %s", catalog_path)
        return load_catalog(Path(catalog_path))
    return load_default_catalog()


@st.cache_data(show_spinner=False)
def _cached_size_outline_png(
    *,
    code: str,
    width_mm: int,
    height_mm: int,
    label: str,
    category: str,
    orientation: str,
) -> bytes:
    return render_size_outline_png(
        SizeCode(code=code, width_mm=width_mm, height_mm=height_mm, label=label),
        category=ProductCategory(category),
        orientation=Orientation(orientation),
    )


def _init_state() -> None:
    if "selection" not in st.session_state:
        st.session_state["selection"] = empty_state()
    if "step" not in st.session_state:
        st.session_state["step"] = INITIAL_STEP.value


def _reset_state() -> None:
    st.session_state["selection"] = reset()
    st.session_state["step"] = INITIAL_STEP.value
    st.session_state.pop("choice_error", None)


def _current() -> Tuple[SelectionState, StepId]:
    state = st.session_state.get("selection")
    if not isinstance(state, SelectionState):
        state = empty_state()
    try:
        step = StepId(str(st.session_state.get("step") or INITIAL_STEP.value))
    except ValueError:
        step = INITIAL_STEP
    return state, step


def _handle_choice(choice: str, catalog: Catalog) -> Optional[str]:
    """
    Apply a clicked option to the session.

    Returns the error message (also kept in session_state) when the choice is rejected;
    the selection is left untouched in that case.
    """
    state, step = _current()
    try:
        t = apply_choice(step, state, choice, catalog)
    except InvalidChoiceError as e:
        logger.warning("Rejected choice %r at %s", choice, step.value)
        st.session_state["choice_error"] = str(e)
        return str(e)
    st.session_state["selection"] = t.state
    st.session_state["step"] = t.step.value
    st.session_state.pop("choice_error", None)
    return None


def _handle_back() -> None:
    state, _ = _current()
    t = go_back(state)
    st.session_state["selection"] = t.state
    st.session_state["step"] = t.step.value
    st.session_state.pop("choice_error", None)


def _can_go_back(state: SelectionState, step: StepId) -> bool:
    return step != INITIAL_STEP or bool(state.history)


def _option_label(option: Option) -> str:
    label = option.label
    if option.amount:
        label = f"{label} - {format_dollars(option.amount)}"
    if option.selected:
        label = f"[x] {label}"
    return label


def _roof_description(state: SelectionState) -> str:
    roof = state.derived_roof_type
    return ROOF_LABELS.get(roof, "") if roof is not None else ""


def _summary_pdf_bytes(summary: Summary, state: SelectionState, catalog: Catalog, preview: Optional[bytes]) -> bytes:
    product = catalog.product(summary.product_id)
    size = catalog.size(summary.size_code)
    return make_summary_pdf_bytes(
        SummaryPdfArtifact(
            summary=summary,
            product_name=product.name if product is not None else summary.product_id,
            size_label=f"{size.label} mm" if size is not None else summary.size_code,
            generated_on=date.today(),
            roof_description=_roof_description(state),
            preview_png_bytes=preview,
        )
    )


def _preview_png(state: SelectionState, catalog: Catalog) -> Optional[bytes]:
    product = catalog.product(state.selected_product_id)
    size = catalog.size(state.size_code)
    if product is None or size is None:
        return None
    return _cached_size_outline_png(
        code=size.code,
        width_mm=size.width_mm,
        height_mm=size.height_mm,
        label=size.label,
        category=product.category.value,
        orientation=state.orientation.value,
    )


def _render_summary(state: SelectionState, catalog: Catalog) -> None:
    try:
        summary = compute_summary(state, catalog)
    except IncompleteStateError as e:
        logger.error("Summary reached with incomplete selection: %s", e)
        st.error("The selection is incomplete. Please go back and finish the previous steps.")
        return

    product = catalog.product(summary.product_id)
    preview = _preview_png(state, catalog)

    left, right = st.columns([3, 2])
    with left:
        st.subheader(product.name if product is not None else summary.product_id)
        roof = _roof_description(state)
        if roof:
            st.caption(f"Roof: {roof}")
        rows = [{"Item": li.label, "Amount": format_dollars(li.amount)} for li in summary.line_items]
        st.table(rows)
        st.markdown(f"### Total Estimate (RRP): {format_dollars(summary.total)}")
        for n in summary.notes:
            st.caption(n)
    with right:
        if preview:
            st.image(preview, caption=f"{summary.size_code}", use_container_width=True)

    st.download_button(
        "Download summary (PDF)",
        data=_summary_pdf_bytes(summary, state, catalog, preview),
        file_name=f"skylight-summary-{summary.product_id}-{summary.size_code}.pdf",
        mime="application/pdf",
        use_container_width=True,
    )
    st.download_button(
        "Download line items (CSV)",
        data=summary_csv(summary),
        file_name=f"skylight-summary-{summary.product_id}-{summary.size_code}.csv",
        mime="text/csv",
        use_container_width=True,
    )


def _render_step(state: SelectionState, step: StepId, catalog: Catalog) -> None:
    st.header(STEP_TITLES.get(step, step.value))

    err = st.session_state.get("choice_error")
    if err:
        st.error(str(err))

    if step == StepId.SUMMARY:
        _render_summary(state, catalog)
        return

    if is_dead_end(step, state, catalog):
        st.warning("No products match these choices. Go back and change an earlier answer.")
        return

    options = get_options_for_step(step, state, catalog)
    toggles = [o for o in options if not o.advances]
    if toggles:
        cols = st.columns(len(toggles))
        for col, o in zip(cols, toggles):
            with col:
                if st.button(_option_label(o), key=f"toggle_{step.value}_{o.value}", use_container_width=True):
                    _handle_choice(o.value, catalog)
                    st.rerun()

    for o in options:
        if not o.advances:
            continue
        if st.button(_option_label(o), key=f"opt_{step.value}_{o.value}", use_container_width=True):
            _handle_choice(o.value, catalog)
            st.rerun()


def main() -> None:
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    _configure_logging()

    st.set_page_config(page_title="Skylight Selector", layout="centered")
    st.title("Skylight Selector")

    _password_gate()

    try:
        catalog = _cached_catalog(_read_secret_or_env_str("SKYLIGHT_CATALOG_PATH"))
    except (CatalogError, ValueError, OSError) as e:
        logger.exception("Catalog failed to load")
        st.error(f"Catalog failed to load: {e}")
        st.stop()

    _init_state()
    state, step = _current()

    st.sidebar.caption(f"Catalog: {catalog.revision}")
    nav_back, nav_reset = st.sidebar.columns(2)
    with nav_back:
        if _can_go_back(state, step) and st.button("Back", key="nav_back", use_container_width=True):
            _handle_back()
            st.rerun()
    with nav_reset:
        if st.button("Start Over", key="nav_reset", use_container_width=True):
            _reset_state()
            st.rerun()

    _render_step(state, step, catalog)


if __name__ == "__main__":
    main()
