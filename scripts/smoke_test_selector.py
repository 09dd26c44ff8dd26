from __future__ import annotations

"""
Smoke test for the selector (local, offline).

This script walks a few selections through the step controller one click at a time,
exactly as the app would, then:
- composes the summary (price_composer)
- renders the size outline (size_views)
- generates the summary PDF (summary_pdf)

It writes PDFs to `out/smoke_test_selector/` and exits non-zero if anything breaks
(2 for a catalog or choice error, 1 for anything else).

Usage:
  python3 scripts/smoke_test_selector.py
  python3 scripts/smoke_test_selector.py --out-dir out/smoke_test_selector --catalog my_catalog.json
"""

import argparse
import logging
import sys
import traceback
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

# Allow running as `python3 scripts/smoke_test_selector.py` (module imports live at repo root).
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from catalog_loader import load_catalog
from default_catalog import load_default_catalog
from price_composer import compute_summary, format_dollars
from selection_state import INITIAL_STEP, StepId, empty_state
from size_views import render_size_outline_png
from skylight_catalog import Catalog, CatalogError
from step_flow import InvalidChoiceError, apply_choice
from summary_pdf import SummaryPdfArtifact, make_summary_pdf_bytes


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class Scenario:
    name: str
    clicks: tuple[str, ...]
    expected_total: Optional[int] = None


SCENARIOS = (
    Scenario(
        name="pitched_manual_skylight",
        clicks=("skylight", "pitched", "tiled-corrugated", "manual", "600", "C04", "vs", "fsch"),
        expected_total=1248 + 114 + 614,
    ),
    Scenario(
        name="flat_fixed_with_blind_and_tray",
        clicks=("skylight", "flat", "fixed", "600", "2222", "fcm", "fscc"),
        expected_total=381 + 615 + 95,
    ),
    Scenario(
        name="flat_fixed_unsure_spacing",
        clicks=("skylight", "flat", "fixed", "unspecified", "fcm@4646", "none"),
        expected_total=677,
    ),
    Scenario(
        name="roof_window_with_screen",
        clicks=("roof-window", "tiled-corrugated", "ggl", "900", "MK04", "ggl", "fhc", "zil", "continue"),
        expected_total=1010 + 145 + 273 + 419,
    ),
    Scenario(
        name="flat_roof_sun_tunnel_with_extension",
        clicks=("sun-tunnel", "flat", "tcr", "ztr0k14", "continue"),
        expected_total=795 + 297,
    ),
    Scenario(
        name="flexible_sun_tunnel",
        clicks=("sun-tunnel", "pitched", "tiled-corrugated", "flexible", "twf"),
        expected_total=461,
    ),
)


def _run_scenario(scenario: Scenario, *, catalog: Catalog, out_dir: Path) -> None:
    state = empty_state()
    step = INITIAL_STEP

    print("")
    print("=" * 72)
    print(f"SCENARIO: {scenario.name}")
    print("=" * 72)

    for i, choice in enumerate(scenario.clicks, start=1):
        t = apply_choice(step, state, choice, catalog)
        forced = ", ".join(f"{k}={getattr(v, 'value', v)}" for k, v in t.forced.items())
        print(f"[{i}/{len(scenario.clicks)}] {step.value}: {choice} -> {t.step.value}" + (f"  (forced: {forced})" if forced else ""))
        state, step = t.state, t.step

    if step != StepId.SUMMARY:
        raise RuntimeError(f"{scenario.name}: ended on step {step.value!r}, expected summary")

    summary = compute_summary(state, catalog)
    for li in summary.line_items:
        print(f"  - {li.label}: {format_dollars(li.amount)}")
    print(f"  - total: {format_dollars(summary.total)}")
    if scenario.expected_total is not None and summary.total != scenario.expected_total:
        raise RuntimeError(f"{scenario.name}: total {summary.total} != expected {scenario.expected_total}")

    product = catalog.product(summary.product_id)
    size = catalog.size(summary.size_code)
    if product is None or size is None:
        raise RuntimeError(f"{scenario.name}: summary references unknown product or size")
    preview = render_size_outline_png(size, category=product.category, orientation=state.orientation)
    pdf_bytes = make_summary_pdf_bytes(
        SummaryPdfArtifact(
            summary=summary,
            product_name=product.name,
            size_label=f"{size.label} mm",
            generated_on=date.today(),
            preview_png_bytes=preview,
        )
    )
    for marker in (b"Total Estimate", b"Catalog:"):
        if marker not in pdf_bytes:
            raise RuntimeError(f"Generated PDF missing expected marker: {marker!r}")

    out_path = out_dir / f"{scenario.name}.pdf"
    out_path.write_bytes(pdf_bytes)
    print(f"  - pdf: {out_path.name}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--out-dir",
        default=str(_repo_root() / "out" / "smoke_test_selector"),
        help="Directory to write PDFs into (default: out/smoke_test_selector).",
    )
    parser.add_argument(
        "--catalog",
        default="",
        help="Optional JSON catalog to use instead of the built-in one (totals are then not checked).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log filter and transition details.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    out_dir = Path(args.out_dir).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)

    if args.catalog:
        catalog = load_catalog(Path(args.catalog))
        scenarios = tuple(Scenario(name=s.name, clicks=s.clicks) for s in SCENARIOS)
    else:
        catalog = load_default_catalog()
        scenarios = SCENARIOS
    print(f"Catalog: {catalog.revision}")

    for scenario in scenarios:
        _run_scenario(scenario, catalog=catalog, out_dir=out_dir)

    print("")
    print(f"OK: wrote PDFs to {out_dir}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except (CatalogError, InvalidChoiceError) as exc:
        print(f"FAIL: {type(exc).__name__}: {exc}", file=sys.stderr)
        raise SystemExit(2)
    except Exception:
        traceback.print_exc()
        raise SystemExit(1)
