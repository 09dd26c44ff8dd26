from __future__ import annotations

import os
import unittest
from unittest import mock

import selector_app
from default_catalog import load_default_catalog
from selection_state import INITIAL_STEP, SelectionState, StepId, empty_state
from step_flow import Option

CATALOG = load_default_catalog()


class TestSelectorAppState(unittest.TestCase):
    def setUp(self) -> None:
        self.fake_session_state: dict[str, object] = {}
        self.original_session_state = selector_app.st.session_state
        selector_app.st.session_state = self.fake_session_state  # type: ignore[assignment]

    def tearDown(self) -> None:
        selector_app.st.session_state = self.original_session_state

    def _click(self, *choices: str) -> None:
        for choice in choices:
            self.assertIsNone(selector_app._handle_choice(choice, CATALOG))

    def test_init_state_seeds_empty_selection(self) -> None:
        selector_app._init_state()
        self.assertEqual(self.fake_session_state["selection"], empty_state())
        self.assertEqual(self.fake_session_state["step"], INITIAL_STEP.value)

    def test_init_state_keeps_existing_selection(self) -> None:
        selector_app._init_state()
        self._click("skylight")
        selector_app._init_state()
        self.assertEqual(self.fake_session_state["step"], StepId.PITCH.value)

    def test_clicks_advance_the_session(self) -> None:
        selector_app._init_state()
        self._click("sun-tunnel", "flat")
        state, step = selector_app._current()
        self.assertEqual(step, StepId.RESULTS)
        self.assertEqual(state.selected_product_id, "tcr")

    def test_rejected_choice_leaves_selection_untouched(self) -> None:
        selector_app._init_state()
        self._click("skylight")
        before = self.fake_session_state["selection"]
        err = selector_app._handle_choice("garage-door", CATALOG)
        self.assertIsNotNone(err)
        self.assertIs(self.fake_session_state["selection"], before)
        self.assertEqual(self.fake_session_state["step"], StepId.PITCH.value)
        self.assertEqual(self.fake_session_state["choice_error"], err)

        # A valid click clears the error.
        self._click("pitched")
        self.assertNotIn("choice_error", self.fake_session_state)

    def test_back_and_reset(self) -> None:
        selector_app._init_state()
        self._click("skylight", "pitched")
        selector_app._handle_back()
        state, step = selector_app._current()
        self.assertEqual(step, StepId.PITCH)
        self.assertTrue(selector_app._can_go_back(state, step))

        selector_app._reset_state()
        state, step = selector_app._current()
        self.assertEqual((state, step), (empty_state(), INITIAL_STEP))
        self.assertFalse(selector_app._can_go_back(state, step))

    def test_current_recovers_from_garbage(self) -> None:
        self.fake_session_state.update({"selection": "not a state", "step": "nowhere"})
        state, step = selector_app._current()
        self.assertIsInstance(state, SelectionState)
        self.assertEqual(step, INITIAL_STEP)

    def test_summary_pdf_bytes(self) -> None:
        selector_app._init_state()
        self._click("skylight", "flat", "fixed", "600", "2222", "fcm", "fscc")
        state, step = selector_app._current()
        self.assertEqual(step, StepId.SUMMARY)
        summary = selector_app.compute_summary(state, CATALOG)
        pdf = selector_app._summary_pdf_bytes(summary, state, CATALOG, None)
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertIn(rb"Flat Roof Fixed \(FCM\)", pdf)
        self.assertEqual(selector_app._roof_description(state), "Flat roof")

    def test_option_label(self) -> None:
        self.assertEqual(selector_app._option_label(Option(value="vs", label="VS", amount=1248)), "VS - $1,248")
        self.assertEqual(
            selector_app._option_label(Option(value="fhc", label="FHC", advances=False, selected=True)),
            "[x] FHC",
        )


class TestSelectorAppConfig(unittest.TestCase):
    def test_env_fallback_when_secrets_missing(self) -> None:
        with mock.patch.object(selector_app.st, "secrets", new={}), mock.patch.dict(
            os.environ, {"SKYLIGHT_CATALOG_PATH": "  /tmp/catalog.json  "}
        ):
            self.assertEqual(selector_app._read_secret_or_env_str("SKYLIGHT_CATALOG_PATH"), "/tmp/catalog.json")

    def test_secrets_take_precedence(self) -> None:
        with mock.patch.object(selector_app.st, "secrets", new={"APP_PASSWORD": "from-secrets"}), mock.patch.dict(
            os.environ, {"APP_PASSWORD": "from-env"}
        ):
            self.assertEqual(selector_app._read_secret_or_env_str("APP_PASSWORD"), "from-secrets")

    def test_missing_key_is_empty(self) -> None:
        with mock.patch.object(selector_app.st, "secrets", new={}), mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(selector_app._read_secret_or_env_str("SELECTOR_LOG_LEVEL"), "")

    def test_sha256_hex(self) -> None:
        self.assertEqual(
            selector_app._sha256_hex("demo"),
            "2a97516c354b68848cdbd8f54a226a0a55b21ed138e207ad6c5cbb9c00aa5aea",
        )


if __name__ == "__main__":
    unittest.main()
