from __future__ import annotations

import os
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from pydantic import ValidationError

from posturecoach.config import CONFIG_ENV_VAR, EngineConfig, load_engine_config, resolve_config_path


class EngineConfigTests(unittest.TestCase):
    def test_defaults_match_reference_constants(self) -> None:
        cfg = EngineConfig()
        self.assertEqual(cfg.debounce.persist_ms, 450.0)
        self.assertEqual(cfg.debounce.clear_ms, 650.0)
        self.assertEqual(cfg.coaching.window_ms, 120_000.0)
        self.assertEqual(cfg.coaching.bad_dominance_ms, 90_000.0)
        self.assertEqual(cfg.coaching.continuous_bad_ms, 120_000.0)
        self.assertEqual(cfg.coaching.cooldown_ms, 360_000.0)
        self.assertEqual(cfg.calibration.samples, 60)
        self.assertEqual(cfg.thresholds.head_roll_deg, 12.0)
        self.assertEqual(cfg.thresholds.shoulders_uneven_y, 0.030)
        self.assertEqual(cfg.thresholds.forward_head_z, 0.18)
        self.assertEqual(cfg.thresholds.body_lean_x, 0.050)
        self.assertEqual(cfg.thresholds.too_close_mul, 1.35)
        self.assertEqual(cfg.thresholds.too_far_mul, 0.75)
        self.assertEqual(cfg.thresholds.min_shoulder_visibility, 0.05)
        self.assertAlmostEqual(cfg.min_frame_interval_ms, 1000.0 / 30.0)

    def test_uncapped_frame_rate(self) -> None:
        self.assertEqual(EngineConfig(fps_cap=0).min_frame_interval_ms, 0.0)

    def test_shipped_yaml_matches_defaults(self) -> None:
        shipped = Path(__file__).resolve().parent.parent / "posture_engine.yaml"
        self.assertEqual(load_engine_config(shipped), EngineConfig())

    def test_partial_yaml_override_keeps_other_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "engine.yaml"
            path.write_text("mirror: false\ndebounce:\n  persist_ms: 300\n", encoding="utf-8")
            cfg = load_engine_config(path)
            self.assertFalse(cfg.mirror)
            self.assertEqual(cfg.debounce.persist_ms, 300.0)
            self.assertEqual(cfg.debounce.clear_ms, 650.0)
            self.assertEqual(cfg.coaching, EngineConfig().coaching)

    def test_missing_or_unparsable_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertEqual(load_engine_config(Path(tmpdir) / "nope.yaml"), EngineConfig())
            broken = Path(tmpdir) / "broken.yaml"
            broken.write_text("debounce: [unclosed\n", encoding="utf-8")
            self.assertEqual(load_engine_config(broken), EngineConfig())
            scalar = Path(tmpdir) / "scalar.yaml"
            scalar.write_text("42\n", encoding="utf-8")
            self.assertEqual(load_engine_config(scalar), EngineConfig())

    def test_invalid_values_raise(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "engine.yaml"
            path.write_text("calibration:\n  samples: 0\n", encoding="utf-8")
            with self.assertRaises(ValidationError):
                load_engine_config(path)
            path.write_text("thresholds:\n  head_roll: 10\n", encoding="utf-8")
            with self.assertRaises(ValidationError):
                load_engine_config(path)

    def test_env_var_selects_config_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "env.yaml"
            path.write_text("fps_cap: 15\n", encoding="utf-8")
            with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: str(path)}):
                self.assertEqual(resolve_config_path(), path)
                self.assertEqual(load_engine_config().fps_cap, 15.0)
            explicit = Path(tmpdir) / "explicit.yaml"
            with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: str(path)}):
                self.assertEqual(resolve_config_path(explicit), explicit)


if __name__ == "__main__":
    unittest.main()
