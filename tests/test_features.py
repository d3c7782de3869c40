from __future__ import annotations

import unittest

from posturecoach.config import Thresholds
from posturecoach.posture.calibration import Baseline
from posturecoach.posture.classifier import classify
from posturecoach.posture.features import (
    build_features,
    face_area_signal,
    has_body,
    measure,
    normalize_roll,
)
from posturecoach.types import Frame, Issue, Landmark

from synthetic import make_face, make_frame


class RollNormalisationTests(unittest.TestCase):
    def test_folds_into_half_open_range(self) -> None:
        self.assertAlmostEqual(normalize_roll(0.0), 0.0)
        self.assertAlmostEqual(normalize_roll(180.0), 0.0)
        self.assertAlmostEqual(normalize_roll(-180.0), 0.0)
        self.assertAlmostEqual(normalize_roll(90.0), 90.0)
        self.assertAlmostEqual(normalize_roll(-90.0), 90.0)
        self.assertAlmostEqual(normalize_roll(135.0), -45.0)
        self.assertAlmostEqual(normalize_roll(-135.0), 45.0)
        self.assertAlmostEqual(normalize_roll(200.0), 20.0)


class FeatureExtractionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.th = Thresholds()

    def test_neutral_pose_yields_no_candidates(self) -> None:
        m = measure(make_frame())
        self.assertIsNotNone(m)
        feats = build_features(m, Baseline(), self.th)
        self.assertAlmostEqual(feats.roll_deg, 0.0)
        self.assertAlmostEqual(feats.nose_eye_delta_y, 0.04)
        self.assertAlmostEqual(feats.body_offset_x, 0.0)
        self.assertAlmostEqual(feats.neck_y, 0.20)
        self.assertFalse(feats.slouch)
        self.assertFalse(feats.forward_head)
        self.assertEqual(classify(feats, self.th), ())

    def test_mirroring_swaps_tilt_direction(self) -> None:
        frame = make_frame(ear_dy=0.04)
        plain = build_features(measure(frame, mirror=False), Baseline(), self.th)
        mirrored = build_features(measure(frame, mirror=True), Baseline(), self.th)
        self.assertGreater(plain.roll_deg, 12.0)
        self.assertLess(mirrored.roll_deg, -12.0)
        self.assertIn(Issue.HEAD_TILT_RIGHT, classify(plain, self.th))
        self.assertIn(Issue.HEAD_TILT_LEFT, classify(mirrored, self.th))

    def test_mirroring_flips_body_offset(self) -> None:
        frame = make_frame(shift_x=0.08)
        plain = build_features(measure(frame, mirror=False), Baseline(), self.th)
        mirrored = build_features(measure(frame, mirror=True), Baseline(), self.th)
        self.assertAlmostEqual(plain.body_offset_x, 0.08)
        self.assertAlmostEqual(mirrored.body_offset_x, -0.08)

    def test_low_shoulder_visibility_skips_frame(self) -> None:
        frame = make_frame(visibility=0.01)
        self.assertTrue(has_body(frame))
        self.assertIsNone(measure(frame))

    def test_missing_visibility_counts_as_visible(self) -> None:
        frame = make_frame()
        body = list(frame.body)
        body[11] = Landmark(body[11].x, body[11].y, body[11].z, None)
        body[12] = Landmark(body[12].x, body[12].y, body[12].z, None)
        self.assertIsNotNone(measure(Frame(timestamp=0.0, body=tuple(body))))

    def test_insufficient_landmarks(self) -> None:
        self.assertFalse(has_body(None))
        self.assertFalse(has_body(make_frame(count=12)))
        self.assertTrue(has_body(make_frame(count=13)))
        self.assertIsNone(measure(make_frame(count=12)))

    def test_face_area_is_bounding_box(self) -> None:
        self.assertAlmostEqual(face_area_signal(make_face()), 0.05)
        self.assertAlmostEqual(face_area_signal(make_face(scale=2.0)), 0.20)
        self.assertEqual(face_area_signal(()), 0.0)
        self.assertIsNone(measure(make_frame(face_scale=None)).face_area)

    def test_shoulder_differentials(self) -> None:
        m = measure(make_frame(shoulder_dy=0.05, shoulder_dz=0.2))
        self.assertAlmostEqual(m.shoulders_y_diff, 0.05)
        self.assertAlmostEqual(m.shoulders_z_diff, 0.2)

    def test_forward_head_uses_depth_threshold(self) -> None:
        frame = make_frame()
        body = list(frame.body)
        nose = body[0]
        body[0] = Landmark(nose.x, nose.y, -0.35, nose.visibility)
        feats = build_features(measure(Frame(timestamp=0.0, body=tuple(body))), Baseline(), self.th)
        self.assertAlmostEqual(feats.forward_head_z, 0.25)
        self.assertTrue(feats.forward_head)

    def test_neck_length_is_positive_upright_and_shrinks_as_head_drops(self) -> None:
        upright = measure(make_frame()).neck_y
        dropped = measure(make_frame(head_dy=0.05)).neck_y
        self.assertGreater(upright, 0.0)
        self.assertAlmostEqual(dropped, 0.15)
        self.assertLess(dropped, upright)

    def test_slouch_uses_baseline_ratio_then_hard_minimum(self) -> None:
        m = measure(make_frame(head_dy=0.0))
        self.assertFalse(build_features(m, Baseline(), self.th).slouch)
        self.assertTrue(build_features(m, Baseline(neck_y=0.30), self.th).slouch)
        self.assertFalse(build_features(m, Baseline(neck_y=0.25), self.th).slouch)
        short_neck = measure(make_frame(head_dy=0.10))
        self.assertTrue(build_features(short_neck, Baseline(), self.th).slouch)

    def test_body_offset_uses_calibrated_shoulder_x(self) -> None:
        m = measure(make_frame())
        feats = build_features(m, Baseline(shoulder_x=0.40), self.th)
        self.assertAlmostEqual(feats.body_offset_x, 0.10)
        self.assertIn(Issue.BODY_LEAN_RIGHT, classify(feats, self.th))


if __name__ == "__main__":
    unittest.main()
