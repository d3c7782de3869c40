from __future__ import annotations

from typing import Callable, Tuple

from ..config import Thresholds
from ..types import ISSUE_PRIORITY, Issue
from .features import FeatureSet


Rule = Callable[[FeatureSet, Thresholds], bool]


def _too_close(f: FeatureSet, th: Thresholds) -> bool:
    if f.face_area is None or not f.face_baseline:
        return False
    return f.face_area > f.face_baseline * th.too_close_mul


def _too_far(f: FeatureSet, th: Thresholds) -> bool:
    if f.face_area is None or not f.face_baseline:
        return False
    return f.face_area < f.face_baseline * th.too_far_mul


# One row per issue; adding an issue means adding a row here and a member to
# Issue/ISSUE_PRIORITY.
RULES: dict[Issue, Rule] = {
    Issue.TOO_CLOSE: _too_close,
    Issue.TOO_FAR: _too_far,
    Issue.HEAD_DOWN: lambda f, th: f.nose_eye_delta_y > th.head_pitch_down,
    Issue.HEAD_UP: lambda f, th: f.nose_eye_delta_y < th.head_pitch_up,
    Issue.HEAD_TILT_LEFT: lambda f, th: f.roll_deg < -th.head_roll_deg,
    Issue.HEAD_TILT_RIGHT: lambda f, th: f.roll_deg > th.head_roll_deg,
    Issue.SHOULDERS_UNLEVEL: lambda f, th: f.shoulders_y_diff > th.shoulders_uneven_y,
    Issue.SHOULDERS_DEPTH_MISALIGNED: lambda f, th: f.shoulders_z_diff > th.shoulders_depth_z,
    Issue.BODY_LEAN_LEFT: lambda f, th: f.body_offset_x < -th.body_lean_x,
    Issue.BODY_LEAN_RIGHT: lambda f, th: f.body_offset_x > th.body_lean_x,
}


def classify(features: FeatureSet, thresholds: Thresholds) -> Tuple[Issue, ...]:
    return tuple(issue for issue in ISSUE_PRIORITY if RULES[issue](features, thresholds))


def issue_flags(features: FeatureSet, thresholds: Thresholds) -> dict[str, bool]:
    flags = {issue.value: bool(RULES[issue](features, thresholds)) for issue in ISSUE_PRIORITY}
    flags["forward_head"] = bool(features.forward_head)
    flags["slouch"] = bool(features.slouch)
    return flags
