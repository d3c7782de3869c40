from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np

from ..config import Thresholds
from ..types import Frame, Landmark
from . import landmarks as idx
from .calibration import Baseline


@dataclass(frozen=True)
class Measurements:
    """Baseline-independent signals taken from one frame."""

    roll_deg: float
    nose_eye_delta_y: float
    shoulders_y_diff: float
    shoulders_z_diff: float
    forward_head_z: float
    shoulder_mid_x: float
    neck_y: float
    face_area: Optional[float]


@dataclass(frozen=True)
class FeatureSet:
    roll_deg: float
    nose_eye_delta_y: float
    shoulders_y_diff: float
    shoulders_z_diff: float
    forward_head_z: float
    forward_head: bool
    neck_y: float
    slouch: bool
    shoulder_mid_x: float
    body_offset_x: float
    face_area: Optional[float]
    face_baseline: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def has_body(frame: Optional[Frame]) -> bool:
    return frame is not None and len(frame.body) >= idx.MIN_BODY_LANDMARKS


def normalize_roll(angle_deg: float) -> float:
    # Ear line direction is irrelevant, so fold into (-90, 90].
    a = (angle_deg + 180.0) % 360.0 - 180.0
    if a > 90.0:
        a -= 180.0
    if a <= -90.0:
        a += 180.0
    return a


def face_area_signal(face: Sequence[Landmark]) -> float:
    # Bounding-box area of the face mesh; larger means closer to the camera.
    if not face:
        return 0.0
    pts = np.array([(p.x, p.y) for p in face], dtype=float)
    w = max(0.0, float(np.max(pts[:, 0]) - np.min(pts[:, 0])))
    h = max(0.0, float(np.max(pts[:, 1]) - np.min(pts[:, 1])))
    return w * h


def _mid(a: Landmark, b: Landmark) -> Landmark:
    z = None
    if a.z is not None and b.z is not None:
        z = 0.5 * (a.z + b.z)
    return Landmark(x=0.5 * (a.x + b.x), y=0.5 * (a.y + b.y), z=z)


def _visibility(p: Landmark) -> float:
    return 1.0 if p.visibility is None else float(p.visibility)


def measure(frame: Frame, mirror: bool = False, min_visibility: float = 0.05) -> Optional[Measurements]:
    """Compute raw signals for one frame.

    Returns None when the frame carries too few body landmarks or when the
    shoulders are below the visibility gate; callers treat the two cases
    differently (person lost vs. silent skip), so check ``has_body`` first.
    """
    if not has_body(frame):
        return None

    body = frame.body

    def lm(i: int) -> Landmark:
        p = body[i]
        return p.mirrored() if mirror else p

    nose = lm(idx.NOSE)
    l_eye = lm(idx.LEFT_EYE)
    r_eye = lm(idx.RIGHT_EYE)
    l_ear = lm(idx.LEFT_EAR)
    r_ear = lm(idx.RIGHT_EAR)
    ls = lm(idx.LEFT_SHOULDER)
    rs = lm(idx.RIGHT_SHOULDER)

    if min(_visibility(ls), _visibility(rs)) < min_visibility:
        return None

    shoulder_mid = _mid(ls, rs)
    eye_mid = _mid(l_eye, r_eye)

    roll_deg = normalize_roll(math.degrees(math.atan2(r_ear.y - l_ear.y, r_ear.x - l_ear.x)))
    nose_eye_delta_y = nose.y - eye_mid.y

    shoulders_y_diff = abs(ls.y - rs.y)
    shoulders_z_diff = abs((ls.z or 0.0) - (rs.z or 0.0))

    shoulder_z = shoulder_mid.z if shoulder_mid.z is not None else 0.0
    nose_z = nose.z if nose.z is not None else 0.0
    forward_head_z = shoulder_z - nose_z

    face_area = None
    if frame.face:
        face_area = face_area_signal(frame.face)

    return Measurements(
        roll_deg=roll_deg,
        nose_eye_delta_y=nose_eye_delta_y,
        shoulders_y_diff=shoulders_y_diff,
        shoulders_z_diff=shoulders_z_diff,
        forward_head_z=forward_head_z,
        shoulder_mid_x=shoulder_mid.x,
        # Image y grows downward, so this is positive when upright and shrinks on slouch.
        neck_y=shoulder_mid.y - nose.y,
        face_area=face_area,
    )


def build_features(m: Measurements, baseline: Baseline, th: Thresholds) -> FeatureSet:
    if baseline.neck_y is not None:
        slouch = m.neck_y < baseline.neck_y * th.slouch_neck_ratio
    else:
        slouch = m.neck_y < th.slouch_neck_hard_min

    base_x = baseline.shoulder_x if baseline.shoulder_x is not None else 0.5

    return FeatureSet(
        roll_deg=m.roll_deg,
        nose_eye_delta_y=m.nose_eye_delta_y,
        shoulders_y_diff=m.shoulders_y_diff,
        shoulders_z_diff=m.shoulders_z_diff,
        forward_head_z=m.forward_head_z,
        forward_head=m.forward_head_z > th.forward_head_z,
        neck_y=m.neck_y,
        slouch=slouch,
        shoulder_mid_x=m.shoulder_mid_x,
        body_offset_x=m.shoulder_mid_x - base_x,
        face_area=m.face_area,
        face_baseline=baseline.face_area,
    )
