from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

import numpy as np


@dataclass
class Baseline:
    shoulder_x: Optional[float] = None
    neck_y: Optional[float] = None
    face_area: Optional[float] = None


class Calibrator:
    """Personal idle-posture baseline from the first N usable frames.

    Pose (shoulder X + neck length) and face area calibrate independently; a
    component is fixed once its buffer fills and stays fixed until ``reset``.
    """

    def __init__(self, samples: int = 60) -> None:
        self.samples = int(samples)
        self.baseline = Baseline()
        self._pose_buf: Deque[Tuple[float, float]] = deque(maxlen=self.samples)
        self._face_buf: Deque[float] = deque(maxlen=self.samples)

    @property
    def pose_calibrated(self) -> bool:
        return self.baseline.shoulder_x is not None and self.baseline.neck_y is not None

    @property
    def face_calibrated(self) -> bool:
        return self.baseline.face_area is not None

    @property
    def calibrated(self) -> bool:
        return self.pose_calibrated and self.face_calibrated

    def observe(self, shoulder_x: float, neck_y: float, face_area: Optional[float]) -> list[str]:
        """Feed one frame; returns the names of components that just completed."""
        done: list[str] = []
        if not self.pose_calibrated:
            self._pose_buf.append((float(shoulder_x), float(neck_y)))
            if len(self._pose_buf) >= self.samples:
                arr = np.asarray(self._pose_buf, dtype=float)
                self.baseline.shoulder_x = float(np.mean(arr[:, 0]))
                self.baseline.neck_y = float(np.mean(arr[:, 1]))
                self._pose_buf.clear()
                done.append("pose")
        # Face calibration needs a face detector result on this frame.
        if not self.face_calibrated and face_area is not None:
            self._face_buf.append(float(face_area))
            if len(self._face_buf) >= self.samples:
                self.baseline.face_area = float(np.mean(np.asarray(self._face_buf, dtype=float)))
                self._face_buf.clear()
                done.append("face")
        return done

    def progress(self) -> Tuple[float, float]:
        pose = 1.0 if self.pose_calibrated else len(self._pose_buf) / float(self.samples)
        face = 1.0 if self.face_calibrated else len(self._face_buf) / float(self.samples)
        return pose, face

    def reset(self) -> None:
        self.baseline = Baseline()
        self._pose_buf.clear()
        self._face_buf.clear()
