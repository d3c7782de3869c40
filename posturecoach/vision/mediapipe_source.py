from __future__ import annotations

import time
from typing import Any, Callable, Optional, Tuple

import numpy as np

from ..types import Frame, Landmark


FrameReader = Callable[[], Optional[np.ndarray]]


def _to_landmarks(landmark_list: Any) -> Tuple[Landmark, ...]:
    out = []
    for p in landmark_list.landmark:
        vis = getattr(p, "visibility", None)
        out.append(
            Landmark(
                x=float(p.x),
                y=float(p.y),
                z=float(p.z) if getattr(p, "z", None) is not None else None,
                visibility=float(vis) if vis is not None else None,
            )
        )
    return tuple(out)


def frame_from_results(pose_res: Any, face_res: Any, timestamp: float) -> Optional[Frame]:
    """Convert MediaPipe Solutions results into a Frame (None: nobody in view)."""
    pose_lm = getattr(pose_res, "pose_landmarks", None) if pose_res is not None else None
    if pose_lm is None:
        return None
    body = _to_landmarks(pose_lm)

    face: Optional[Tuple[Landmark, ...]] = None
    multi = getattr(face_res, "multi_face_landmarks", None) if face_res is not None else None
    if multi:
        face = _to_landmarks(multi[0])
    return Frame(timestamp=timestamp, body=body, face=face)


class MediapipeLandmarkSource:
    """Landmark source backed by MediaPipe Pose (+ optional FaceMesh).

    Images come from ``read_bgr``; this class does not own a capture device.
    """

    def __init__(
        self,
        read_bgr: FrameReader,
        enable_face: bool = True,
        model_complexity: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ) -> None:
        self.read_bgr = read_bgr
        self.enable_face = enable_face
        self.model_complexity = model_complexity
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence
        self.pose = None
        self.face_mesh = None

    def start(self) -> None:
        # Lazy import so the package can be imported even if mediapipe isn't installed yet
        import mediapipe as mp

        if not hasattr(mp, "solutions"):
            raise RuntimeError(
                "Your mediapipe package does not include the Solutions API (mp.solutions.*). "
                "Install a compatible version, e.g.:\n\n"
                "  pip install 'mediapipe<0.10.30'\n"
            )

        self.pose = mp.solutions.pose.Pose(
            static_image_mode=False,
            model_complexity=self.model_complexity,
            min_detection_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence,
        )
        if self.enable_face:
            try:
                self.face_mesh = mp.solutions.face_mesh.FaceMesh(
                    static_image_mode=False,
                    max_num_faces=1,
                    min_detection_confidence=self.min_detection_confidence,
                    min_tracking_confidence=self.min_tracking_confidence,
                )
            except Exception:
                self.pose.close()
                self.pose = None
                raise

    def next_frame(self) -> Optional[Frame]:
        if self.pose is None:
            return None
        image = self.read_bgr()
        if image is None:
            return None
        rgb = np.ascontiguousarray(image[:, :, ::-1])
        pose_res = self.pose.process(rgb)
        face_res = self.face_mesh.process(rgb) if self.face_mesh is not None else None
        return frame_from_results(pose_res, face_res, timestamp=time.monotonic() * 1000.0)

    def stop(self) -> None:
        for model in (self.pose, self.face_mesh):
            if model is not None:
                model.close()
        self.pose = None
        self.face_mesh = None
