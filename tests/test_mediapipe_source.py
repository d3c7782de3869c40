from __future__ import annotations

from types import SimpleNamespace
import unittest

import numpy as np

from posturecoach.vision.mediapipe_source import MediapipeLandmarkSource, frame_from_results


def _lm_list(points):
    return SimpleNamespace(landmark=[SimpleNamespace(**p) for p in points])


class _FakeModel:
    def __init__(self, result) -> None:
        self.result = result
        self.seen = []
        self.closed = False

    def process(self, rgb):
        self.seen.append(rgb)
        return self.result

    def close(self) -> None:
        self.closed = True


class FrameFromResultsTests(unittest.TestCase):
    def test_no_pose_means_no_frame(self) -> None:
        self.assertIsNone(frame_from_results(None, None, 1.0))
        self.assertIsNone(frame_from_results(SimpleNamespace(pose_landmarks=None), None, 1.0))

    def test_body_and_first_face(self) -> None:
        pose = SimpleNamespace(pose_landmarks=_lm_list([{"x": 0.1, "y": 0.2, "z": -0.3, "visibility": 0.9}]))
        faces = SimpleNamespace(
            multi_face_landmarks=[
                _lm_list([{"x": 0.4, "y": 0.5, "z": 0.0}]),
                _lm_list([{"x": 0.9, "y": 0.9, "z": 0.0}]),
            ]
        )
        frame = frame_from_results(pose, faces, 42.0)
        self.assertEqual(frame.timestamp, 42.0)
        self.assertEqual(frame.body[0].x, 0.1)
        self.assertEqual(frame.body[0].visibility, 0.9)
        self.assertEqual(len(frame.face), 1)
        self.assertEqual(frame.face[0].x, 0.4)
        self.assertIsNone(frame.face[0].visibility)

    def test_missing_face_results(self) -> None:
        pose = SimpleNamespace(pose_landmarks=_lm_list([{"x": 0.1, "y": 0.2, "z": 0.0}]))
        self.assertIsNone(frame_from_results(pose, SimpleNamespace(multi_face_landmarks=None), 0.0).face)


class MediapipeLandmarkSourceTests(unittest.TestCase):
    def test_exported_from_package_root(self) -> None:
        import posturecoach

        self.assertIs(posturecoach.MediapipeLandmarkSource, MediapipeLandmarkSource)
        self.assertIn("MediapipeLandmarkSource", posturecoach.__all__)

    def test_next_frame_before_start_reads_nothing(self) -> None:
        reads = []
        src = MediapipeLandmarkSource(read_bgr=lambda: reads.append(1))
        self.assertIsNone(src.next_frame())
        self.assertEqual(reads, [])

    def test_next_frame_runs_models_on_rgb(self) -> None:
        image = np.zeros((2, 2, 3), dtype=np.uint8)
        image[..., 0] = 255  # blue in BGR
        src = MediapipeLandmarkSource(read_bgr=lambda: image)
        src.pose = _FakeModel(SimpleNamespace(pose_landmarks=_lm_list([{"x": 0.5, "y": 0.5, "z": 0.0}])))
        src.face_mesh = _FakeModel(SimpleNamespace(multi_face_landmarks=None))
        frame = src.next_frame()
        self.assertEqual(len(frame.body), 1)
        self.assertEqual(int(src.pose.seen[0][0, 0, 2]), 255)

        pose, face = src.pose, src.face_mesh
        src.stop()
        self.assertTrue(pose.closed and face.closed)
        self.assertIsNone(src.next_frame())

    def test_empty_read_gives_no_frame(self) -> None:
        src = MediapipeLandmarkSource(read_bgr=lambda: None, enable_face=False)
        src.pose = _FakeModel(None)
        self.assertIsNone(src.next_frame())
        self.assertEqual(src.pose.seen, [])


if __name__ == "__main__":
    unittest.main()
