from __future__ import annotations

# MediaPipe Pose landmark indices (33-point topology). Only the head and
# shoulder points are used; hips are frequently out of frame at a desk.
NOSE = 0
LEFT_EYE = 2
RIGHT_EYE = 5
LEFT_EAR = 7
RIGHT_EAR = 8
LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12

MIN_BODY_LANDMARKS = RIGHT_SHOULDER + 1
