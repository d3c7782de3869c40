from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from ..types import Issue


TITLES: Dict[Issue, str] = {
    Issue.TOO_CLOSE: "You're too close to the screen",
    Issue.TOO_FAR: "You're too far from the screen",
    Issue.HEAD_DOWN: "Head down detected",
    Issue.HEAD_UP: "Head up detected",
    Issue.HEAD_TILT_LEFT: "Head tilt detected",
    Issue.HEAD_TILT_RIGHT: "Head tilt detected",
    Issue.SHOULDERS_UNLEVEL: "Uneven shoulders",
    Issue.SHOULDERS_DEPTH_MISALIGNED: "Shoulders rotated",
    Issue.BODY_LEAN_LEFT: "Body leaning",
    Issue.BODY_LEAN_RIGHT: "Body leaning",
}

# Tips in display order; a tip applies when any of its issues is active.
TIPS: Tuple[Tuple[Tuple[Issue, ...], str], ...] = (
    ((Issue.TOO_CLOSE,), "Lean back ~1 arm's length."),
    ((Issue.TOO_FAR,), "Move a bit closer to the screen."),
    ((Issue.HEAD_DOWN,), "Raise your screen / tuck chin slightly."),
    ((Issue.HEAD_UP,), "Lower the screen so eyes look forward."),
    ((Issue.HEAD_TILT_LEFT, Issue.HEAD_TILT_RIGHT), "Center your head (ears over shoulders)."),
    ((Issue.SHOULDERS_UNLEVEL,), "Relax shoulders and level them."),
    ((Issue.SHOULDERS_DEPTH_MISALIGNED,), "Square shoulders to the camera."),
    ((Issue.BODY_LEAN_LEFT, Issue.BODY_LEAN_RIGHT), "Sit centered: feet flat, weight even."),
)

RESET_TIP = "Quick reset: roll shoulders + blink slowly."


def title_for(primary: Issue) -> str:
    return TITLES.get(primary, "Posture reminder")


def advice_for(states: Iterable[Issue], max_tips: int = 2) -> str:
    active = set(states)
    tips: List[str] = [tip for issues, tip in TIPS if active.intersection(issues)]
    tips.append(RESET_TIP)
    return " ".join(tips[:max_tips])
