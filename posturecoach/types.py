from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Landmark:
    # Normalised coords in [0,1] (x,y); z is signed depth relative to the hips.
    x: float
    y: float
    z: Optional[float] = None
    visibility: Optional[float] = None

    def mirrored(self) -> "Landmark":
        return Landmark(x=1.0 - self.x, y=self.y, z=self.z, visibility=self.visibility)


@dataclass(frozen=True)
class Frame:
    timestamp: float
    body: Tuple[Landmark, ...] = ()
    face: Optional[Tuple[Landmark, ...]] = None


class Issue(str, Enum):
    TOO_CLOSE = "too_close"
    TOO_FAR = "too_far"
    HEAD_DOWN = "head_down"
    HEAD_UP = "head_up"
    HEAD_TILT_LEFT = "head_tilt_left"
    HEAD_TILT_RIGHT = "head_tilt_right"
    SHOULDERS_UNLEVEL = "shoulders_unlevel"
    SHOULDERS_DEPTH_MISALIGNED = "shoulders_depth_misaligned"
    BODY_LEAN_LEFT = "body_lean_left"
    BODY_LEAN_RIGHT = "body_lean_right"
    GOOD = "good"
    NO_PERSON = "no_person"

    @property
    def is_bad(self) -> bool:
        return self not in (Issue.GOOD, Issue.NO_PERSON)


# Primary-issue tie-breaking order. Index into this tuple is the slot used by
# the debounce arrays.
ISSUE_PRIORITY: Tuple[Issue, ...] = (
    Issue.TOO_CLOSE,
    Issue.TOO_FAR,
    Issue.HEAD_DOWN,
    Issue.HEAD_UP,
    Issue.HEAD_TILT_LEFT,
    Issue.HEAD_TILT_RIGHT,
    Issue.SHOULDERS_UNLEVEL,
    Issue.SHOULDERS_DEPTH_MISALIGNED,
    Issue.BODY_LEAN_LEFT,
    Issue.BODY_LEAN_RIGHT,
)

ISSUE_SLOT: Dict[Issue, int] = {issue: idx for idx, issue in enumerate(ISSUE_PRIORITY)}


class EventType(str, Enum):
    POSTURE_ALERT = "posture_alert"
    DISTANCE_ALERT = "distance_alert"
    PERSON_LOST = "person_lost"
    COACH_REMINDER = "coach_reminder"


@dataclass(frozen=True)
class EngineEvent:
    type: EventType
    ts: float
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "ts": self.ts, "payload": dict(self.payload)}
