from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..types import EngineEvent, EventType, Issue
from .features import FeatureSet


@dataclass
class AlertGate:
    """Short-horizon alerts on the primary issue.

    Fires a ``posture_alert`` once the same bad primary issue has held for
    ``persist_ms`` and at least ``cooldown_ms`` has passed since the previous
    alert. A ``distance_alert`` rides along when the user is too close or too
    far and the face baseline is known.
    """

    persist_ms: float = 900.0
    cooldown_ms: float = 3_500.0

    primary: Issue = Issue.NO_PERSON
    primary_since: Optional[float] = None
    last_alert_at: Optional[float] = None

    def observe(
        self,
        now: float,
        primary: Issue,
        active: Tuple[Issue, ...],
        features: FeatureSet,
        flags: Dict[str, bool],
    ) -> List[EngineEvent]:
        if primary != self.primary or self.primary_since is None:
            self.primary = primary
            self.primary_since = now

        if not primary.is_bad:
            return []
        if now - self.primary_since < self.persist_ms:
            return []
        if self.last_alert_at is not None and now - self.last_alert_at < self.cooldown_ms:
            return []

        self.last_alert_at = now
        payload: Dict[str, Any] = {
            "state": primary.value,
            "states": [issue.value for issue in active],
            "features": features.to_dict(),
            "flags": dict(flags),
        }
        events = [EngineEvent(type=EventType.POSTURE_ALERT, ts=now, payload=payload)]

        too_close = Issue.TOO_CLOSE in active
        too_far = Issue.TOO_FAR in active
        if (too_close or too_far) and features.face_baseline and features.face_area is not None:
            events.append(
                EngineEvent(
                    type=EventType.DISTANCE_ALERT,
                    ts=now,
                    payload={
                        "distance_signal": features.face_area,
                        "baseline": features.face_baseline,
                        "too_close": too_close,
                        "too_far": too_far,
                    },
                )
            )
        return events

    def person_lost(self) -> None:
        self.primary = Issue.NO_PERSON
        self.primary_since = None

    def shift(self, delta_ms: float) -> None:
        if self.primary_since is not None:
            self.primary_since += delta_ms
        if self.last_alert_at is not None:
            self.last_alert_at += delta_ms

    def reset(self) -> None:
        self.primary = Issue.NO_PERSON
        self.primary_since = None
        self.last_alert_at = None
