from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config import CoachingConfig
from ..types import ISSUE_PRIORITY, ISSUE_SLOT, Issue
from .messages import advice_for, title_for


@dataclass
class CoachingWindowState:
    window_start: Optional[float] = None
    last_tick: Optional[float] = None
    good_ms: float = 0.0
    bad_ms: float = 0.0
    per_issue_ms: Dict[Issue, float] = field(default_factory=dict)
    continuous_ms: Dict[Issue, float] = field(default_factory=dict)
    last_reminder_at: Optional[float] = None


@dataclass(frozen=True)
class CoachReminder:
    states: Tuple[Issue, ...]
    primary: Issue
    window_ms: float
    good_ms: float
    bad_ms: float
    top_bad: Optional[Issue]
    trigger: str
    features: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "states": [s.value for s in self.states],
            "primary": self.primary.value,
            "window_ms": self.window_ms,
            "good_ms": self.good_ms,
            "bad_ms": self.bad_ms,
            "top_bad": self.top_bad.value if self.top_bad is not None else None,
            "trigger": self.trigger,
            "title": title_for(self.primary),
            "advice": advice_for(self.states),
            "features": dict(self.features),
        }


def _priority(issue: Issue) -> int:
    return ISSUE_SLOT.get(issue, len(ISSUE_PRIORITY))


class CoachingAggregator:
    """Two-tier reminder policy over a rolling window.

    Immediate: a single bad issue active without a break for
    ``continuous_bad_ms``. Window end: bad time in the closing window reached
    ``bad_dominance_ms``. Both share ``cooldown_ms``.
    """

    def __init__(self, config: Optional[CoachingConfig] = None) -> None:
        self.config = config or CoachingConfig()
        self.state = CoachingWindowState()

    def _cooled_down(self, now: float) -> bool:
        last = self.state.last_reminder_at
        return last is None or now - last >= self.config.cooldown_ms

    def update(
        self,
        now: float,
        active: Sequence[Issue],
        primary: Issue,
        features: Optional[Dict[str, Any]] = None,
    ) -> Optional[CoachReminder]:
        if primary == Issue.NO_PERSON:
            return None

        st = self.state
        cfg = self.config

        if st.last_tick is None:
            st.last_tick = now
            if st.window_start is None:
                st.window_start = now
            return None

        dt = max(0.0, now - st.last_tick)
        st.last_tick = now

        bad_active = [issue for issue in active if issue.is_bad]
        if bad_active:
            st.bad_ms += dt
        else:
            st.good_ms += dt

        if active:
            for issue in active:
                st.per_issue_ms[issue] = st.per_issue_ms.get(issue, 0.0) + dt
        else:
            st.per_issue_ms[Issue.GOOD] = st.per_issue_ms.get(Issue.GOOD, 0.0) + dt

        active_set = set(active)
        for issue in set(st.continuous_ms) | active_set:
            if issue in active_set:
                st.continuous_ms[issue] = st.continuous_ms.get(issue, 0.0) + dt
            else:
                st.continuous_ms[issue] = 0.0

        if self._cooled_down(now):
            streaks = [
                issue
                for issue in sorted(bad_active, key=_priority)
                if st.continuous_ms.get(issue, 0.0) >= cfg.continuous_bad_ms
            ]
            if streaks:
                trigger_issue = streaks[0]
                reminder = self._reminder(now, active, primary, trigger_issue, "continuous", features)
                st.continuous_ms[trigger_issue] = 0.0
                st.last_reminder_at = now
                return reminder

        if st.window_start is None:
            st.window_start = now
        if now - st.window_start < cfg.window_ms:
            return None

        reminder = None
        top_bad = self.top_bad()
        if self._cooled_down(now) and st.bad_ms >= cfg.bad_dominance_ms:
            reminder = self._reminder(now, active, primary, top_bad, "window", features)
            st.last_reminder_at = now

        st.window_start = now
        st.good_ms = 0.0
        st.bad_ms = 0.0
        st.per_issue_ms.clear()
        return reminder

    def top_bad(self) -> Optional[Issue]:
        best: Optional[Issue] = None
        best_ms = 0.0
        for issue in sorted(self.state.per_issue_ms, key=_priority):
            if not issue.is_bad:
                continue
            ms = self.state.per_issue_ms[issue]
            if ms > best_ms:
                best, best_ms = issue, ms
        return best

    def _reminder(
        self,
        now: float,
        active: Sequence[Issue],
        primary: Issue,
        top_bad: Optional[Issue],
        trigger: str,
        features: Optional[Dict[str, Any]],
    ) -> CoachReminder:
        st = self.state
        window_ms = now - st.window_start if st.window_start is not None else 0.0
        return CoachReminder(
            states=tuple(active),
            primary=primary,
            window_ms=window_ms,
            good_ms=st.good_ms,
            bad_ms=st.bad_ms,
            top_bad=top_bad,
            trigger=trigger,
            features=dict(features or {}),
        )

    def suspend(self) -> None:
        # Absence breaks every streak and is not credited to either bucket.
        self.state.last_tick = None
        for issue in self.state.continuous_ms:
            self.state.continuous_ms[issue] = 0.0

    def shift(self, delta_ms: float) -> None:
        st = self.state
        if st.window_start is not None:
            st.window_start += delta_ms
        if st.last_tick is not None:
            st.last_tick += delta_ms
        if st.last_reminder_at is not None:
            st.last_reminder_at += delta_ms

    def reset(self) -> None:
        self.state = CoachingWindowState()
