from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from ..types import ISSUE_PRIORITY, ISSUE_SLOT, Issue


class DebouncePhase(str, Enum):
    INACTIVE = "inactive"
    PENDING = "pending"
    ACTIVE = "active"
    CLEARING = "clearing"


@dataclass
class IssueDebounceState:
    since: Optional[float] = None
    last_seen: Optional[float] = None
    active: bool = False
    # Whether the issue was a candidate on the most recent update.
    present: bool = False

    def phase(self) -> DebouncePhase:
        if self.active:
            return DebouncePhase.ACTIVE if self.present else DebouncePhase.CLEARING
        if self.since is not None:
            return DebouncePhase.PENDING
        return DebouncePhase.INACTIVE


@dataclass(frozen=True)
class Stabilized:
    active: Tuple[Issue, ...]
    primary: Issue


class Stabilizer:
    """Hysteresis debounce over the per-frame candidate issues.

    An issue turns active after ``persist_ms`` of unbroken presence and turns
    inactive only after ``clear_ms`` without a sighting. Pending issues that
    disappear go straight back to inactive.
    """

    def __init__(self, persist_ms: float = 450.0, clear_ms: float = 650.0) -> None:
        self.persist_ms = float(persist_ms)
        self.clear_ms = float(clear_ms)
        self._slots = [IssueDebounceState() for _ in ISSUE_PRIORITY]
        self.primary = Issue.NO_PERSON

    def update(self, candidates: Iterable[Issue], now: float) -> Stabilized:
        seen = set(candidates)
        for issue, st in zip(ISSUE_PRIORITY, self._slots):
            if issue in seen:
                st.present = True
                st.last_seen = now
                if st.since is None:
                    st.since = now
                if not st.active and now - st.since >= self.persist_ms:
                    st.active = True
                continue

            st.present = False
            if st.active:
                if st.last_seen is None or now - st.last_seen >= self.clear_ms:
                    st.active = False
                    st.since = None
            else:
                st.since = None

        active = self.active_issues()
        self.primary = active[0] if active else Issue.GOOD
        return Stabilized(active=active, primary=self.primary)

    def active_issues(self) -> Tuple[Issue, ...]:
        return tuple(issue for issue, st in zip(ISSUE_PRIORITY, self._slots) if st.active)

    def state_of(self, issue: Issue) -> IssueDebounceState:
        return self._slots[ISSUE_SLOT[issue]]

    def phase(self, issue: Issue) -> DebouncePhase:
        return self.state_of(issue).phase()

    def mark_no_person(self) -> None:
        self.reset()

    def shift(self, delta_ms: float) -> None:
        for st in self._slots:
            if st.since is not None:
                st.since += delta_ms
            if st.last_seen is not None:
                st.last_seen += delta_ms

    def reset(self) -> None:
        for st in self._slots:
            st.since = None
            st.last_seen = None
            st.active = False
            st.present = False
        self.primary = Issue.NO_PERSON
