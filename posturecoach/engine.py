from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
import time
import traceback
from typing import Callable, List, Optional, Protocol, Tuple

from .coaching.aggregator import CoachingAggregator
from .config import EngineConfig
from .posture.alerts import AlertGate
from .posture.calibration import Baseline, Calibrator
from .posture.classifier import classify, issue_flags
from .posture.features import FeatureSet, build_features, has_body, measure
from .posture.stabilizer import Stabilizer
from .types import EngineEvent, EventType, Frame, Issue
from .utils.logfile import append_log


class EngineStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class LandmarkSource(Protocol):
    def start(self) -> None: ...

    def next_frame(self) -> Optional[Frame]: ...

    def stop(self) -> None: ...


EventSink = Callable[[EngineEvent], None]
Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class EngineState:
    calibrator: Calibrator
    stabilizer: Stabilizer
    coaching: CoachingAggregator
    alerts: AlertGate
    primary: Issue = Issue.NO_PERSON
    active: Tuple[Issue, ...] = ()
    features: Optional[FeatureSet] = None
    last_frame_at: Optional[float] = None
    paused_at: Optional[float] = None
    frames_processed: int = 0

    @classmethod
    def fresh(cls, config: EngineConfig) -> "EngineState":
        return cls(
            calibrator=Calibrator(samples=config.calibration.samples),
            stabilizer=Stabilizer(
                persist_ms=config.debounce.persist_ms,
                clear_ms=config.debounce.clear_ms,
            ),
            coaching=CoachingAggregator(config.coaching),
            alerts=AlertGate(
                persist_ms=config.alerts.persist_ms,
                cooldown_ms=config.alerts.cooldown_ms,
            ),
        )

    def shift(self, delta_ms: float) -> None:
        self.stabilizer.shift(delta_ms)
        self.coaching.shift(delta_ms)
        self.alerts.shift(delta_ms)
        if self.last_frame_at is not None:
            self.last_frame_at += delta_ms


@dataclass(frozen=True)
class EngineSnapshot:
    status: EngineStatus
    primary: Issue
    active: Tuple[Issue, ...]
    baseline: Baseline
    calibration_progress: Tuple[float, float]
    frames_processed: int
    features: Optional[FeatureSet] = None


class Engine:
    """Per-frame posture pipeline with start/pause/stop lifecycle.

    Single-threaded: the caller drives ``tick`` (or ``run``). Lifecycle calls
    made from inside a tick, e.g. by the sink, take effect in call order once
    that tick has finished.
    """

    def __init__(
        self,
        source: LandmarkSource,
        sink: Optional[EventSink] = None,
        config: Optional[EngineConfig] = None,
        clock: Optional[Clock] = None,
        sleep: Callable[[float], None] = time.sleep,
        log_path: Optional[Path] = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.config = config or EngineConfig()
        self.clock = clock or monotonic_ms
        self._sleep = sleep
        self.log_path = log_path

        self._status = EngineStatus.IDLE
        self._state = EngineState.fresh(self.config)
        self._in_tick = False
        self._deferred: List[str] = []

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def primary(self) -> Issue:
        return self._state.primary

    @property
    def active_issues(self) -> Tuple[Issue, ...]:
        return self._state.active

    def snapshot(self) -> EngineSnapshot:
        st = self._state
        return EngineSnapshot(
            status=self._status,
            primary=st.primary,
            active=st.active,
            baseline=replace(st.calibrator.baseline),
            calibration_progress=st.calibrator.progress(),
            frames_processed=st.frames_processed,
            features=st.features,
        )

    # Lifecycle

    def start(self) -> None:
        if self._in_tick:
            self._deferred.append("start")
            return
        if self._status in (EngineStatus.RUNNING, EngineStatus.PAUSED):
            return
        self._log("INFO", f"event=start from={self._status.value}")
        self._reset_state()
        try:
            self.source.start()
        except Exception as exc:
            self._status = EngineStatus.IDLE
            self._log("ERROR", f"event=start_failed error={exc}")
            self._log("ERROR", traceback.format_exc().strip())
            raise
        self._status = EngineStatus.RUNNING
        self._log("INFO", f"state={self._status.value} fps_cap={self.config.fps_cap} mirror={self.config.mirror}")

    def pause(self) -> None:
        if self._in_tick:
            self._deferred.append("pause")
            return
        now = self.clock()
        st = self._state
        if self._status == EngineStatus.RUNNING:
            st.paused_at = now
            self._status = EngineStatus.PAUSED
            self._log("INFO", "event=pause")
        elif self._status == EngineStatus.PAUSED:
            paused_for = max(0.0, now - st.paused_at) if st.paused_at is not None else 0.0
            # Time spent paused must not count toward debounce or coaching.
            st.shift(paused_for)
            st.paused_at = None
            self._status = EngineStatus.RUNNING
            self._log("INFO", f"event=resume paused_ms={paused_for:.0f}")

    def stop(self) -> None:
        if self._in_tick:
            self._deferred.append("stop")
            return
        self._log("INFO", f"event=stop from={self._status.value}")
        if self._status in (EngineStatus.RUNNING, EngineStatus.PAUSED):
            try:
                self.source.stop()
            except Exception as exc:
                self._log("WARNING", f"event=source_stop_failed error={exc}")
        self._reset_state()
        self._status = EngineStatus.STOPPED

    def _reset_state(self) -> None:
        self._state = EngineState.fresh(self.config)
        self._deferred = []

    # Frame loop

    def run(self, max_ticks: Optional[int] = None) -> int:
        ticks = 0
        interval_s = self.config.min_frame_interval_ms / 1000.0
        while self._status in (EngineStatus.RUNNING, EngineStatus.PAUSED):
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.tick()
            ticks += 1
            self._sleep(interval_s)
        return ticks

    def tick(self) -> List[EngineEvent]:
        if self._status != EngineStatus.RUNNING:
            return []
        st = self._state
        now = self.clock()
        # Frames above the cap are dropped, never queued.
        min_dt = self.config.min_frame_interval_ms
        if st.last_frame_at is not None and now - st.last_frame_at < min_dt:
            return []
        st.last_frame_at = now

        self._in_tick = True
        try:
            events = self._process(now)
            self._deliver(events)
        finally:
            self._in_tick = False
        self._apply_deferred()
        return events

    def _process(self, now: float) -> List[EngineEvent]:
        st = self._state
        cfg = self.config
        frame = self.source.next_frame()
        if not has_body(frame):
            return self._person_lost(now)

        m = measure(frame, mirror=cfg.mirror, min_visibility=cfg.thresholds.min_shoulder_visibility)
        if m is None:
            return []
        if not cfg.enable_face:
            m = replace(m, face_area=None)

        for component in st.calibrator.observe(m.shoulder_mid_x, m.neck_y, m.face_area):
            b = st.calibrator.baseline
            self._log(
                "INFO",
                f"event=calibrated component={component} shoulder_x={b.shoulder_x} "
                f"neck_y={b.neck_y} face_area={b.face_area}",
            )

        features = build_features(m, st.calibrator.baseline, cfg.thresholds)
        candidates = classify(features, cfg.thresholds)
        result = st.stabilizer.update(candidates, now)
        if result.primary != st.primary:
            self._log("INFO", f"event=primary_changed from={st.primary.value} to={result.primary.value}")
        st.primary = result.primary
        st.active = result.active
        st.features = features
        st.frames_processed += 1

        flags = issue_flags(features, cfg.thresholds)
        events = st.alerts.observe(now, result.primary, result.active, features, flags)

        reminder = st.coaching.update(now, result.active, result.primary, features.to_dict())
        if reminder is not None:
            self._log(
                "INFO",
                f"event=coach_reminder trigger={reminder.trigger} primary={reminder.primary.value} "
                f"bad_ms={reminder.bad_ms:.0f}",
            )
            events.append(EngineEvent(type=EventType.COACH_REMINDER, ts=now, payload=reminder.to_dict()))
        return events

    def _person_lost(self, now: float) -> List[EngineEvent]:
        st = self._state
        if st.primary == Issue.NO_PERSON:
            return []
        previous = st.primary
        st.primary = Issue.NO_PERSON
        st.active = ()
        st.features = None
        st.stabilizer.mark_no_person()
        st.coaching.suspend()
        st.alerts.person_lost()
        self._log("INFO", f"event=person_lost previous={previous.value}")
        return [EngineEvent(type=EventType.PERSON_LOST, ts=now, payload={"previous": previous.value})]

    def _deliver(self, events: List[EngineEvent]) -> None:
        if self.sink is None:
            return
        for event in events:
            try:
                self.sink(event)
            except Exception as exc:
                self._log("WARNING", f"event=sink_failed type={event.type.value} error={exc}")

    def _apply_deferred(self) -> None:
        pending, self._deferred = self._deferred, []
        for op in pending:
            if op == "stop":
                self.stop()
            elif op == "start":
                self.start()
            elif op == "pause":
                self.pause()

    def _log(self, level: str, message: str) -> None:
        append_log(self.log_path, level, message)
