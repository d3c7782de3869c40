"""Landmark recordings.

One JSON object per line::

    {"t": 1234.5, "body": [[x, y, z, vis], ...], "face": [[x, y], ...]}

``body``/``face`` may be null; a null or short body means nobody was in view.
Points accept 2 to 4 numbers (x, y, optional z, optional visibility).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .types import Frame, Landmark


def _landmark(raw: Any, line_no: int) -> Landmark:
    if not isinstance(raw, (list, tuple)) or not 2 <= len(raw) <= 4:
        raise ValueError(f"line {line_no}: landmark must be a list of 2-4 numbers, got {raw!r}")
    try:
        vals = [None if v is None else float(v) for v in raw]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"line {line_no}: non-numeric landmark {raw!r}") from exc
    if vals[0] is None or vals[1] is None:
        raise ValueError(f"line {line_no}: landmark x/y are required")
    z = vals[2] if len(vals) > 2 else None
    vis = vals[3] if len(vals) > 3 else None
    return Landmark(x=vals[0], y=vals[1], z=z, visibility=vis)


def _landmarks(raw: Any, line_no: int) -> Optional[Tuple[Landmark, ...]]:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError(f"line {line_no}: expected a list of landmarks")
    return tuple(_landmark(p, line_no) for p in raw)


def parse_frame(line: str, line_no: int = 1) -> Frame:
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ValueError(f"line {line_no}: invalid JSON ({exc.msg})") from exc
    if not isinstance(data, dict):
        raise ValueError(f"line {line_no}: expected an object")
    if "t" not in data:
        raise ValueError(f"line {line_no}: missing 't'")
    try:
        ts = float(data["t"])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"line {line_no}: 't' must be a number") from exc
    body = _landmarks(data.get("body"), line_no) or ()
    face = _landmarks(data.get("face"), line_no)
    return Frame(timestamp=ts, body=body, face=face)


def load_recording(path: Path) -> List[Frame]:
    frames: List[Frame] = []
    with Path(path).open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            frames.append(parse_frame(line, line_no))
    return frames


def frame_to_dict(frame: Frame) -> dict:
    def pts(seq: Optional[Sequence[Landmark]]) -> Optional[list]:
        if seq is None:
            return None
        return [[p.x, p.y, p.z, p.visibility] for p in seq]

    return {"t": frame.timestamp, "body": pts(frame.body) if frame.body else None, "face": pts(frame.face)}


def write_recording(path: Path, frames: Iterable[Frame]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for frame in frames:
            f.write(json.dumps(frame_to_dict(frame)) + "\n")


class ReplaySource:
    """Serves recorded frames in order; doubles as the engine clock.

    ``clock()`` returns the timestamp of the frame the next ``next_frame``
    call will hand out, so an uncapped engine sees recorded time.
    """

    def __init__(self, frames: Sequence[Frame]) -> None:
        self._frames = list(frames)
        self._pos = 0
        self.started = False

    @classmethod
    def from_file(cls, path: Path) -> "ReplaySource":
        return cls(load_recording(path))

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def start(self) -> None:
        self._pos = 0
        self.started = True

    def stop(self) -> None:
        self.started = False

    def clock(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[min(self._pos, len(self._frames) - 1)].timestamp

    def next_frame(self) -> Optional[Frame]:
        if self.exhausted:
            return None
        frame = self._frames[self._pos]
        self._pos += 1
        if not frame.body:
            return None
        return frame
