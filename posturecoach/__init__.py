from __future__ import annotations

from .config import EngineConfig, load_engine_config
from .engine import Engine, EngineSnapshot, EngineStatus
from .types import EngineEvent, EventType, Frame, Issue, ISSUE_PRIORITY, Landmark
from .vision.mediapipe_source import MediapipeLandmarkSource, frame_from_results

__all__ = [
    "Engine",
    "EngineConfig",
    "EngineEvent",
    "EngineSnapshot",
    "EngineStatus",
    "EventType",
    "Frame",
    "ISSUE_PRIORITY",
    "Issue",
    "Landmark",
    "MediapipeLandmarkSource",
    "frame_from_results",
    "load_engine_config",
]
