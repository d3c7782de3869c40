from __future__ import annotations

from .calibration import Baseline, Calibrator
from .classifier import classify
from .features import FeatureSet, build_features, measure
from .stabilizer import Stabilizer

__all__ = ["Baseline", "Calibrator", "classify", "FeatureSet", "build_features", "measure", "Stabilizer"]
