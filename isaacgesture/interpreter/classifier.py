from __future__ import annotations

import math
from dataclasses import dataclass

from isaacgesture.core.types import ClassifiedState


@dataclass
class StateClassifier:
    """
    Baseline-relative three-way classifier for one distance signal.

    The first available value becomes the baseline for the whole session.
    Classification only looks at (value - baseline); `state` keeps the last
    result so unavailable frames hold it.
    """
    shrink: float
    grow: float

    baseline: float | None = None
    state: ClassifiedState = ClassifiedState.NORMAL

    def classify(self, value: float) -> ClassifiedState:
        assert self.baseline is not None
        diff = value - self.baseline
        if diff < -self.shrink:
            return ClassifiedState.TOWARDS
        if diff > self.grow:
            return ClassifiedState.AWAY
        return ClassifiedState.NORMAL

    def update(self, value: float | None) -> ClassifiedState:
        if value is None or not math.isfinite(value):
            return self.state

        if self.baseline is None:
            self.baseline = value
            self.state = ClassifiedState.NORMAL
            return self.state

        self.state = self.classify(value)
        return self.state

    def reset(self) -> None:
        self.baseline = None
        self.state = ClassifiedState.NORMAL
