from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from isaacgesture.core.types import HandLandmarks, Keypoint, PoseFrame, Vec2, clamp01


@dataclass
class TrackedSignal:
    """Named scalar with the previous frame's value kept only for the delta."""
    name: str
    current: Optional[float] = None
    previous: Optional[float] = None

    def push(self, value: float) -> Optional[float]:
        """Store a new sample; returns current - previous, or None on the first sample."""
        self.previous = self.current
        self.current = value
        if self.previous is None:
            return None
        return self.current - self.previous

    def reset(self) -> None:
        self.current = None
        self.previous = None


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


class SignalExtractor:
    """
    Derives scalar signals from one frame of landmarks.

    A signal whose keypoints are missing, under-confident or degenerate
    (NaN / inf) is simply not produced for that frame (None).
    """

    def __init__(self, min_conf: float) -> None:
        self.min_conf = float(min_conf)
        self._tracked: dict[str, TrackedSignal] = {}

    def reset(self) -> None:
        for sig in self._tracked.values():
            sig.reset()

    def keypoint(self, frame: PoseFrame, name: str) -> Optional[Keypoint]:
        kp = frame.get(name)
        if kp is None:
            return None
        if not _finite(kp.x, kp.y, kp.confidence) or kp.confidence < self.min_conf:
            return None
        return kp

    def distance(self, frame: PoseFrame, a: str, b: str, reference_length: float) -> Optional[float]:
        """Euclidean distance a-b divided by `reference_length`, clamped to [0, 1]."""
        ka = self.keypoint(frame, a)
        kb = self.keypoint(frame, b)
        if ka is None or kb is None or reference_length <= 0:
            return None
        d = math.hypot(kb.x - ka.x, kb.y - ka.y) / reference_length
        if not math.isfinite(d):
            return None
        return clamp01(d)

    def displacement(self, frame: PoseFrame, name: str, axis: str = "y") -> Optional[float]:
        """
        Frame-to-frame displacement of one keypoint along `axis`.

        None when the keypoint is unusable, and on the first usable frame
        (nothing to compare against). The current position always becomes
        the reference for the next usable frame.
        """
        kp = self.keypoint(frame, name)
        if kp is None:
            return None
        key = f"{name}.{axis}"
        sig = self._tracked.get(key)
        if sig is None:
            sig = self._tracked[key] = TrackedSignal(name=key)
        return sig.push(kp.y if axis == "y" else kp.x)

    def hand_openness(self, hands: Sequence[HandLandmarks], reference_ratio: float) -> Optional[float]:
        """Mean fingertip-to-wrist distance over palm width, scaled into [0, 1]."""
        if not hands or reference_ratio <= 0:
            return None
        pts = hands[0].points
        if len(pts) < 21:
            return None

        def dist(p: Vec2, q: Vec2) -> float:
            return math.hypot(p[0] - q[0], p[1] - q[1])

        palm = dist(pts[5], pts[17])
        if not math.isfinite(palm) or palm < 1e-6:
            return None
        wrist = pts[0]
        tips = (pts[8], pts[12], pts[16], pts[20])
        ratio = sum(dist(t, wrist) for t in tips) / len(tips) / palm
        if not math.isfinite(ratio):
            return None
        return clamp01(ratio / reference_ratio)
