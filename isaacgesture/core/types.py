"""
ISAAC Gesture Bridge — core contracts.

Landmark source → interpreter → emitter. Every stage talks through the
frozen dataclasses below; nothing else crosses a stage boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


# ============================================================
# Landmark source → Interpreter (Camera / Vision → Logic)
# ============================================================

Vec2 = Tuple[float, float]


@dataclass(frozen=True)
class Keypoint:
    """Named body keypoint in pixel coordinates, confidence in [0, 1]."""
    name: str
    x: float
    y: float
    confidence: float


@dataclass(frozen=True)
class HandLandmarks:
    """
    One hand: 21 ordered points, x/y normalized to [0, 1].

    Index order follows the usual hand model (0 = wrist, 4/8/12/16/20 = tips).
    """
    points: Tuple[Vec2, ...]
    handedness: str = "unknown"   # "left" | "right" | "unknown"


@dataclass(frozen=True)
class PoseFrame:
    """A timestamped snapshot from the landmark source."""
    t_ms: int
    keypoints: Dict[str, Keypoint] = field(default_factory=dict)
    hands: Tuple[HandLandmarks, ...] = ()

    def get(self, name: str) -> Optional[Keypoint]:
        return self.keypoints.get(name)


# ============================================================
# Interpreter → Emitter (Logic → Key input)
# ============================================================

class ClassifiedState(str, Enum):
    NORMAL = "normal"
    TOWARDS = "towards"
    AWAY = "away"


class EventKind(str, Enum):
    ROTATE = "ROTATE"                  # normal -> towards/away
    COUNTER_ROTATE = "COUNTER_ROTATE"  # towards/away -> normal
    TOGGLE = "TOGGLE"                  # vertical wrist flick
    GRIP = "GRIP"                      # hand closing
    RESET = "RESET"                    # session (re)start


@dataclass(frozen=True)
class ControlEvent:
    """
    A discrete, instantaneous control event.

    `value` is the rotation direction (+1 / -1) for ROTATE and
    COUNTER_ROTATE, and unused (0) for the pulse-only kinds.
    """
    t_ms: int
    kind: EventKind
    value: int = 0


class KeyAction(str, Enum):
    DOWN = "DOWN"
    UP = "UP"


@dataclass(frozen=True)
class KeySignal:
    """One simulated key down / key up, as dispatched to the viewer."""
    t_ms: int
    key: str
    action: KeyAction


def clamp01(x: float) -> float:
    if x < 0.0:
        return 0.0
    if x > 1.0:
        return 1.0
    return x
