from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from isaacgesture.core.config import Cooldowns, RotationTrigger
from isaacgesture.core.types import ClassifiedState, ControlEvent, EventKind

logger = logging.getLogger(__name__)

_ENGAGED = (ClassifiedState.TOWARDS, ClassifiedState.AWAY)


@dataclass
class CooldownGate:
    """Per-kind minimum interval between two emissions."""
    cooldown_ms: Dict[EventKind, int]
    _last_ms: Dict[EventKind, int] = field(default_factory=dict)

    def ready(self, kind: EventKind, t_ms: int) -> bool:
        last = self._last_ms.get(kind)
        if last is None:
            return True
        return (t_ms - last) >= self.cooldown_ms.get(kind, 0)

    def mark(self, kind: EventKind, t_ms: int) -> None:
        self._last_ms[kind] = t_ms

    def try_fire(self, kind: EventKind, t_ms: int) -> bool:
        if not self.ready(kind, t_ms):
            return False
        self.mark(kind, t_ms)
        return True

    def reset(self) -> None:
        self._last_ms.clear()


def cooldown_gate(cfg: Cooldowns) -> CooldownGate:
    return CooldownGate(cooldown_ms={
        EventKind.ROTATE: cfg.rotate_ms,
        EventKind.COUNTER_ROTATE: cfg.counter_rotate_ms,
        EventKind.TOGGLE: cfg.toggle_ms,
        EventKind.GRIP: cfg.grip_ms,
    })


class EventGenerator:
    """
    Turns classified-state transitions and raw displacements into ControlEvents.

    Rotation path:
      normal -> towards/away   counter += 1, ROTATE(direction)
      towards/away -> normal   counter -= 1 (never below 0),
                               COUNTER_ROTATE(-direction) if a reversal was pending
    The counter always tracks the transition, even when the cooldown
    swallows the event.

    Toggle path: |delta| > vertical threshold -> TOGGLE. No baseline involved.
    """

    def __init__(
        self,
        towards: RotationTrigger,
        away: RotationTrigger,
        cooldowns: Cooldowns,
        vertical_threshold: float,
    ) -> None:
        self.towards = towards
        self.away = away
        self.vertical_threshold = float(vertical_threshold)
        self.gate = cooldown_gate(cooldowns)

        self.counter: int = 0
        self._prev_rotation = ClassifiedState.NORMAL
        self._prev_grip = ClassifiedState.NORMAL
        self._engaged_direction: Optional[int] = None

    def reset(self) -> None:
        self.counter = 0
        self._prev_rotation = ClassifiedState.NORMAL
        self._prev_grip = ClassifiedState.NORMAL
        self._engaged_direction = None
        self.gate.reset()

    def _trigger(self, state: ClassifiedState) -> RotationTrigger:
        return self.towards if state == ClassifiedState.TOWARDS else self.away

    # ---------------------- rotation ----------------------

    def on_rotation_state(self, state: ClassifiedState, t_ms: int) -> list[ControlEvent]:
        prev = self._prev_rotation
        self._prev_rotation = state
        if prev == state:
            return []
        return self.on_transition(prev, state, t_ms)

    def on_transition(self, prev: ClassifiedState, cur: ClassifiedState, t_ms: int) -> list[ControlEvent]:
        if prev == ClassifiedState.NORMAL and cur in _ENGAGED:
            trig = self._trigger(cur)
            if not trig.enabled:
                return []
            self.counter += 1
            self._engaged_direction = trig.direction
            if not self.gate.try_fire(EventKind.ROTATE, t_ms):
                logger.debug("rotate suppressed by cooldown at %d ms", t_ms)
                return []
            return [ControlEvent(t_ms=t_ms, kind=EventKind.ROTATE, value=trig.direction)]

        if prev in _ENGAGED and cur == ClassifiedState.NORMAL:
            pending = self.counter > 0
            self.counter = max(0, self.counter - 1)
            if not pending:
                return []
            direction = self._engaged_direction
            if direction is None:
                direction = self._trigger(prev).direction
            if self.counter == 0:
                self._engaged_direction = None
            if not self.gate.try_fire(EventKind.COUNTER_ROTATE, t_ms):
                logger.debug("counter-rotate suppressed by cooldown at %d ms", t_ms)
                return []
            return [ControlEvent(t_ms=t_ms, kind=EventKind.COUNTER_ROTATE, value=-direction)]

        # towards <-> away: observed, nothing to emit
        return []

    # ---------------------- toggle / grip ----------------------

    def on_displacement(self, delta: Optional[float], t_ms: int) -> list[ControlEvent]:
        if delta is None or abs(delta) <= self.vertical_threshold:
            return []
        if not self.gate.try_fire(EventKind.TOGGLE, t_ms):
            return []
        return [ControlEvent(t_ms=t_ms, kind=EventKind.TOGGLE)]

    def on_grip_state(self, state: ClassifiedState, t_ms: int) -> list[ControlEvent]:
        prev = self._prev_grip
        self._prev_grip = state
        if prev == ClassifiedState.NORMAL and state == ClassifiedState.TOWARDS:
            if self.gate.try_fire(EventKind.GRIP, t_ms):
                return [ControlEvent(t_ms=t_ms, kind=EventKind.GRIP)]
        return []
