from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Tuple

from isaacgesture.core.config import KeyBindings, PulseTiming
from isaacgesture.core.types import ControlEvent, EventKind, KeyAction, KeySignal

logger = logging.getLogger(__name__)


class KeySink(Protocol):
    def send(self, sig: KeySignal) -> None: ...


_LEVEL = "rotation"
_TOGGLE_CHANNELS = {
    EventKind.TOGGLE: "toggle",
    EventKind.GRIP: "grip",
    EventKind.RESET: "reset",
}


class ControlEmitter:
    """
    Turns ControlEvents into timed key pulses.

    - rotation is a level: a new direction presses its key, which is released
      `level_hold_ms` later. Same direction again does nothing.
    - toggle / grip / reset are pulses: down now, up `toggle_delay_ms` later.
      A pulse arriving while the previous one of the same kind is still down
      is dropped.

    Releases are driven by the frame clock: call tick(t_ms) once per frame.
    Fire-and-forget; nothing is read back from the viewer.
    """

    def __init__(self, sink: KeySink, pulses: PulseTiming, keys: KeyBindings) -> None:
        self.sink = sink
        self.pulses = pulses
        self.keys = keys

        self.level: int = 0
        self.toggle_bits: Dict[str, bool] = {"toggle": False, "grip": False}
        # channel -> (key, release_at_ms)
        self._pending: Dict[str, Tuple[str, int]] = {}

    def __call__(self, ev: ControlEvent) -> None:
        self.handle(ev)

    @property
    def held(self) -> Dict[str, str]:
        return {ch: key for ch, (key, _) in self._pending.items()}

    def handle(self, ev: ControlEvent) -> None:
        self.tick(ev.t_ms)
        if ev.kind in (EventKind.ROTATE, EventKind.COUNTER_ROTATE):
            self._set_level(ev.value, ev.t_ms)
        elif ev.kind in _TOGGLE_CHANNELS:
            self._pulse(_TOGGLE_CHANNELS[ev.kind], ev.t_ms)

    def tick(self, t_ms: int) -> None:
        for channel, (key, due) in list(self._pending.items()):
            if t_ms >= due:
                self._up(channel, key, t_ms)

    def release_all(self, t_ms: int) -> None:
        # Make absolutely sure nothing is stuck down.
        for channel, (key, _) in list(self._pending.items()):
            self._up(channel, key, t_ms)
        self.level = 0

    # ---------------------- internals ----------------------

    def _key_for_level(self, value: int) -> Optional[str]:
        if value > 0:
            return self.keys.rotate_cw
        if value < 0:
            return self.keys.rotate_ccw
        return None

    def _set_level(self, value: int, t_ms: int) -> None:
        if value == self.level:
            return
        running = self._pending.get(_LEVEL)
        if running is not None:
            self._up(_LEVEL, running[0], t_ms)
        self.level = value
        key = self._key_for_level(value)
        if key is None:
            return
        self._down(_LEVEL, key, t_ms, t_ms + self.pulses.level_hold_ms)

    def _pulse(self, channel: str, t_ms: int) -> None:
        if channel in self._pending:
            logger.debug("%s pulse still running at %d ms; dropped", channel, t_ms)
            return
        if channel in self.toggle_bits:
            self.toggle_bits[channel] = not self.toggle_bits[channel]
        key = getattr(self.keys, channel)
        self._down(channel, key, t_ms, t_ms + self.pulses.toggle_delay_ms)

    def _down(self, channel: str, key: str, t_ms: int, release_at: int) -> None:
        self._pending[channel] = (key, release_at)
        self.sink.send(KeySignal(t_ms=t_ms, key=key, action=KeyAction.DOWN))

    def _up(self, channel: str, key: str, t_ms: int) -> None:
        self._pending.pop(channel, None)
        self.sink.send(KeySignal(t_ms=t_ms, key=key, action=KeyAction.UP))
