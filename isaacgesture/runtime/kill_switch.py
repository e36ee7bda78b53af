from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from isaacgesture.core.control import ControlState
from isaacgesture.core.types import ControlEvent, EventKind
from isaacgesture.injector.bus import ControlBus
from isaacgesture.injector.emitter import ControlEmitter
from isaacgesture.interpreter.state_machine import Interpreter

logger = logging.getLogger(__name__)


@dataclass
class KillSwitch:
    """
    Central safety gate.
    If ControlState goes OFF, we:
      - end the interpreter session (baseline and counters discarded)
      - release every key still held by the emitter
      - block all publishing
    Going back ON starts a fresh session and sends a viewer reset pulse.
    """
    state: ControlState
    interp: Interpreter
    bus: ControlBus
    emitter: Optional[ControlEmitter] = None

    _last_enabled: bool = True

    def guard(self, t_ms: int) -> None:
        enabled = self.state.is_enabled()
        if enabled == self._last_enabled:
            return

        self._last_enabled = enabled

        if not enabled:
            # Transition -> OFF: hard stop
            logger.info("OFF at %d ms: session ended, keys released", t_ms)
            self.interp.set_off(True)
            self._release_all(t_ms)
        else:
            # Transition -> ON: new session
            logger.info("ON at %d ms: new session", t_ms)
            self.interp.set_off(False)
            self.bus.publish(ControlEvent(t_ms=t_ms, kind=EventKind.RESET))

    def swap_interpreter(self, interp: Interpreter) -> None:
        """Install a rebuilt interpreter; while OFF it stays parked until the next ON."""
        interp.set_off(not self._last_enabled)
        self.interp = interp

    def allow(self) -> bool:
        return self.state.is_enabled()

    def apply(self, ev: ControlEvent) -> None:
        """Publish a ControlEvent ONLY if enabled."""
        if not self.allow():
            return
        self.bus.publish(ev)

    def shutdown(self, t_ms: int) -> None:
        self.state.set_enabled(False)
        self.guard(t_ms)
        # guard is a no-op if we were already OFF; release anyway
        self._release_all(t_ms)

    def _release_all(self, t_ms: int) -> None:
        if self.emitter is not None:
            self.emitter.release_all(t_ms)
