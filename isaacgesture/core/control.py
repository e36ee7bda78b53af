from __future__ import annotations
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class ControlState:
    """
    ON/OFF switch shared by the runtime loop, hotkeys and tray.

    OFF ends the tracking session and makes the emitter let go of every key.
    Writers get back whether the flag actually flipped.
    """
    _enabled: bool = True
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def set_enabled(self, value: bool) -> bool:
        with self._lock:
            changed = self._enabled != bool(value)
            self._enabled = bool(value)
        return changed

    def toggle(self) -> bool:
        """Flip the flag and return the new value."""
        with self._lock:
            self._enabled = not self._enabled
            now = self._enabled
        return now
