from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from evdev import UInput, ecodes as e

from isaacgesture.core.config import KeyBindings
from isaacgesture.core.types import KeyAction, KeySignal


def _code(key: str) -> int:
    code = getattr(e, f"KEY_{key.upper()}", None)
    if code is None:
        raise ValueError(f"no uinput key code for {key!r}")
    return code


@dataclass
class UInputKeyboard:
    """
    Minimal keyboard injector using Linux uinput.
    Keep it boring. The interpreter is the brain.
    """
    ui: UInput

    @classmethod
    def create(cls, keys: KeyBindings) -> "UInputKeyboard":
        codes: Iterable[int] = sorted({
            _code(keys.rotate_cw), _code(keys.rotate_ccw),
            _code(keys.toggle), _code(keys.grip), _code(keys.reset),
        })
        ui = UInput({e.EV_KEY: list(codes)}, name="ISAAC Gesture Virtual Keyboard")
        return cls(ui=ui)

    def send(self, sig: KeySignal) -> None:
        self.ui.write(e.EV_KEY, _code(sig.key), 1 if sig.action == KeyAction.DOWN else 0)
        self.ui.syn()

    def close(self) -> None:
        self.ui.close()
