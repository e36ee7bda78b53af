from __future__ import annotations

import logging

from pynput import keyboard

from isaacgesture.core.control import ControlState
from isaacgesture.core.ipc_state import set_enabled

logger = logging.getLogger(__name__)

CTRL_KEYS = {keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}
ALT_KEYS = {keyboard.Key.alt, keyboard.Key.alt_l, keyboard.Key.alt_r}


class HotkeyHandler:
    """
    Global hotkeys (X11):
    - Ctrl+Alt+Space: Toggle ON/OFF
    - Ctrl+Alt+Esc:   Panic OFF
    """

    def __init__(self, state: ControlState) -> None:
        self.state = state
        self.pressed: set = set()

    def _chord(self) -> bool:
        return any(k in self.pressed for k in CTRL_KEYS) and any(k in self.pressed for k in ALT_KEYS)

    def on_press(self, k) -> None:
        self.pressed.add(k)
        if not self._chord():
            return
        if k == keyboard.Key.space:
            enabled = self.state.toggle()
            set_enabled(enabled)
            logger.info("%s (Ctrl+Alt+Space)", "ON" if enabled else "OFF")
        elif k == keyboard.Key.esc:
            self.state.set_enabled(False)
            set_enabled(False)
            logger.info("OFF (PANIC) (Ctrl+Alt+Esc)")

    def on_release(self, k) -> None:
        self.pressed.discard(k)


def run_hotkeys(state: ControlState) -> None:
    handler = HotkeyHandler(state)
    with keyboard.Listener(on_press=handler.on_press, on_release=handler.on_release) as listener:
        listener.join()
