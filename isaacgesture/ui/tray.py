from __future__ import annotations

import logging
import threading

import pystray
from PIL import Image, ImageDraw

from isaacgesture.core.control import ControlState
from isaacgesture.core.ipc_state import set_enabled

logger = logging.getLogger(__name__)

POLL_S = 0.2


def make_icon(enabled: bool) -> Image.Image:
    # orange ring, filled hub while gesture control is live
    img = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    d = ImageDraw.Draw(img)
    d.ellipse((12, 12, 52, 52), outline=(255, 85, 0, 230), width=4)
    hub = (255, 85, 0, 255) if enabled else (255, 85, 0, 60)
    d.ellipse((26, 26, 38, 38), fill=hub)
    return img


class TrayController:
    """Tray icon mirroring ControlState; menu writes through to the IPC flag."""

    def __init__(self, state: ControlState, stop_flag: threading.Event) -> None:
        self.state = state
        self.stop_flag = stop_flag
        self.icon = pystray.Icon("ISAAC Gesture", menu=pystray.Menu(
            pystray.MenuItem("Toggle (ON/OFF)", lambda *_: self.set(not self.state.is_enabled())),
            pystray.MenuItem("Turn ON", lambda *_: self.set(True)),
            pystray.MenuItem("Turn OFF", lambda *_: self.set(False)),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", lambda *_: self.quit()),
        ))
        self._shown: bool | None = None

    def refresh(self) -> None:
        on = self.state.is_enabled()
        if on == self._shown:
            return
        self._shown = on
        self.icon.icon = make_icon(on)
        self.icon.title = f"ISAAC Gesture ({'ON' if on else 'OFF'})"

    def set(self, value: bool) -> None:
        if self.state.set_enabled(value):
            logger.info("tray: gesture control %s", "ON" if value else "OFF")
        set_enabled(value)
        self.refresh()

    def quit(self) -> None:
        self.stop_flag.set()
        self.icon.stop()

    def _follow(self) -> None:
        # hotkeys may flip the state behind our back
        while not self.stop_flag.wait(POLL_S):
            self.refresh()

    def run(self) -> None:
        self.refresh()
        threading.Thread(target=self._follow, daemon=True).start()
        try:
            self.icon.run()
        except Exception as exc:
            # Tray backends are fragile; the hotkeys keep working without it.
            logger.error("tray backend crashed: %s", exc)
            self.stop_flag.set()


def run_tray(state: ControlState, stop_flag: threading.Event) -> None:
    TrayController(state, stop_flag).run()
