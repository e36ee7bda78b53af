from __future__ import annotations

import logging
import threading

from isaacgesture.core.control import ControlState
from isaacgesture.core.ipc_state import set_enabled
from isaacgesture.ui.hotkeys import run_hotkeys

logger = logging.getLogger("isaacgesture.daemon")

BANNER = """[ISAAC] Control daemon started.
  Ctrl+Alt+Space  toggle gesture control
  Ctrl+Alt+Esc    panic OFF (releases every key)"""


def _start_tray(state: ControlState, stop: threading.Event) -> bool:
    # no display backend -> hotkeys only
    try:
        from isaacgesture.ui.tray import run_tray
    except Exception as exc:  # pystray picks its backend at import time
        logger.warning("tray unavailable (%s); hotkeys only", exc)
        return False
    threading.Thread(target=run_tray, args=(state, stop), name="tray", daemon=True).start()
    return True


def main():
    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(message)s")
    state = ControlState(_enabled=True)
    stop = threading.Event()

    # the runtime loop reads this flag every frame; a stale OFF from a previous run is cleared
    set_enabled(True)

    threading.Thread(target=run_hotkeys, args=(state,), name="hotkeys", daemon=True).start()
    print(BANNER)
    if _start_tray(state, stop):
        print("  tray menu       Toggle / ON / OFF / Quit")

    try:
        # Quit from the tray sets stop
        while not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        stop.set()
    print("\n[ISAAC] exiting")


if __name__ == "__main__":
    main()
