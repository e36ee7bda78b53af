from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

from isaacgesture.core.config import preset_by_name
from isaacgesture.core.control import ControlState
from isaacgesture.core.ipc_state import get_enabled, init_enabled
from isaacgesture.core.types import Keypoint, PoseFrame
from isaacgesture.injector.bus import ControlBus
from isaacgesture.injector.emitter import ControlEmitter
from isaacgesture.injector.uinput_keyboard import UInputKeyboard
from isaacgesture.interpreter.state_machine import Interpreter
from isaacgesture.runtime.kill_switch import KillSwitch


@dataclass
class FakeSource:
    """
    Deterministic fake arm to validate runtime wiring without a camera.

    Every 4 s: 2 s neutral forearm, 1 s pointed at the camera, 1 s swung away.
    From 6 s on, the whole forearm flicks up for one 20 ms window every 6 s;
    elbow and wrist move together so the segment length is untouched.
    """
    start_ms: int
    arm: str = "right"
    reference_length_px: float = 200.0
    flick_every_ms: int = 6000
    flick_px: float = 80.0

    def frame(self, t_ms: int) -> PoseFrame:
        elapsed = t_ms - self.start_ms
        phase = (elapsed / 1000.0) % 4.0
        if phase < 2.0:
            norm = 0.50
        elif phase < 3.0:
            norm = 0.38
        else:
            norm = 0.66

        # segment centred on y=360 so a phase change moves the wrist by half the length change
        half = norm * self.reference_length_px / 2.0
        ex, ey, wy = 640.0, 360.0 - half, 360.0 + half
        # never on the first frame: it seeds the baseline
        if elapsed >= self.flick_every_ms and elapsed % self.flick_every_ms < 20:
            ey -= self.flick_px
            wy -= self.flick_px

        kps = {
            f"{self.arm}_elbow": Keypoint(f"{self.arm}_elbow", ex, ey, 0.95),
            f"{self.arm}_wrist": Keypoint(f"{self.arm}_wrist", ex, wy, 0.95),
        }
        return PoseFrame(t_ms=t_ms, keypoints=kps)


def run():
    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(message)s")
    preset = preset_by_name(os.environ.get("ISAAC_PRESET"))

    state = ControlState(_enabled=True)
    # initialize and sync with file-based IPC
    init_enabled(True)
    state.set_enabled(get_enabled())

    interp = Interpreter(preset)
    keyboard = UInputKeyboard.create(preset.keys)
    emitter = ControlEmitter(keyboard, preset.pulses, preset.keys)
    bus = ControlBus()
    bus.subscribe(emitter)
    ks = KillSwitch(state=state, interp=interp, bus=bus, emitter=emitter)

    src = FakeSource(
        start_ms=int(time.time() * 1000),
        arm=preset.distance.arm,
        reference_length_px=preset.distance.reference_length_px,
    )

    print("[ISAAC] Runtime loop (FAKE SOURCE). Ctrl+C to exit.")
    print("Tip: run the control daemon in another terminal to toggle ON/OFF.")
    print("  - Ctrl+Alt+Space toggles")
    print("  - Ctrl+Alt+Esc PANIC OFF")

    try:
        while True:
            t_ms = int(time.time() * 1000)

            # sync control state from IPC (daemon may have toggled it)
            state.set_enabled(get_enabled())

            # check control transitions (OFF releases keys etc.)
            ks.guard(t_ms=t_ms)
            emitter.tick(t_ms)

            for ev in interp.process(src.frame(t_ms)):
                ks.apply(ev)

            time.sleep(0.016)  # ~60Hz loop
    except KeyboardInterrupt:
        print("\n[ISAAC] exiting")
    finally:
        # Always drop keys on exit
        ks.shutdown(t_ms=int(time.time() * 1000))
        keyboard.close()


if __name__ == "__main__":
    run()
