from __future__ import annotations

import logging
import os
import sys
import time

import cv2

from isaacgesture.core.config import apply_profile, preset_by_name, with_overrides
from isaacgesture.core.control import ControlState
from isaacgesture.core.ipc_state import init_enabled, get_enabled
from isaacgesture.injector.bus import ControlBus
from isaacgesture.injector.emitter import ControlEmitter
from isaacgesture.injector.uinput_keyboard import UInputKeyboard
from isaacgesture.interpreter.state_machine import Interpreter
from isaacgesture.runtime.calibration import Calibrator, apply_saved_profile, save_profile
from isaacgesture.runtime.kill_switch import KillSwitch
from isaacgesture.sensor.webcam_mp import CameraError, DetectorLoadError, WebcamPoseSrc
from isaacgesture.tools.feel_recorder import FeelRecorder, log_path


def _build_preset():
    preset = preset_by_name(os.environ.get("ISAAC_PRESET"))
    detector = {}
    if os.environ.get("ISAAC_POSE_MODEL"):
        detector["pose_model_path"] = os.environ["ISAAC_POSE_MODEL"]
    if os.environ.get("ISAAC_HAND_MODEL"):
        detector["hand_model_path"] = os.environ["ISAAC_HAND_MODEL"]
    if detector:
        preset = with_overrides(preset, detector=detector)

    # saved calibration (if present) tunes the rotation thresholds
    return apply_saved_profile(preset)


def _overlay(dbg, interp: Interpreter) -> None:
    d = interp.last_distance
    b = interp.baseline
    text = (
        f"state={interp.state.value} counter={interp.counter} "
        f"dist={'-' if d is None else f'{d:.2f}'} base={'-' if b is None else f'{b:.2f}'}"
    )
    cv2.rectangle(dbg, (10, 10), (640, 60), (0, 0, 0), -1)
    cv2.putText(dbg, text, (20, 45), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (255, 255, 255), 2, cv2.LINE_AA)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(message)s")
    preset = _build_preset()

    state = ControlState(_enabled=True)
    init_enabled(True)

    # uinput first: the camera and detectors are only opened once key output works
    keyboard = UInputKeyboard.create(preset.keys)
    try:
        src = WebcamPoseSrc(
            settings=preset.detector, cam_index=0, mirror=True, min_conf=preset.tracking.min_conf,
        )
    except (CameraError, DetectorLoadError) as exc:
        print(f"[ISAAC] cannot start gesture tracking: {exc}")
        keyboard.close()
        return 1

    interp = Interpreter(preset)
    emitter = ControlEmitter(keyboard, preset.pulses, preset.keys)
    bus = ControlBus()
    bus.subscribe(emitter)
    ks = KillSwitch(state=state, interp=interp, bus=bus, emitter=emitter)

    feel = None
    cal = Calibrator()
    calibrating = False

    print(f"[ISAAC] Webcam runtime ({preset.name.value}). ESC to quit, C to calibrate.")
    try:
        feel_path = os.environ.get("FEEL_LOG_PATH")
        if feel_path is not None:
            feel = FeelRecorder.open(feel_path or log_path(), interp)
            bus.subscribe(feel)
            print(f"[FeelLog] writing {feel.fp.name}")

        while True:
            # sync ON/OFF from daemon
            state.set_enabled(get_enabled())

            t_ms = int(time.time() * 1000)
            ks.guard(t_ms=t_ms)
            emitter.tick(t_ms)

            pf, dbg = src.read()
            if pf is not None:
                for ev in interp.process(pf):
                    ks.apply(ev)

            # calibration wizard: draw overlay and collect samples when active
            if calibrating:
                cal.update(interp.last_distance, t_ms)
                if dbg is not None:
                    cv2.putText(dbg, cal.instruction(), (12, 90), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (200, 200, 200), 2)
                if cal.done:
                    r = cal.finalize()
                    save_profile(r)
                    print("[Calibration] saved profile:", r)
                    calibrating = False
                    # thresholds only change at session start
                    preset = apply_profile(preset, {"shrink": r.shrink, "grow": r.grow})
                    interp = Interpreter(preset)
                    ks.swap_interpreter(interp)
                    if feel is not None:
                        feel.interp = interp

            if dbg is not None:
                _overlay(dbg, interp)
                cv2.imshow("ISAAC Gesture Bridge", dbg)
                key = cv2.waitKey(1) & 0xFF
                if key == 27:  # ESC
                    break
                if key in (ord('c'), ord('C')):
                    calibrating = True
                    cal.start(t_ms)
            else:
                time.sleep(0.005)
    except KeyboardInterrupt:
        print("\n[ISAAC] exiting")
    finally:
        ks.shutdown(t_ms=int(time.time() * 1000))
        src.close()
        keyboard.close()
        if feel is not None:
            feel.close()
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    sys.exit(main())
