import io
import json

import pytest

from isaacgesture.core.config import DEFAULT_PRESET, apply_profile
from isaacgesture.core.control import ControlState
from isaacgesture.core.types import ClassifiedState, ControlEvent, EventKind, Keypoint, PoseFrame
from isaacgesture.injector.bus import ControlBus
from isaacgesture.injector.emitter import ControlEmitter
from isaacgesture.interpreter.state_machine import Interpreter
from isaacgesture.runtime.calibration import (
    CalibResult,
    Calibrator,
    apply_saved_profile,
    load_profile,
    save_profile,
)
from isaacgesture.runtime.kill_switch import KillSwitch
from isaacgesture.runtime.run_loop import FakeSource
from isaacgesture.tools.feel_recorder import FeelRecorder


class RecordingSink:
    def __init__(self):
        self.signals = []

    def send(self, sig):
        self.signals.append(sig)


def frame(t, dist):
    return PoseFrame(t_ms=t, keypoints={
        "right_elbow": Keypoint("right_elbow", 300.0, 100.0, 0.9),
        "right_wrist": Keypoint("right_wrist", 300.0, 100.0 + dist * 200.0, 0.9),
    })


def wired():
    state = ControlState(_enabled=True)
    interp = Interpreter(DEFAULT_PRESET)
    sink = RecordingSink()
    emitter = ControlEmitter(sink, DEFAULT_PRESET.pulses, DEFAULT_PRESET.keys)
    bus = ControlBus()
    bus.subscribe(emitter)
    ks = KillSwitch(state=state, interp=interp, bus=bus, emitter=emitter)
    return state, interp, sink, ks


def test_kill_switch_off_releases_and_ends_session():
    state, interp, sink, ks = wired()
    for t, d in ((0, 0.5), (100, 0.38)):
        ks.guard(t)
        for ev in interp.process(frame(t, d)):
            ks.apply(ev)
    assert [(s.key, s.action.value) for s in sink.signals] == [("q", "DOWN")]

    state.set_enabled(False)
    ks.guard(150)
    assert [(s.key, s.action.value) for s in sink.signals][-1] == ("q", "UP")
    assert interp.baseline is None
    assert interp.process(frame(200, 0.5)) == []

    # blocked while OFF
    ks.apply(ControlEvent(t_ms=200, kind=EventKind.TOGGLE))
    assert len(sink.signals) == 2


def test_kill_switch_on_starts_new_session():
    state, interp, sink, ks = wired()
    state.set_enabled(False)
    ks.guard(0)
    state.set_enabled(True)
    ks.guard(10)
    assert [(s.key, s.action.value) for s in sink.signals] == [("r", "DOWN")]
    assert interp.off is False
    interp.process(frame(20, 0.42))
    assert interp.baseline == pytest.approx(0.42)


def test_interpreter_rebuilt_while_off_waits_for_on():
    state, interp, sink, ks = wired()
    state.set_enabled(False)
    ks.guard(0)

    fresh = Interpreter(DEFAULT_PRESET)
    ks.swap_interpreter(fresh)
    assert ks.interp is fresh
    assert fresh.process(frame(10, 0.70)) == []
    assert fresh.baseline is None

    state.set_enabled(True)
    ks.guard(20)
    fresh.process(frame(30, 0.45))
    assert fresh.baseline == pytest.approx(0.45)


def test_interpreter_rebuilt_while_on_runs_immediately():
    state, interp, sink, ks = wired()
    fresh = Interpreter(DEFAULT_PRESET)
    ks.swap_interpreter(fresh)
    assert fresh.off is False
    fresh.process(frame(0, 0.5))
    assert fresh.baseline == pytest.approx(0.5)


def test_shutdown_releases_everything():
    state, interp, sink, ks = wired()
    ks.apply(ControlEvent(t_ms=0, kind=EventKind.ROTATE, value=1))
    ks.shutdown(5)
    assert [(s.key, s.action.value) for s in sink.signals] == [("q", "DOWN"), ("q", "UP")]
    assert state.is_enabled() is False


def test_control_state_toggle():
    state = ControlState()
    assert state.toggle() is False
    assert state.toggle() is True


def test_control_state_reports_change():
    state = ControlState(_enabled=True)
    assert state.set_enabled(True) is False
    assert state.set_enabled(False) is True
    assert state.is_enabled() is False



def test_calibrator_thresholds():
    cal = Calibrator(step_ms=100)
    cal.start(0)
    t = 0
    for values in ([0.50, 0.50, 0.50], [0.30, 0.30, 0.30], [0.80, 0.80, 0.80]):
        for v in values:
            cal.update(v, t)
            t += 10
        t += 100
        cal.update(None, t)   # advances the step
    assert cal.done
    r = cal.finalize()
    assert r.baseline == 0.5
    assert abs(r.shrink - 0.10) < 1e-9
    assert abs(r.grow - 0.15) < 1e-9


def test_calibrator_defaults_and_floors():
    cal = Calibrator(step_ms=100)
    cal.start(0)
    cal.update(0.5, 0)
    r = cal.finalize()
    assert (r.shrink, r.grow) == (0.08, 0.12)

    cal.start(0)
    cal.samples = [[0.5], [0.49], [0.51]]
    r = cal.finalize()
    assert r.shrink >= 0.04 and r.grow >= 0.05


def test_profile_roundtrip_applies_to_preset(tmp_path):
    path = tmp_path / "profile.json"
    assert load_profile(path) is None
    save_profile(CalibResult(baseline=0.5, shrink=0.1, grow=0.2), path)
    prof = load_profile(path)
    preset = apply_profile(DEFAULT_PRESET, prof)
    assert (preset.states.shrink, preset.states.grow) == (0.1, 0.2)
    assert DEFAULT_PRESET.states.shrink == 0.08


def test_fake_source_drives_rotation():
    src = FakeSource(start_ms=0)
    it = Interpreter(DEFAULT_PRESET)
    kinds = []
    for t in range(20, 4500, 20):
        kinds += [e.kind for e in it.process(src.frame(t))]
    assert EventKind.ROTATE in kinds
    assert EventKind.COUNTER_ROTATE in kinds


def test_feel_recorder_writes_jsonl():
    buf = io.StringIO()
    interp = Interpreter(DEFAULT_PRESET)
    interp.process(frame(0, 0.5))
    rec = FeelRecorder(buf, interp)
    rec(ControlEvent(t_ms=5, kind=EventKind.TOGGLE))
    line = json.loads(buf.getvalue().strip())
    assert line["kind"] == "TOGGLE"
    assert line["t_ms"] == 5
    assert line["baseline"] == 0.5
    assert line["state"] == "normal"


def test_ipc_flag_roundtrip(tmp_path):
    from isaacgesture.core.ipc_state import get_enabled, init_enabled, set_enabled

    path = tmp_path / "enabled"
    assert get_enabled(path) is True
    init_enabled(False, path)
    assert get_enabled(path) is False
    init_enabled(True, path)   # existing flag wins
    assert get_enabled(path) is False
    set_enabled(True, path)
    assert get_enabled(path) is True


@pytest.mark.parametrize("content", [
    "{not json",
    '{"shrink": "wide", "grow": 0.2}',
    "[0.1, 0.2]",
])
def test_broken_profile_leaves_preset_untouched(tmp_path, capsys, content):
    path = tmp_path / "profile.json"
    path.write_text(content)
    assert apply_saved_profile(DEFAULT_PRESET, path) is DEFAULT_PRESET
    assert "failed to apply profile" in capsys.readouterr().out


def test_saved_profile_tunes_thresholds(tmp_path):
    path = save_profile(CalibResult(baseline=0.5, shrink=0.06, grow=0.15), tmp_path / "profile.json")
    tuned = apply_saved_profile(DEFAULT_PRESET, path)
    assert tuned.states.shrink == pytest.approx(0.06)
    assert tuned.states.grow == pytest.approx(0.15)


def test_missing_profile_keeps_preset(tmp_path):
    assert apply_saved_profile(DEFAULT_PRESET, tmp_path / "absent.json") is DEFAULT_PRESET


def run_fake(src, it, start, stop, step=16):
    states, events = [], []
    for t in range(start, stop, step):
        events += it.process(src.frame(t))
        states.append(it.state)
    return states, events


def test_fake_source_baseline_from_first_frame():
    it = Interpreter(DEFAULT_PRESET)
    states, _ = run_fake(FakeSource(start_ms=0), it, 0, 8000)
    assert it.baseline == pytest.approx(0.5)
    assert ClassifiedState.TOWARDS in states
    assert ClassifiedState.AWAY in states


def test_fake_source_flick_only_toggles():
    it = Interpreter(DEFAULT_PRESET)
    _, events = run_fake(FakeSource(start_ms=0), it, 0, 8000)
    toggles = [e.t_ms for e in events if e.kind == EventKind.TOGGLE]
    assert toggles == [6000]

    # segment length is unchanged by the flick: rotations match a flick-free arm
    _, calm = run_fake(FakeSource(start_ms=0, flick_every_ms=10 ** 9), Interpreter(DEFAULT_PRESET), 0, 8000)
    assert [e for e in events if e.kind != EventKind.TOGGLE] == calm
