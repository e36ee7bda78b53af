import pytest

from isaacgesture.core.config import (
    DEFAULT_PRESET, PRESETS, PresetName, StateThresholds, preset_by_name, with_overrides,
)


def test_default_values():
    p = DEFAULT_PRESET
    assert p.tracking.min_conf == 0.3
    assert (p.states.shrink, p.states.grow) == (0.08, 0.12)
    assert p.cooldowns.rotate_ms == 500
    assert (p.pulses.level_hold_ms, p.pulses.toggle_delay_ms) == (200, 50)
    assert (p.distance.start, p.distance.end) == ("right_elbow", "right_wrist")


def test_preset_lookup():
    assert preset_by_name(None) is DEFAULT_PRESET
    assert preset_by_name("chill") is PRESETS[PresetName.CHILL]
    with pytest.raises(ValueError):
        preset_by_name("turbo")


def test_overrides_return_new_preset():
    p = with_overrides(DEFAULT_PRESET, states={"shrink": 0.2}, cooldowns={"toggle_ms": 10})
    assert p.states == StateThresholds(shrink=0.2, grow=0.12)
    assert p.cooldowns.toggle_ms == 10
    assert DEFAULT_PRESET.states.shrink == 0.08

    q = with_overrides(DEFAULT_PRESET, states=StateThresholds(shrink=0.01, grow=0.02))
    assert q.states.grow == 0.02
