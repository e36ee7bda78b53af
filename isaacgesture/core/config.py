"""
ISAAC Gesture Bridge — v1 Defaults (Presets)

Every sensitivity constant of the pipeline lives here. Presets are frozen;
overrides produce a new preset at session start and are never applied
while the frame loop is running.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class PresetName(str, Enum):
    DEFAULT = "Default"
    SENSITIVE = "Sensitive"
    CHILL = "Chill"


@dataclass(frozen=True)
class TrackingSafety:
    min_conf: float = 0.30


@dataclass(frozen=True)
class DistanceSignal:
    """Elbow-wrist segment length, normalized by a fixed reference length."""
    arm: str = "right"                 # "left" | "right"
    reference_length_px: float = 200.0

    @property
    def start(self) -> str:
        return f"{self.arm}_elbow"

    @property
    def end(self) -> str:
        return f"{self.arm}_wrist"


@dataclass(frozen=True)
class DisplacementSignal:
    """Per-frame vertical displacement of one keypoint (pixels)."""
    keypoint: str = "right_wrist"
    vertical_threshold_px: float = 40.0


@dataclass(frozen=True)
class StateThresholds:
    # diff < -shrink -> towards, diff > grow -> away
    shrink: float = 0.08
    grow: float = 0.12


@dataclass(frozen=True)
class RotationTrigger:
    enabled: bool = True
    direction: int = 1     # +1 clockwise, -1 counter-clockwise


@dataclass(frozen=True)
class Cooldowns:
    rotate_ms: int = 500
    counter_rotate_ms: int = 500
    toggle_ms: int = 1000
    grip_ms: int = 800


@dataclass(frozen=True)
class PulseTiming:
    level_hold_ms: int = 200
    toggle_delay_ms: int = 50


@dataclass(frozen=True)
class KeyBindings:
    # matches the robotic arm viewer keyboard map
    rotate_cw: str = "q"
    rotate_ccw: str = "e"
    toggle: str = "w"
    grip: str = "1"
    reset: str = "r"


@dataclass(frozen=True)
class GripTuning:
    enabled: bool = True
    # openness = mean(tip->wrist) / palm width / reference_ratio
    reference_ratio: float = 3.0
    thresholds: StateThresholds = StateThresholds(shrink=0.15, grow=0.20)


@dataclass(frozen=True)
class DetectorSettings:
    pose_model_path: str = "models/pose_landmarker_lite.task"
    hand_model_path: str = "models/hand_landmarker.task"
    num_hands: int = 1
    min_detection_conf: float = 0.5
    min_tracking_conf: float = 0.5
    prefer_gpu: bool = True
    frame_width: int = 1280
    frame_height: int = 720


@dataclass(frozen=True)
class Preset:
    name: PresetName
    tracking: TrackingSafety
    distance: DistanceSignal
    displacement: DisplacementSignal
    states: StateThresholds
    towards: RotationTrigger
    away: RotationTrigger
    cooldowns: Cooldowns
    pulses: PulseTiming = PulseTiming()
    keys: KeyBindings = KeyBindings()
    grip: GripTuning = GripTuning()
    detector: DetectorSettings = DetectorSettings()


DEFAULT_PRESET = Preset(
    name=PresetName.DEFAULT,
    tracking=TrackingSafety(min_conf=0.30),
    distance=DistanceSignal(arm="right", reference_length_px=200.0),
    displacement=DisplacementSignal(keypoint="right_wrist", vertical_threshold_px=40.0),
    states=StateThresholds(shrink=0.08, grow=0.12),
    # towards and away both rotate clockwise
    towards=RotationTrigger(enabled=True, direction=1),
    away=RotationTrigger(enabled=True, direction=1),
    cooldowns=Cooldowns(rotate_ms=500, counter_rotate_ms=500, toggle_ms=1000, grip_ms=800),
)

SENSITIVE_PRESET = Preset(
    name=PresetName.SENSITIVE,
    tracking=TrackingSafety(min_conf=0.25),
    distance=DistanceSignal(arm="right", reference_length_px=180.0),
    displacement=DisplacementSignal(keypoint="right_wrist", vertical_threshold_px=30.0),
    states=StateThresholds(shrink=0.06, grow=0.09),
    towards=RotationTrigger(enabled=True, direction=1),
    away=RotationTrigger(enabled=True, direction=-1),
    cooldowns=Cooldowns(rotate_ms=350, counter_rotate_ms=350, toggle_ms=800, grip_ms=600),
)

CHILL_PRESET = Preset(
    name=PresetName.CHILL,
    tracking=TrackingSafety(min_conf=0.40),
    distance=DistanceSignal(arm="right", reference_length_px=220.0),
    displacement=DisplacementSignal(keypoint="right_wrist", vertical_threshold_px=55.0),
    states=StateThresholds(shrink=0.11, grow=0.16),
    towards=RotationTrigger(enabled=True, direction=1),
    away=RotationTrigger(enabled=False, direction=1),
    cooldowns=Cooldowns(rotate_ms=700, counter_rotate_ms=700, toggle_ms=1400, grip_ms=1000),
    pulses=PulseTiming(level_hold_ms=250, toggle_delay_ms=60),
)

PRESETS = {
    PresetName.DEFAULT: DEFAULT_PRESET,
    PresetName.SENSITIVE: SENSITIVE_PRESET,
    PresetName.CHILL: CHILL_PRESET,
}


def preset_by_name(name: Optional[str]) -> Preset:
    """Look up a preset by its display name (case-insensitive). None -> Default."""
    if not name:
        return DEFAULT_PRESET
    for key, preset in PRESETS.items():
        if key.value.lower() == name.strip().lower():
            return preset
    raise ValueError(f"unknown preset {name!r} (expected one of {[k.value for k in PRESETS]})")


def with_overrides(preset: Preset, **sections: Any) -> Preset:
    """
    Return a copy of `preset` with whole sections or single fields replaced.

    Sections are given either as replacement dataclasses
    (`states=StateThresholds(...)`) or as dicts of field overrides
    (`states={"shrink": 0.1}`).
    """
    changes = {}
    for section, value in sections.items():
        current = getattr(preset, section)
        if isinstance(value, Mapping) and dataclasses.is_dataclass(current):
            value = dataclasses.replace(current, **value)
        changes[section] = value
    return dataclasses.replace(preset, **changes)


def apply_profile(preset: Preset, profile: Optional[Mapping[str, Any]]) -> Preset:
    """Apply a saved calibration profile (see runtime.calibration) on top of a preset."""
    if not profile:
        return preset
    states = {}
    if profile.get("shrink") is not None:
        states["shrink"] = float(profile["shrink"])
    if profile.get("grow") is not None:
        states["grow"] = float(profile["grow"])
    if not states:
        return preset
    return with_overrides(preset, states=states)
