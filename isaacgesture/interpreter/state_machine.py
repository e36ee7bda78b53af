from __future__ import annotations

import logging

from isaacgesture.core.config import Preset
from isaacgesture.core.types import ClassifiedState, ControlEvent, PoseFrame
from isaacgesture.interpreter.classifier import StateClassifier
from isaacgesture.interpreter.events import EventGenerator
from isaacgesture.interpreter.signals import SignalExtractor

logger = logging.getLogger(__name__)


class Interpreter:
    """
    Deterministic gesture interpreter.
    Converts PoseFrame -> list[ControlEvent], one frame per call.

    All cross-frame state of a tracking session (baselines, previous
    positions, counter, cooldown timestamps) is owned here and nowhere else.
    `end_session()` discards it; the next frame starts a fresh session.
    """

    def __init__(self, preset: Preset) -> None:
        self.preset = preset
        self.off: bool = False

        self.extractor = SignalExtractor(min_conf=preset.tracking.min_conf)
        self.rotation = StateClassifier(shrink=preset.states.shrink, grow=preset.states.grow)
        self.grip = StateClassifier(
            shrink=preset.grip.thresholds.shrink,
            grow=preset.grip.thresholds.grow,
        )
        self.generator = EventGenerator(
            towards=preset.towards,
            away=preset.away,
            cooldowns=preset.cooldowns,
            vertical_threshold=preset.displacement.vertical_threshold_px,
        )

        # last frame's readings, for debug overlays / logs
        self.last_distance: float | None = None
        self.last_delta: float | None = None
        self.frames: int = 0

    @property
    def state(self) -> ClassifiedState:
        return self.rotation.state

    @property
    def counter(self) -> int:
        return self.generator.counter

    @property
    def baseline(self) -> float | None:
        return self.rotation.baseline

    def end_session(self) -> None:
        self.extractor.reset()
        self.rotation.reset()
        self.grip.reset()
        self.generator.reset()
        self.last_distance = None
        self.last_delta = None
        self.frames = 0
        logger.info("tracking session ended; baseline discarded")

    def set_off(self, off: bool) -> None:
        if off and not self.off:
            self.end_session()
        self.off = off

    def process(self, frame: PoseFrame) -> list[ControlEvent]:
        if self.off:
            return []

        t_ms = frame.t_ms
        events: list[ControlEvent] = []
        self.frames += 1

        dist_cfg = self.preset.distance
        distance = self.extractor.distance(frame, dist_cfg.start, dist_cfg.end, dist_cfg.reference_length_px)
        self.last_distance = distance

        had_baseline = self.rotation.baseline is not None
        state = self.rotation.update(distance)
        if not had_baseline and self.rotation.baseline is not None:
            logger.info("baseline set to %.3f at %d ms", self.rotation.baseline, t_ms)
        events.extend(self.generator.on_rotation_state(state, t_ms))

        delta = self.extractor.displacement(frame, self.preset.displacement.keypoint, axis="y")
        self.last_delta = delta
        events.extend(self.generator.on_displacement(delta, t_ms))

        if self.preset.grip.enabled:
            openness = self.extractor.hand_openness(frame.hands, self.preset.grip.reference_ratio)
            events.extend(self.generator.on_grip_state(self.grip.update(openness), t_ms))

        for ev in events:
            logger.debug("event %s value=%d t=%d counter=%d", ev.kind.value, ev.value, ev.t_ms, self.counter)
        return events
