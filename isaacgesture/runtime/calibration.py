from __future__ import annotations

import json
import logging
import statistics
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

from isaacgesture.core.config import Preset, apply_profile

logger = logging.getLogger(__name__)

STEP_MS = 3000
MIN_SHRINK = 0.04
MIN_GROW = 0.05


@dataclass
class CalibResult:
    baseline: float
    shrink: float
    grow: float


def _profile_path() -> Path:
    p = Path.home() / ".config" / "isaacgesture"
    p.mkdir(parents=True, exist_ok=True)
    return p / "profile.json"


def save_profile(r: CalibResult, path: Optional[Path] = None) -> Path:
    path = path or _profile_path()
    path.write_text(json.dumps(asdict(r), indent=2))
    logger.info("calibration profile saved to %s", path)
    return path


def load_profile(path: Optional[Path] = None) -> Optional[dict]:
    p = path or _profile_path()
    if not p.exists():
        return None
    return json.loads(p.read_text())


def apply_saved_profile(preset: Preset, path: Optional[Path] = None) -> Preset:
    """Apply the saved profile to `preset`; a broken profile is reported and ignored."""
    try:
        prof = load_profile(path)
        if not prof:
            return preset
        tuned = apply_profile(preset, prof)
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        print(f"[Calibration] failed to apply profile: {exc}")
        return preset
    print(f"[Calibration] loaded profile: shrink={tuned.states.shrink:.3f} grow={tuned.states.grow:.3f}")
    return tuned


def percentile(xs, q):
    if not xs:
        return None
    xs = sorted(xs)
    k = int(round((q / 100.0) * (len(xs) - 1)))
    return xs[max(0, min(len(xs) - 1, k))]


class Calibrator:
    """
    Timed wizard over the normalized elbow-wrist distance:
    - step 0: arm relaxed (neutral)
    - step 1: forearm pointed at the camera (segment looks shorter)
    - step 2: forearm swung away, fully visible (segment looks longer)
    Thresholds sit halfway between the neutral median and each extreme.
    """

    STEPS = (
        "Calibration 1/3: Rest your arm in the neutral pose.",
        "Calibration 2/3: Point your forearm towards the camera.",
        "Calibration 3/3: Swing your forearm away, fully extended.",
    )

    def __init__(self, step_ms: int = STEP_MS) -> None:
        self.step_ms = step_ms
        self.step = 0
        self.step_start: Optional[int] = None
        self.samples: List[List[float]] = [[], [], []]
        self.done = False

    def start(self, t_ms: Optional[int] = None) -> None:
        self.step = 0
        self.step_start = t_ms
        self.done = False
        for s in self.samples:
            s.clear()

    def instruction(self) -> str:
        return self.STEPS[self.step] if self.step < len(self.STEPS) else "Calibration complete."

    def update(self, distance: Optional[float], t_ms: int) -> None:
        if self.done:
            return

        if self.step_start is None:
            self.step_start = t_ms

        if (t_ms - self.step_start) > self.step_ms:
            self.step += 1
            self.step_start = t_ms
            if self.step >= len(self.STEPS):
                self.done = True
            return

        if distance is None:
            return
        self.samples[self.step].append(float(distance))

    def finalize(self) -> CalibResult:
        neutral, towards, away = self.samples
        baseline = statistics.median(neutral) if neutral else 0.5

        towards_p = percentile(towards, 30)
        shrink = (baseline - towards_p) / 2.0 if towards_p is not None else 0.08
        away_p = percentile(away, 70)
        grow = (away_p - baseline) / 2.0 if away_p is not None else 0.12

        return CalibResult(
            baseline=float(baseline),
            shrink=float(max(MIN_SHRINK, shrink)),
            grow=float(max(MIN_GROW, grow)),
        )
