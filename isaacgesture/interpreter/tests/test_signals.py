import math

from isaacgesture.core.types import HandLandmarks, Keypoint, PoseFrame
from isaacgesture.interpreter.signals import SignalExtractor, TrackedSignal


def pf(t=0, **kps):
    return PoseFrame(t_ms=t, keypoints={n: Keypoint(n, *v) for n, v in kps.items()})


def test_distance_normalized():
    ex = SignalExtractor(min_conf=0.3)
    f = pf(a=(0.0, 0.0, 0.9), b=(30.0, 40.0, 0.9))
    assert ex.distance(f, "a", "b", 100.0) == 0.5


def test_distance_clamped():
    ex = SignalExtractor(min_conf=0.3)
    f = pf(a=(0.0, 0.0, 0.9), b=(300.0, 400.0, 0.9))
    assert ex.distance(f, "a", "b", 100.0) == 1.0


def test_distance_requires_confidence():
    ex = SignalExtractor(min_conf=0.3)
    assert ex.distance(pf(a=(0, 0, 0.29), b=(10, 0, 0.9)), "a", "b", 100.0) is None
    assert ex.distance(pf(a=(0, 0, 0.3), b=(10, 0, 0.9)), "a", "b", 100.0) == 0.1
    assert ex.distance(pf(a=(0, 0, 0.9)), "a", "b", 100.0) is None


def test_distance_degenerate():
    ex = SignalExtractor(min_conf=0.3)
    assert ex.distance(pf(a=(math.nan, 0, 0.9), b=(10, 0, 0.9)), "a", "b", 100.0) is None
    assert ex.distance(pf(a=(0, 0, 0.9), b=(math.inf, 0, 0.9)), "a", "b", 100.0) is None
    assert ex.distance(pf(a=(0, 0, 0.9), b=(10, 0, 0.9)), "a", "b", 0.0) is None


def test_displacement_first_frame_has_no_delta():
    ex = SignalExtractor(min_conf=0.3)
    assert ex.displacement(pf(w=(0, 100, 0.9)), "w") is None
    assert ex.displacement(pf(w=(0, 130, 0.9)), "w") == 30
    assert ex.displacement(pf(w=(0, 110, 0.9)), "w") == -20


def test_displacement_skips_failed_frames():
    ex = SignalExtractor(min_conf=0.3)
    ex.displacement(pf(w=(0, 100, 0.9)), "w")
    assert ex.displacement(pf(w=(0, 500, 0.1)), "w") is None
    assert ex.displacement(pf(), "w") is None
    assert ex.displacement(pf(w=(0, 105, 0.9)), "w") == 5


def test_displacement_reset():
    ex = SignalExtractor(min_conf=0.3)
    ex.displacement(pf(w=(0, 100, 0.9)), "w")
    ex.reset()
    assert ex.displacement(pf(w=(0, 300, 0.9)), "w") is None


def test_tracked_signal():
    s = TrackedSignal("x")
    assert s.push(1.0) is None
    assert s.push(3.0) == 2.0
    assert (s.previous, s.current) == (1.0, 3.0)


def test_hand_openness():
    ex = SignalExtractor(min_conf=0.3)
    pts = [(0.5, 0.5)] * 21
    pts[0], pts[5], pts[17] = (0.5, 0.9), (0.4, 0.6), (0.6, 0.6)
    for tip in (8, 12, 16, 20):
        pts[tip] = (0.5, 0.5)
    # tips 0.4 from wrist, palm 0.2 -> ratio 2.0 -> / 4.0
    value = ex.hand_openness([HandLandmarks(points=tuple(pts))], reference_ratio=4.0)
    assert math.isclose(value, 0.5)


def test_hand_openness_unavailable():
    ex = SignalExtractor(min_conf=0.3)
    assert ex.hand_openness([], 3.0) is None
    assert ex.hand_openness([HandLandmarks(points=((0.1, 0.1),) * 5)], 3.0) is None
    # zero palm width
    assert ex.hand_openness([HandLandmarks(points=((0.5, 0.5),) * 21)], 3.0) is None
