from isaacgesture.core.config import CHILL_PRESET, DEFAULT_PRESET
from isaacgesture.core.types import Keypoint
from isaacgesture.sensor.webcam_mp import keypoint_color

GREEN = (0, 200, 0)
RED = (0, 0, 200)


def test_overlay_color_follows_tracking_gate():
    kp = Keypoint("right_wrist", 10.0, 10.0, 0.35)
    assert keypoint_color(kp, DEFAULT_PRESET.tracking.min_conf) == GREEN
    # Chill gates at 0.40: the same keypoint is ignored by the interpreter
    assert keypoint_color(kp, CHILL_PRESET.tracking.min_conf) == RED


def test_overlay_color_boundary_is_inclusive():
    kp = Keypoint("right_elbow", 0.0, 0.0, 0.30)
    assert keypoint_color(kp, 0.30) == GREEN
