from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

import cv2
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from isaacgesture.core.config import DetectorSettings
from isaacgesture.core.types import HandLandmarks, Keypoint, PoseFrame

logger = logging.getLogger(__name__)

# pose landmark index -> keypoint name
POSE_KEYPOINTS = {
    11: "left_shoulder",
    12: "right_shoulder",
    13: "left_elbow",
    14: "right_elbow",
    15: "left_wrist",
    16: "right_wrist",
    23: "left_hip",
    24: "right_hip",
}


class CameraError(RuntimeError):
    """Camera could not be opened (missing device or permission denied)."""


class DetectorLoadError(RuntimeError):
    """Landmark detector failed to load on every available delegate."""


class _Latest:
    """Most recent async detector result. Written by the MediaPipe callback thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._result: Any = None
        self._t_ms: Optional[int] = None

    def put(self, result: Any, _image: Any, t_ms: int) -> None:
        with self._lock:
            self._result = result
            self._t_ms = t_ms

    def get(self) -> Tuple[Any, Optional[int]]:
        with self._lock:
            return self._result, self._t_ms


def create_landmarker(
    build: Callable[[mp_tasks.BaseOptions], Any],
    model_path: str,
    prefer_gpu: bool,
    label: str,
) -> Any:
    """
    Build a landmarker on the GPU delegate, falling back to CPU.
    Raises DetectorLoadError when no delegate works.
    """
    Delegate = mp_tasks.BaseOptions.Delegate
    delegates = [Delegate.GPU, Delegate.CPU] if prefer_gpu else [Delegate.CPU]
    last_exc: Optional[Exception] = None
    for delegate in delegates:
        try:
            lm = build(mp_tasks.BaseOptions(model_asset_path=model_path, delegate=delegate))
        except (RuntimeError, ValueError, OSError) as exc:
            logger.warning("%s landmarker failed on %s: %s", label, delegate.name, exc)
            last_exc = exc
            continue
        logger.info("%s landmarker ready (%s, model=%s)", label, delegate.name, model_path)
        return lm
    raise DetectorLoadError(f"{label} landmarker could not be loaded from {model_path}") from last_exc


def keypoint_color(kp: Keypoint, min_conf: float) -> Tuple[int, int, int]:
    # BGR: green when the keypoint passes the confidence gate, red otherwise
    return (0, 200, 0) if kp.confidence >= min_conf else (0, 0, 200)


@dataclass
class WebcamPoseSrc:
    settings: DetectorSettings = DetectorSettings()
    cam_index: int = 0
    mirror: bool = True
    with_hands: bool = True
    min_conf: float = 0.30

    _pose_latest: _Latest = field(default_factory=_Latest, init=False, repr=False)
    _hand_latest: _Latest = field(default_factory=_Latest, init=False, repr=False)

    def __post_init__(self) -> None:
        self.cap = cv2.VideoCapture(self.cam_index)
        if not self.cap.isOpened():
            self.cap.release()
            raise CameraError(f"cannot open camera {self.cam_index} (missing device or permission denied)")
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.settings.frame_width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.settings.frame_height)

        s = self.settings
        self.pose = None
        self.hands = None
        self._last_submit_ms = 0
        try:
            self.pose = create_landmarker(
                lambda base: vision.PoseLandmarker.create_from_options(vision.PoseLandmarkerOptions(
                    base_options=base,
                    running_mode=vision.RunningMode.LIVE_STREAM,
                    num_poses=1,
                    min_pose_detection_confidence=s.min_detection_conf,
                    min_tracking_confidence=s.min_tracking_conf,
                    result_callback=self._pose_latest.put,
                )),
                s.pose_model_path, s.prefer_gpu, "pose",
            )
        except DetectorLoadError:
            self.cap.release()
            raise

        if self.with_hands:
            try:
                self.hands = create_landmarker(
                    lambda base: vision.HandLandmarker.create_from_options(vision.HandLandmarkerOptions(
                        base_options=base,
                        running_mode=vision.RunningMode.LIVE_STREAM,
                        num_hands=s.num_hands,
                        min_hand_detection_confidence=s.min_detection_conf,
                        min_tracking_confidence=s.min_tracking_conf,
                        result_callback=self._hand_latest.put,
                    )),
                    s.hand_model_path, s.prefer_gpu, "hand",
                )
            except DetectorLoadError as exc:
                # hands are optional: grip control is simply unavailable
                logger.warning("hand landmarks disabled: %s", exc)

    def _submit(self, frame) -> None:
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        # LIVE_STREAM needs strictly increasing timestamps
        ts = max(int(time.monotonic() * 1000), self._last_submit_ms + 1)
        self._last_submit_ms = ts
        self.pose.detect_async(image, ts)
        if self.hands is not None:
            self.hands.detect_async(image, ts)

    def _keypoints(self, w: int, h: int) -> Dict[str, Keypoint]:
        res, _ = self._pose_latest.get()
        if res is None or not res.pose_landmarks:
            return {}
        lms = res.pose_landmarks[0]
        out = {}
        for idx, name in POSE_KEYPOINTS.items():
            lm = lms[idx]
            conf = lm.visibility if lm.visibility is not None else 0.0
            out[name] = Keypoint(name=name, x=float(lm.x) * w, y=float(lm.y) * h, confidence=float(conf))
        return out

    def _hands(self) -> Tuple[HandLandmarks, ...]:
        res, _ = self._hand_latest.get()
        if res is None or not res.hand_landmarks:
            return ()
        hands = []
        for i, lms in enumerate(res.hand_landmarks):
            label = "unknown"
            if res.handedness and i < len(res.handedness) and res.handedness[i]:
                label = res.handedness[i][0].category_name.lower()
            hands.append(HandLandmarks(points=tuple((float(p.x), float(p.y)) for p in lms), handedness=label))
        return tuple(hands)

    def read(self) -> Tuple[Optional[PoseFrame], Optional[Any]]:
        """
        Grab one camera frame, submit it to the detectors and return the
        newest landmarks available. Detection is asynchronous, so the
        landmarks may belong to an earlier frame; before the first result
        arrives the frame carries no keypoints.
        """
        ok, frame = self.cap.read()
        if not ok:
            return None, None

        if self.mirror:
            frame = cv2.flip(frame, 1)

        self._submit(frame)

        h, w = frame.shape[:2]
        keypoints = self._keypoints(w, h)
        pf = PoseFrame(t_ms=int(time.time() * 1000), keypoints=keypoints, hands=self._hands())

        for kp in keypoints.values():
            cv2.circle(frame, (int(kp.x), int(kp.y)), 6, keypoint_color(kp, self.min_conf), -1)
        return pf, frame

    def close(self) -> None:
        for det in (self.hands, self.pose):
            if det is None:
                continue
            try:
                det.close()
            except RuntimeError as exc:
                logger.debug("detector close failed: %s", exc)
        self.cap.release()
