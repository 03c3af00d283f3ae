import logging
import time
from typing import NamedTuple

# BlazePose body model indices used by the posture rules
POSE_IDX = {
    "NOSE": 0,
    "L_SHOULDER": 11, "R_SHOULDER": 12,
    "L_HIP": 23, "R_HIP": 24,
}
NUM_LANDMARKS = 33

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Landmark(NamedTuple):
    x: float
    y: float
    z: float


def to_px(landmark, w, h):
    return (int(landmark.x * w), int(landmark.y * h))


def landmarks_from_results(results):
    """Return the 33 pose landmarks of a MediaPipe result as Landmark tuples, or None."""
    if not results.pose_landmarks:
        return None
    lms = results.pose_landmarks.landmark
    if len(lms) != NUM_LANDMARKS:
        return None
    return [Landmark(float(lm.x), float(lm.y), float(lm.z)) for lm in lms]


def setup_logging(level="INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    logging.getLogger("absl").setLevel(logging.ERROR)


class FPSCounter:
    def __init__(self):
        self.prev = time.time()
        self.fps = 0.0
    def tick(self):
        now = time.time()
        self.fps = 1.0 / max(1e-6, now - self.prev)
        self.prev = now
        return self.fps
