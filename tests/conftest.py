import math

import pytest

from config import Config
from utils.common import Landmark, NUM_LANDMARKS, POSE_IDX


def make_landmarks(angle=None, shoulder_y=0.3, hip_y=None, z=0.0):
    """33 landmarks with shoulders/hips placed to produce the given posture angle."""
    if hip_y is None:
        hip_y = shoulder_y + (math.tan(math.radians(angle)) if angle is not None else 0.4)
    lms = [Landmark(0.5, 0.5, z) for _ in range(NUM_LANDMARKS)]
    for name in ("L_SHOULDER", "R_SHOULDER"):
        lms[POSE_IDX[name]] = Landmark(0.4 if name[0] == "L" else 0.6, shoulder_y, z)
    for name in ("L_HIP", "R_HIP"):
        lms[POSE_IDX[name]] = Landmark(0.45 if name[0] == "L" else 0.55, hip_y, z)
    return lms


class FakeClassifier:
    """Scriptable stand-in for the classifier adapter."""

    def __init__(self, label="good_posture", labels=1, fail_classify=False, fail_add_after=None):
        self.label = label
        self.labels = labels
        self.fail_classify = fail_classify
        self.fail_add_after = fail_add_after
        self.examples = []
        self.classify_calls = 0

    def add_example(self, vector, label):
        if self.fail_add_after is not None and len(self.examples) >= self.fail_add_after:
            raise RuntimeError("backend rejected example")
        self.examples.append((list(vector), label))

    def num_labels(self):
        return self.labels

    def classify(self, vector):
        from detectors.knn import Prediction
        self.classify_calls += 1
        if self.fail_classify:
            raise RuntimeError("backend down")
        return Prediction(self.label, 1.0, {self.label: 1.0})


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def landmarks():
    return make_landmarks
