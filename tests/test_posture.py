import math
import random

import pytest

from detectors.posture import (
    BAD_LABEL, GOOD_LABEL, angle_from_vector, flatten_pose, heuristic_label,
    is_good_posture, posture_angle, simplify_pose,
)
from tests.conftest import make_landmarks
from utils.common import Landmark


def test_angle_matches_shoulder_hip_offset():
    lms = make_landmarks(shoulder_y=0.3, hip_y=0.8)
    assert posture_angle(lms) == pytest.approx(math.degrees(math.atan(0.5)))


def test_angle_is_absolute():
    up = make_landmarks(shoulder_y=0.3, hip_y=0.7)
    down = make_landmarks(shoulder_y=0.7, hip_y=0.3)
    assert posture_angle(up) == pytest.approx(posture_angle(down))


def test_angle_zero_when_level():
    assert posture_angle(make_landmarks(shoulder_y=0.5, hip_y=0.5)) == 0.0


def test_angle_deterministic_and_bounded():
    rng = random.Random(7)
    for _ in range(200):
        lms = [Landmark(rng.random(), rng.uniform(-2, 3), rng.uniform(-1, 1)) for _ in range(33)]
        a = posture_angle(lms)
        assert a == posture_angle(list(lms))
        assert 0.0 <= a <= 180.0


def test_threshold_is_strict():
    assert is_good_posture(19.9, 20)
    assert not is_good_posture(20.0, 20)
    assert not is_good_posture(35.0, 20)


def test_heuristic_label():
    assert heuristic_label(15.0, 20) == GOOD_LABEL
    assert heuristic_label(20.0, 20) == BAD_LABEL
    assert heuristic_label(25.0, 30, good="up", bad="down") == "up"


def test_simplify_and_flatten_keep_order():
    lms = make_landmarks(angle=10, z=-0.1)
    triples = simplify_pose(lms)
    flat = flatten_pose(lms)
    assert len(triples) == 33
    assert len(flat) == 99
    assert flat[3*11:3*11 + 3] == triples[11]


def test_angle_from_vector_agrees_with_landmarks():
    lms = make_landmarks(angle=27)
    assert angle_from_vector(flatten_pose(lms)) == pytest.approx(posture_angle(lms))
