from types import SimpleNamespace

from utils.common import Landmark, landmarks_from_results, to_px


def _results(n):
    lms = [SimpleNamespace(x=i / 100, y=0.5, z=-0.1, visibility=0.9) for i in range(n)]
    return SimpleNamespace(pose_landmarks=SimpleNamespace(landmark=lms))


def test_landmarks_from_results():
    lms = landmarks_from_results(_results(33))
    assert len(lms) == 33
    assert lms[10] == Landmark(0.1, 0.5, -0.1)


def test_missing_or_partial_pose_gives_none():
    assert landmarks_from_results(SimpleNamespace(pose_landmarks=None)) is None
    assert landmarks_from_results(_results(17)) is None


def test_to_px():
    assert to_px(Landmark(0.5, 0.25, 0.0), 640, 480) == (320, 120)
