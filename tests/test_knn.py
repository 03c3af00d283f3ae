import pytest

from detectors.knn import HeuristicClassifier, KNNClassifier
from detectors.posture import flatten_pose
from tests.conftest import make_landmarks


def test_classify_without_examples_raises():
    with pytest.raises(RuntimeError):
        KNNClassifier().classify([0.0, 1.0])


def test_nearest_label_wins():
    clf = KNNClassifier(k=3)
    for i in range(4):
        clf.add_example([0.0 + i*0.01, 0.0], "left")
        clf.add_example([1.0 + i*0.01, 1.0], "right")
    assert clf.num_labels() == 2
    assert clf.num_examples() == 8
    pred = clf.classify([0.05, 0.02])
    assert pred.label == "left"
    assert pred.confidence == pytest.approx(1.0)
    assert set(pred.confidences) == {"left", "right"}
    assert clf.classify([0.95, 1.1]).label == "right"


def test_k_capped_by_example_count():
    clf = KNNClassifier(k=5)
    clf.add_example([0.1, 0.2, 0.3], "only")
    assert clf.classify([9.0, 9.0, 9.0]).label == "only"


def test_refits_after_new_examples():
    clf = KNNClassifier(k=1)
    clf.add_example([0.0], "a")
    assert clf.classify([5.0]).label == "a"
    clf.add_example([5.0], "b")
    assert clf.classify([4.9]).label == "b"


def test_rejects_bad_vectors():
    clf = KNNClassifier()
    clf.add_example([1.0, 2.0], "a")
    with pytest.raises(ValueError):
        clf.add_example([1.0, 2.0, 3.0], "a")
    with pytest.raises(ValueError):
        clf.add_example([float("nan"), 2.0], "a")
    with pytest.raises(ValueError):
        KNNClassifier(k=0)


def test_heuristic_classifier_reads_current_threshold():
    threshold = {"v": 20}
    clf = HeuristicClassifier(lambda: threshold["v"])
    vec = flatten_pose(make_landmarks(angle=25))
    assert clf.classify(vec).label == "bad_posture"
    threshold["v"] = 30
    assert clf.classify(vec).label == "good_posture"
    assert clf.num_labels() == 2
    clf.add_example(vec, "bad_posture")  # no-op


def test_heuristic_classifier_fixed_threshold():
    clf = HeuristicClassifier(20, good="ok", bad="slouch")
    assert clf.classify(flatten_pose(make_landmarks(angle=10))).label == "ok"
    assert clf.classify(flatten_pose(make_landmarks(angle=20.5))).label == "slouch"
