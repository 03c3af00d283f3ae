"""
Session state and controller for the posture trainer.

The controller owns the sample store, the active classifier and the
sensitivity threshold. The live app feeds it one landmark set per frame
and calls train / evaluate_accuracy / export / set_sensitivity from hotkeys.
"""

from __future__ import annotations

import json
import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterator, List, NamedTuple, Optional, Tuple

from config import Config
from detectors.knn import HeuristicClassifier, KNNClassifier, PoseClassifier
from detectors.posture import flatten_pose, posture_angle, simplify_pose

logger = logging.getLogger(__name__)

Triple = Tuple[float, float, float]


# -----------------------------
# Errors
# -----------------------------

class PostureError(Exception):
    """Base class for user-visible session failures."""


class ClassifierNotReady(PostureError):
    pass


class InsufficientData(PostureError):
    def __init__(self, have: int, need: int) -> None:
        super().__init__(f"At least {need} samples needed, have {have}")
        self.have = have
        self.need = need


class TrainingError(PostureError):
    pass


class EmptyStore(PostureError):
    def __init__(self) -> None:
        super().__init__("No data to export")


# -----------------------------
# Samples
# -----------------------------

def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Sample:
    label: str
    pose: Tuple[Triple, ...]
    timestamp: str

    @classmethod
    def from_landmarks(cls, landmarks, label: str, timestamp: Optional[str] = None) -> "Sample":
        pose = tuple((float(x), float(y), float(z)) for x, y, z in simplify_pose(landmarks))
        return cls(label=label, pose=pose, timestamp=timestamp or utc_timestamp())

    @property
    def vector(self) -> List[float]:
        return [v for triple in self.pose for v in triple]

    def to_record(self) -> dict:
        return {"label": self.label, "pose": [list(t) for t in self.pose], "timestamp": self.timestamp}


class SampleStore:
    """Append-only, insertion-ordered sample list."""

    def __init__(self) -> None:
        self._samples: List[Sample] = []

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)
        logger.debug("Stored samples: %d", len(self._samples))

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(list(self._samples))

    def __getitem__(self, i: int) -> Sample:
        return self._samples[i]

    def tail(self, n: int) -> List[Sample]:
        return list(self._samples[-n:]) if n > 0 else []

    def labels(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for s in self._samples:
            counts[s.label] = counts.get(s.label, 0) + 1
        return counts

    def to_records(self) -> List[dict]:
        return [s.to_record() for s in self._samples]


# -----------------------------
# Results
# -----------------------------

class Feedback(NamedTuple):
    message: str
    kind: str                    # "good", "bad" or "info"
    angle: Optional[float] = None
    label: Optional[str] = None
    source: str = "heuristic"    # "heuristic" or "classifier"


class TrainResult(NamedTuple):
    count: int
    labels: Dict[str, int]


class AccuracyResult(NamedTuple):
    correct: int
    total: int

    @property
    def percentage(self) -> float:
        return 100.0 * self.correct / self.total


@dataclass
class SessionState:
    """Everything mutable in a session; owned by one SessionController."""
    config: Config
    sensitivity: int
    samples: SampleStore = field(default_factory=SampleStore)
    classifier: Optional[PoseClassifier] = None
    classifier_ready: bool = False
    last_feedback: Optional[Feedback] = None


# -----------------------------
# Controller
# -----------------------------

class SessionController:
    def __init__(self, config: Optional[Config] = None,
                 classifier_factory: Optional[Callable[[], PoseClassifier]] = None) -> None:
        self.config = config or Config()
        self.state = SessionState(config=self.config, sensitivity=self.config.sensitivity)
        self._factory = classifier_factory or (lambda: KNNClassifier(k=self.config.k))
        self._lock = threading.Lock()
        self.fallback = HeuristicClassifier(lambda: self.state.sensitivity,
                                            good=self.config.good_label, bad=self.config.bad_label)
        self._init_classifier()

    def _init_classifier(self) -> None:
        try:
            self.state.classifier = self._factory()
            self.state.classifier_ready = True
            logger.info("Classifier loaded")
        except Exception:
            logger.exception("Could not initialise the classifier; running heuristic-only")
            self.state.classifier = None
            self.state.classifier_ready = False

    @property
    def samples(self) -> SampleStore:
        return self.state.samples

    @property
    def sensitivity(self) -> int:
        return self.state.sensitivity

    def _feedback(self, fb: Feedback) -> Feedback:
        self.state.last_feedback = fb
        return fb

    # ---------- per frame ----------
    def on_frame(self, landmarks) -> Optional[Feedback]:
        """Evaluate one landmark set. Never raises because of the classifier."""
        if landmarks is None:
            return None
        angle = posture_angle(landmarks)

        if not self.state.classifier_ready:
            logger.warning("Classifier not ready")
            return self._basic_check(angle, landmarks)

        with self._lock:
            clf = self.state.classifier
        try:
            if clf.num_labels() > 0:
                pred = clf.classify(flatten_pose(landmarks))
                kind = "good" if pred.label == self.config.good_label else "bad"
                return self._feedback(Feedback(f"Prediction: {pred.label} ({angle:.1f}°)", kind,
                                               angle, pred.label, "classifier"))
            return self._basic_check(angle, landmarks)
        except Exception:
            logger.exception("Classification failed")
            return self._basic_check(angle, landmarks)

    def _basic_check(self, angle: float, landmarks) -> Feedback:
        # Frames judged by the heuristic are also recorded as training samples.
        label = self.fallback.classify(flatten_pose(landmarks)).label
        self.samples.append(Sample.from_landmarks(landmarks, label))
        if label == self.config.good_label:
            fb = Feedback(f"Good posture! ({angle:.1f}°)", "good", angle, label)
        else:
            fb = Feedback(f"Bad posture! ({angle:.1f}°)", "bad", angle, label)
        return self._feedback(fb)

    # ---------- user actions ----------
    def save_sample(self, landmarks, label: str) -> Sample:
        if landmarks is None:
            raise PostureError("No pose detected")
        sample = Sample.from_landmarks(landmarks, label)
        self.samples.append(sample)
        logger.info("Saved %s sample (%d total)", label, len(self.samples))
        return sample

    def set_sensitivity(self, value) -> int:
        c = self.config
        self.state.sensitivity = int(max(c.min_sensitivity, min(c.max_sensitivity, int(value))))
        return self.state.sensitivity

    def train(self) -> TrainResult:
        if not self.state.classifier_ready:
            raise ClassifierNotReady("Classifier is not loaded yet")
        n = len(self.samples)
        if n < self.config.min_samples:
            raise InsufficientData(n, self.config.min_samples)

        snapshot = list(self.samples)
        try:
            fresh = self._factory()
            for s in snapshot:
                fresh.add_example(s.vector, s.label)
        except Exception as e:
            logger.exception("Training failed")
            raise TrainingError(f"Training failed: {e}") from e

        with self._lock:
            self.state.classifier = fresh
        result = TrainResult(count=len(snapshot), labels=self.samples.labels())
        logger.info("Model trained with %d samples %s", result.count, result.labels)
        self._feedback(Feedback(f"Model trained with {result.count} samples!", "info"))
        return result

    def evaluate_accuracy(self) -> AccuracyResult:
        """
        Score the current classifier on the most recent test_fraction of the
        store. These samples are not held out of training.
        """
        n = len(self.samples)
        if n < self.config.min_samples:
            raise InsufficientData(n, self.config.min_samples)
        test_size = math.floor(n * self.config.test_fraction)
        if test_size == 0:
            raise InsufficientData(n, math.ceil(1 / self.config.test_fraction))

        with self._lock:
            clf = self.state.classifier
        correct = 0
        test_data = self.samples.tail(test_size)
        for s in test_data:
            try:
                if clf is None:
                    raise ClassifierNotReady("Classifier is not loaded")
                if clf.classify(s.vector).label == s.label:
                    correct += 1
            except Exception:
                logger.exception("Classification failed during accuracy check")

        result = AccuracyResult(correct=correct, total=len(test_data))
        logger.info("Accuracy: %.1f%% (%d/%d)", result.percentage, result.correct, result.total)
        self._feedback(Feedback(
            f"Accuracy: {result.percentage:.1f}% ({result.correct}/{result.total})", "info"))
        return result

    def export(self, directory=None, today=None) -> Path:
        if len(self.samples) == 0:
            raise EmptyStore()
        out_dir = Path(directory or self.config.export_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        day = (today or datetime.now(timezone.utc).date()).isoformat()
        path = out_dir / f"{self.config.export_prefix}_{day}.json"
        path.write_text(json.dumps(self.samples.to_records(), indent=2), encoding="utf-8")
        logger.info("Exported %d samples to %s", len(self.samples), path)
        return path
