from __future__ import annotations

from typing import Dict, List, NamedTuple, Protocol, Sequence

import numpy as np
from sklearn.neighbors import KNeighborsClassifier

from detectors.posture import GOOD_LABEL, BAD_LABEL, angle_from_vector, heuristic_label


class Prediction(NamedTuple):
    label: str
    confidence: float
    confidences: Dict[str, float]


class PoseClassifier(Protocol):
    """Capability set shared by the KNN backend and the heuristic fallback."""

    def add_example(self, vector: Sequence[float], label: str) -> None: ...

    def classify(self, vector: Sequence[float]) -> Prediction: ...

    def num_labels(self) -> int: ...


class KNNClassifier:
    """
    Accumulates (vector, label) examples and answers nearest-neighbour
    queries with scikit-learn. The estimator is refit lazily on the first
    query after new examples arrive; k is capped at the example count.
    """

    def __init__(self, k: int = 3) -> None:
        if k < 1:
            raise ValueError("k must be at least 1")
        self.k = k
        self._X: List[np.ndarray] = []
        self._y: List[str] = []
        self._model: KNeighborsClassifier | None = None

    def add_example(self, vector: Sequence[float], label: str) -> None:
        vec = np.asarray(vector, dtype=float).reshape(-1)
        if vec.size == 0:
            raise ValueError("empty vector")
        if self._X and vec.shape[0] != self._X[0].shape[0]:
            raise ValueError(f"vector length {vec.shape[0]} != {self._X[0].shape[0]}")
        if not np.all(np.isfinite(vec)):
            raise ValueError("vector contains NaN or inf")
        self._X.append(vec)
        self._y.append(str(label))
        self._model = None

    def num_labels(self) -> int:
        return len(set(self._y))

    def num_examples(self) -> int:
        return len(self._y)

    def _fit(self) -> KNeighborsClassifier:
        model = KNeighborsClassifier(n_neighbors=min(self.k, len(self._X)))
        model.fit(np.vstack(self._X), np.asarray(self._y))
        return model

    def classify(self, vector: Sequence[float]) -> Prediction:
        if not self._X:
            raise RuntimeError("no examples added; train the classifier first")
        if self._model is None:
            self._model = self._fit()
        x = np.asarray(vector, dtype=float).reshape(1, -1)
        probs = self._model.predict_proba(x)[0]
        classes = self._model.classes_
        best = int(np.argmax(probs))
        return Prediction(
            label=str(classes[best]),
            confidence=float(probs[best]),
            confidences={str(c): float(p) for c, p in zip(classes, probs)},
        )


class HeuristicClassifier:
    """Threshold rule on the posture angle, exposed through the classifier interface."""

    def __init__(self, threshold, good: str = GOOD_LABEL, bad: str = BAD_LABEL) -> None:
        # threshold: number or zero-arg callable returning the current value
        self._threshold = threshold
        self.good = good
        self.bad = bad

    @property
    def threshold(self) -> float:
        return self._threshold() if callable(self._threshold) else self._threshold

    def add_example(self, vector: Sequence[float], label: str) -> None:
        pass  # nothing to learn

    def num_labels(self) -> int:
        return 2

    def classify(self, vector: Sequence[float]) -> Prediction:
        label = heuristic_label(angle_from_vector(vector), self.threshold, self.good, self.bad)
        other = self.bad if label == self.good else self.good
        return Prediction(label=label, confidence=1.0, confidences={label: 1.0, other: 0.0})
