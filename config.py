from dataclasses import dataclass


@dataclass
class Config:
    """Runtime settings for the posture trainer. Validated on construction."""

    # Heuristic threshold (degrees), adjustable at runtime
    sensitivity: int = 20
    min_sensitivity: int = 20
    max_sensitivity: int = 50

    # Training / evaluation
    min_samples: int = 20
    test_fraction: float = 0.2
    k: int = 3

    # MediaPipe Pose
    model_complexity: int = 1
    smooth_landmarks: bool = True
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    # Camera
    camera_width: int = 640
    camera_height: int = 480

    # Export
    export_dir: str = "captures"
    export_prefix: str = "posture-data"

    good_label: str = "good_posture"
    bad_label: str = "bad_posture"

    def __post_init__(self):
        if self.min_sensitivity > self.max_sensitivity:
            raise ValueError("min_sensitivity must not exceed max_sensitivity")
        if not (self.min_sensitivity <= self.sensitivity <= self.max_sensitivity):
            raise ValueError(
                f"sensitivity must be between {self.min_sensitivity} and {self.max_sensitivity}"
            )
        if self.min_samples < 1:
            raise ValueError("min_samples must be at least 1")
        if not (0.0 < self.test_fraction <= 1.0):
            raise ValueError("test_fraction must be in (0, 1]")
        if self.k < 1:
            raise ValueError("k must be at least 1")
        if not (0 <= self.model_complexity <= 2):
            raise ValueError("model_complexity must be 0, 1, or 2")
        for name in ("min_detection_confidence", "min_tracking_confidence"):
            v = getattr(self, name)
            if not (0.0 <= v <= 1.0):
                raise ValueError(f"{name} must be between 0.0 and 1.0")
        if self.good_label == self.bad_label:
            raise ValueError("good_label and bad_label must differ")


def add_config_args(ap):
    """Register the shared CLI options on an argparse parser."""
    ap.add_argument("--source", type=str, default="0", help="0 for webcam or path to video file")
    ap.add_argument("--sensitivity", type=int, default=Config.sensitivity, help="Posture angle threshold in degrees (20-50)")
    ap.add_argument("--min-samples", type=int, default=Config.min_samples, help="Samples needed before training/accuracy")
    ap.add_argument("--k", type=int, default=Config.k, help="Neighbours used by the KNN classifier")
    ap.add_argument("--export-dir", type=str, default=Config.export_dir, help="Directory for exported JSON files")
    ap.add_argument("--log-level", type=str, default="INFO", help="DEBUG, INFO, WARNING or ERROR")
    return ap


def config_from_args(args):
    return Config(
        sensitivity=args.sensitivity,
        min_samples=args.min_samples,
        k=args.k,
        export_dir=args.export_dir,
    )
