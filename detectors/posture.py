import math
from utils.common import POSE_IDX

GOOD_LABEL = "good_posture"
BAD_LABEL = "bad_posture"


def posture_angle(landmarks):
    """
    Slouch proxy in degrees from the vertical offset between the shoulder
    and hip averages. Assumes a roughly frontal camera; always in [0, 90).
    """
    f = POSE_IDX
    shoulder_y = (landmarks[f["L_SHOULDER"]].y + landmarks[f["R_SHOULDER"]].y) / 2
    hip_y = (landmarks[f["L_HIP"]].y + landmarks[f["R_HIP"]].y) / 2
    return abs(math.degrees(math.atan2(hip_y - shoulder_y, 1)))


def is_good_posture(angle, threshold):
    return angle < threshold


def heuristic_label(angle, threshold, good=GOOD_LABEL, bad=BAD_LABEL):
    return good if is_good_posture(angle, threshold) else bad


def simplify_pose(landmarks):
    return [[lm.x, lm.y, lm.z] for lm in landmarks]


def flatten_pose(landmarks):
    return [v for lm in landmarks for v in (lm.x, lm.y, lm.z)]


def angle_from_vector(vector):
    """posture_angle over a flattened (x, y, z) vector."""
    f = POSE_IDX
    def y(i):
        return vector[3*i + 1]
    shoulder_y = (y(f["L_SHOULDER"]) + y(f["R_SHOULDER"])) / 2
    hip_y = (y(f["L_HIP"]) + y(f["R_HIP"])) / 2
    return abs(math.degrees(math.atan2(hip_y - shoulder_y, 1)))
