import argparse
import logging
import time

import cv2
import numpy as np

import mediapipe as mp
from config import add_config_args, config_from_args
from session import SessionController, PostureError
from utils.common import FPSCounter, landmarks_from_results, setup_logging

WIN = "Posture Trainer"
TRACKBAR = "Sensitivity"

logger = logging.getLogger("app")

COLORS = {
    "good": (80, 220, 90),
    "bad": (0, 0, 255),
    "info": (255, 160, 60),
}
ALERT_SECONDS = 4.0

# --- UI helpers ---
def make_sidebar(h, session, feedback, alert=None, fps=0.0):
    """Right-hand panel with feedback, session stats and key help."""
    side_w = 340
    panel = np.zeros((h, side_w, 3), dtype=np.uint8)

    cv2.rectangle(panel, (0,0), (side_w, 36), (32,32,32), -1)
    cv2.putText(panel, "Posture", (12, 24), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255,255,255), 2, cv2.LINE_AA)

    y = 60
    lh = 22
    if feedback is not None:
        # Hershey fonts are ASCII-only
        cv2.putText(panel, feedback.message.replace("°", " deg"), (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6,
                    COLORS.get(feedback.kind, (255,255,255)), 2, cv2.LINE_AA)
    else:
        cv2.putText(panel, "No pose detected", (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (160,160,160), 1, cv2.LINE_AA)
    y += lh + 8

    st = session.state
    counts = session.samples.labels()
    lines = [
        f"Sensitivity: {st.sensitivity} deg",
        f"Samples: {len(session.samples)} (min {session.config.min_samples})",
    ] + [f"  {k}: {v}" for k, v in sorted(counts.items())] + [
        f"Classifier: {'ready' if st.classifier_ready else 'unavailable'}",
        f"FPS: {fps:.1f}",
    ]
    for ln in lines:
        cv2.putText(panel, ln, (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (200,200,200), 1, cv2.LINE_AA)
        y += lh

    if alert:
        y += 8
        cv2.rectangle(panel, (6, y-16), (side_w-6, y+8), (0,0,90), -1)
        cv2.putText(panel, alert, (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.45, (255,255,255), 1, cv2.LINE_AA)

    tips = ["Keys: e export | t train | a accuracy",
            "g/b save good/bad | [ ] sensitivity",
            "h skeleton | q/Esc quit"]
    y = h - 12 - 18*(len(tips)-1)
    for tip in tips:
        cv2.putText(panel, tip, (12, y), cv2.FONT_HERSHEY_SIMPLEX, 0.42, (180,180,180), 1, cv2.LINE_AA)
        y += 18
    return panel

def cleanup(cap=None):
    try:
        if cap is not None:
            cap.release()
    except Exception:
        logger.exception("Releasing camera failed")
    try:
        cv2.destroyAllWindows()
        for _ in range(5):
            cv2.waitKey(1); time.sleep(0.01)
    except cv2.error:
        pass


def run_action(session, key, landmarks):
    """Dispatch one hotkey. Returns an alert string for the sidebar, or None."""
    cfg = session.config
    try:
        if key == ord('e'):
            path = session.export()
            return f"Exported to {path}"
        if key == ord('t'):
            res = session.train()
            return f"Model trained with {res.count} samples!"
        if key == ord('a'):
            res = session.evaluate_accuracy()
            return f"Accuracy: {res.percentage:.1f}% ({res.correct}/{res.total})"
        if key in (ord('g'), ord('b')):
            label = cfg.good_label if key == ord('g') else cfg.bad_label
            session.save_sample(landmarks, label)
            return f"Saved {label} ({len(session.samples)})"
        if key in (ord('['), ord(']')):
            step = -1 if key == ord('[') else 1
            value = session.set_sensitivity(session.sensitivity + step)
            cv2.setTrackbarPos(TRACKBAR, WIN, value)
    except PostureError as e:
        logger.warning("%s", e)
        return str(e)
    return None


def main():
    ap = add_config_args(argparse.ArgumentParser(description="Webcam posture trainer"))
    args = ap.parse_args()
    setup_logging(args.log_level)
    cfg = config_from_args(args)

    mp_drawing = mp.solutions.drawing_utils
    mp_styles = mp.solutions.drawing_styles
    mp_pose = mp.solutions.pose

    cap = cv2.VideoCapture(int(args.source)) if args.source.isdigit() else cv2.VideoCapture(args.source)
    if not cap.isOpened():
        logger.error("Could not open video source %s", args.source); return
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.camera_width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.camera_height)

    session = SessionController(cfg)

    cv2.namedWindow(WIN)
    cv2.createTrackbar(TRACKBAR, WIN, cfg.sensitivity, cfg.max_sensitivity, session.set_sensitivity)
    cv2.setTrackbarMin(TRACKBAR, WIN, cfg.min_sensitivity)

    draw_helpers = True
    alert, alert_at = None, 0.0
    fps = FPSCounter()

    try:
        with mp_pose.Pose(
            model_complexity=cfg.model_complexity,
            smooth_landmarks=cfg.smooth_landmarks,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence
        ) as pose:
            while True:
                ok, frame = cap.read()
                if not ok: break
                frame = cv2.flip(frame, 1)
                h = frame.shape[0]

                rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                rgb.flags.writeable = False
                results = pose.process(rgb)
                rgb.flags.writeable = True

                if draw_helpers and results.pose_landmarks:
                    mp_drawing.draw_landmarks(
                        frame, results.pose_landmarks, mp_pose.POSE_CONNECTIONS,
                        landmark_drawing_spec=mp_styles.get_default_pose_landmarks_style()
                    )

                landmarks = landmarks_from_results(results)
                feedback = session.on_frame(landmarks)

                if alert and time.time() - alert_at > ALERT_SECONDS:
                    alert = None
                sidebar = make_sidebar(h, session, feedback, alert, fps.tick())
                cv2.imshow(WIN, cv2.hconcat([frame, sidebar]))

                key = cv2.waitKey(1) & 0xFF
                if key in (ord('q'), 27):
                    break
                try:
                    if cv2.getWindowProperty(WIN, cv2.WND_PROP_VISIBLE) < 1:
                        break
                except cv2.error:
                    break

                if key == ord('h'):
                    draw_helpers = not draw_helpers
                elif key != 0xFF:
                    msg = run_action(session, key, landmarks)
                    if msg:
                        alert, alert_at = msg, time.time()
    finally:
        cleanup(cap=cap)

if __name__ == "__main__":
    main()
