import argparse
import logging

import cv2
import mediapipe as mp
from config import add_config_args, config_from_args
from session import SessionController, EmptyStore
from utils.common import landmarks_from_results, setup_logging

WIN = "Sample Capture"

logger = logging.getLogger("collect")

PROMPTS = {
    "good_posture": "Sit upright, shoulders back, facing the camera.",
    "bad_posture": "Slouch or lean forward as you usually would.",
}

def draw_center_text(img, lines, y0=40):
    y = y0
    for ln in lines:
        cv2.putText(img, ln, (20, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255,255,255), 2, cv2.LINE_AA)
        y += 36

def capture(session, steps, cap, pose):
    """Prompt for each label in turn; SPACE stores a sample, n moves on, ESC/q stops."""
    mp_draw = mp.solutions.drawing_utils
    idx = 0
    count = 0
    while idx < len(steps):
        ok, frame = cap.read()
        if not ok: break
        frame = cv2.flip(frame, 1)
        wdt = frame.shape[1]
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb.flags.writeable = False
        res = pose.process(rgb)
        rgb.flags.writeable = True

        if res.pose_landmarks:
            mp_draw.draw_landmarks(frame, res.pose_landmarks, mp.solutions.pose.POSE_CONNECTIONS)

        step = steps[idx]
        prompt = PROMPTS.get(step, f"Hold a '{step}' pose.")

        cv2.rectangle(frame, (0,0), (wdt, 115), (32,32,32), -1)
        draw_center_text(frame, [f"{idx+1}/{len(steps)}: {step.upper()}  [{count} captured]", prompt,
                                 "SPACE capture | n next label | ESC quit"], y0=32)

        cv2.imshow(WIN, frame)
        key = cv2.waitKey(1) & 0xFF
        if key in (27, ord('q')):
            break
        if key == ord('n'):
            idx += 1; count = 0
        elif key == 32:  # space
            landmarks = landmarks_from_results(res)
            if landmarks is None:
                logger.warning("No pose detected; nothing captured")
                continue
            session.save_sample(landmarks, step)
            count += 1

def main():
    ap = add_config_args(argparse.ArgumentParser(description="Guided labelled pose capture"))
    ap.add_argument("--labels", nargs="+", default=None, help="Labels to capture, in order")
    args = ap.parse_args()
    setup_logging(args.log_level)
    cfg = config_from_args(args)
    steps = args.labels or [cfg.good_label, cfg.bad_label]

    cap = cv2.VideoCapture(int(args.source)) if args.source.isdigit() else cv2.VideoCapture(args.source)
    if not cap.isOpened():
        logger.error("Could not open video source %s", args.source); return

    session = SessionController(cfg)
    try:
        with mp.solutions.pose.Pose(model_complexity=cfg.model_complexity,
                                    smooth_landmarks=cfg.smooth_landmarks,
                                    min_detection_confidence=cfg.min_detection_confidence,
                                    min_tracking_confidence=cfg.min_tracking_confidence) as pose:
            capture(session, steps, cap, pose)
    finally:
        cap.release()
        cv2.destroyAllWindows()

    try:
        path = session.export()
        print(f"Saved {len(session.samples)} samples to {path.resolve()}")
    except EmptyStore:
        print("No samples captured; nothing saved.")

if __name__ == "__main__":
    main()
