# main.py
import argparse, functools, os, sys, time
import numpy as np, cv2

from . import calib_io
from .board import BOARD_DIM, SQUARE_SIZE, board_points, draw_corners, find_corners
from .calibrate import CalibrationError, calibrate, load_images, report
from .markers import make_markers
from .overlay import pose_text, render, scale_K
from .session import CaptureSession, MIN_SAMPLES, CALIBRATED, DONE

WIN = "Webcam (space: keep | enter: calibrate | l: load | esc: quit)"
MODES = ("i", "v", "l")

def ask_mode():
    while True:
        try:
            ans = input("Calibrate from (i)mages, (v)ideo, or (l)oad existing calibration? ")
        except EOFError:
            return None
        ans = ans.strip().lower()
        if ans in MODES: return ans
        print("Please answer i, v or l.")

def prepare_view(model, frame, undistort=False):
    """Intrinsics matched to the live frame size, plus undistort maps if requested.

    With undistortion on, the returned dist is all zeros since the frames
    handed to PnP are already rectified.
    """
    live = (frame.shape[1], frame.shape[0])
    K, dist = model.K, model.dist
    if model.image_size is not None and tuple(model.image_size) != live:
        K = scale_K(K, model.image_size, live)
        print(f"[CAL] calib size={tuple(model.image_size)}, live={live}; intrinsics rescaled")
    if not undistort:
        return K, dist, None
    maps = cv2.initUndistortRectifyMap(K, dist, None, K, live, cv2.CV_16SC2)
    return K, np.zeros_like(dist), maps

def save_sample(out, n, frame):
    os.makedirs(out, exist_ok=True)
    fn = os.path.join(out, f"calib_{n:02d}.png")
    cv2.imwrite(fn, frame)
    print("saved", fn)

def from_images(args, session):
    for img in load_images(args.images):
        found, corners = find_corners(img, args.pattern)
        session.observe(img, found, corners)
        session.retain()
    if not session.calibrate():
        raise CalibrationError(f"only {len(session.samples)} usable images, need {session.min_samples}")
    report(session.model, session.rms)
    calib_io.save(args.cal, session.model)

def run_loop(cap, args, session):
    objp = board_points(args.pattern, args.square)
    delay = max(1, 1000 // args.fps)
    K = dist = maps = None
    frames, t0 = 0, time.time()

    while session.state != DONE:
        ok, frame = cap.read()
        if not ok:
            print("[WARN] camera read failed"); break

        if session.calibrated and K is None:
            K, dist, maps = prepare_view(session.model, frame, args.undistort)
        if maps is not None:
            frame = cv2.remap(frame, maps[0], maps[1], interpolation=cv2.INTER_LINEAR)

        found, corners = find_corners(frame, args.pattern, fast=True)
        session.observe(frame, found, corners)

        vis = frame.copy()
        y = 22
        if session.state == CALIBRATED:
            pose = render(vis, K, dist, corners, args.pattern, args.square, objp) if found else None
            msg, color = (pose_text(pose), (0,255,0)) if pose is not None else ("No board", (0,0,255))
        else:
            draw_corners(vis, args.pattern, corners, found)
            msg = f"{session.state}: {len(session.samples)}/{session.min_samples} samples"
            color = (0,255,0) if found else (0,0,255)
        cv2.putText(vis, msg, (10,y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2); y+=22

        frames += 1
        if frames == 1: t0 = time.time()
        if frames >= 10:
            fps = frames / max(time.time() - t0, 1e-6)
            cv2.putText(vis, f"{fps:.1f} FPS", (10,y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (50,220,50), 2)

        cv2.imshow(WIN, vis)
        k = cv2.waitKey(delay) & 0xFF
        try:
            action = session.handle_key(k, args.cal)
        except (CalibrationError, cv2.error) as e:
            print(f"[CAL] calibration failed: {e}")
            continue
        if action == "retain" and args.save_samples:
            save_sample(args.save_samples, len(session.samples) - 1, frame)
        elif action == "calibrate":
            report(session.model, session.rms)
            calib_io.save(args.cal, session.model)
            K = dist = maps = None
        elif action == "load":
            K = dist = maps = None

def run_live(args, session):
    cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        print(f"Cannot open camera {args.camera}")
        cap.release()
        return -1
    try:
        cv2.namedWindow(WIN, cv2.WINDOW_AUTOSIZE)
        run_loop(cap, args, session)
    finally:
        cap.release(); cv2.destroyAllWindows()
    return 0

def build_parser():
    ap = argparse.ArgumentParser(description="Checkerboard camera calibration with a live AR check")
    ap.add_argument("--mode", choices=["i","v","l","markers"],
                    help="i: still images, v: live video, l: load calibration (prompted if omitted)")
    ap.add_argument("--camera", type=int, default=0)
    ap.add_argument("--pattern", nargs=2, type=int, default=list(BOARD_DIM), help="inner corners (cols rows)")
    ap.add_argument("--square", type=float, default=SQUARE_SIZE, help="square edge (m)")
    ap.add_argument("--min-samples", type=int, default=MIN_SAMPLES)
    ap.add_argument("--cal", default="calibration.txt", help="calibration file (.txt or .npz)")
    ap.add_argument("--images", default="data/calib/*.png", help="glob of still images for mode i")
    ap.add_argument("--fps", type=int, default=20)
    ap.add_argument("--save-samples", metavar="DIR", help="also write retained frames to DIR")
    ap.add_argument("--undistort", action="store_true", help="undistort frames in the AR view")
    ap.add_argument("--no-view", action="store_true", help="stop after calibrating/loading, no AR view")
    ap.add_argument("--out", default="markers", help="output directory for mode markers")
    ap.add_argument("--count", type=int, default=50, help="number of markers for mode markers")
    return ap

def main(argv=None):
    args = build_parser().parse_args(argv)
    args.pattern = tuple(args.pattern)
    if args.min_samples < 1 or args.fps < 1:
        raise SystemExit("--min-samples and --fps must be positive")

    mode = args.mode or ask_mode()
    if mode is None:
        return 0
    if mode == "markers":
        make_markers(args.out, args.count)
        return 0

    session = CaptureSession(args.min_samples,
                             calibrator=functools.partial(calibrate, pattern=args.pattern, square=args.square))
    if mode == "i":
        try:
            from_images(args, session)
        except CalibrationError as e:
            print(f"[CAL] {e}")
            return 1
    elif mode == "l" and not session.load(args.cal):
        return 1

    if args.no_view and mode != "v":
        return 0
    return run_live(args, session)

def cli():
    sys.exit(main())

if __name__ == "__main__":
    cli()
