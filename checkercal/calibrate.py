# calibrate.py
import glob
import cv2, numpy as np

from .board import BOARD_DIM, SQUARE_SIZE, board_points, find_corners
from .calib_io import CameraModel

N_DIST = 8   # k1 k2 p1 p2 k3 k4 k5 k6

class CalibrationError(RuntimeError):
    pass

def load_images(glob_pat):
    files = sorted(glob.glob(glob_pat))
    if not files:
        raise CalibrationError(f"No images match {glob_pat}")
    imgs = []
    for fn in files:
        img = cv2.imread(fn)
        if img is None:
            print("[WARN] unreadable:", fn); continue
        imgs.append(img)
    print(f"[CAL] loaded {len(imgs)}/{len(files)} images from {glob_pat}")
    return imgs

def pad_dist(dist, n=N_DIST):
    d = np.zeros((n, 1), np.float64)
    src = np.asarray(dist, np.float64).ravel()[:n]
    d[:src.size, 0] = src
    return d

def calibrate_from_corners(corner_sets, image_size, pattern=BOARD_DIM, square=SQUARE_SIZE):
    """Run cv2.calibrateCamera on already detected corners.

    Every view shares the same board_points, since the board never changes.
    image_size is (width, height). Returns (CameraModel, rms).
    """
    if not corner_sets:
        raise CalibrationError("No detections collected.")
    objp = board_points(pattern, square)
    objpoints = [objp] * len(corner_sets)
    imgpoints = [np.asarray(c, np.float32).reshape(-1, 1, 2) for c in corner_sets]
    rms, K, dist, rvecs, tvecs = cv2.calibrateCamera(
        objpoints, imgpoints, tuple(int(v) for v in image_size), None, None, flags=0
    )
    return CameraModel(K, pad_dist(dist), tuple(int(v) for v in image_size)), rms

def calibrate(samples, pattern=BOARD_DIM, square=SQUARE_SIZE):
    """Calibrate from retained frames; frames where the board isn't found again are skipped."""
    corner_sets, size = [], None
    for n, img in enumerate(samples):
        ok, corners = find_corners(img, pattern)
        if not ok:
            print(f"[WARN] sample {n}: board not found, skipped"); continue
        corner_sets.append(corners)
        size = (img.shape[1], img.shape[0])
    print(f"[CAL] using {len(corner_sets)}/{len(samples)} samples")
    return calibrate_from_corners(corner_sets, size, pattern, square)

def report(model, rms):
    print("[CAL] RMS reprojection error:", rms)
    if rms > 1.0:
        print("[WARN] reprojection error is high; retake samples from more angles")
    print("K=\n", model.K)
    print("dist=", model.dist.ravel())
