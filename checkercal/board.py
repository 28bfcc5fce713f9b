# board.py
import cv2, numpy as np

BOARD_DIM = (6, 9)     # inner corners (per row, per column)
SQUARE_SIZE = 0.023    # m

FIND_FLAGS = cv2.CALIB_CB_ADAPTIVE_THRESH | cv2.CALIB_CB_NORMALIZE_IMAGE
SUBPIX_CRITERIA = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 30, 1e-3)

def board_points(pattern=BOARD_DIM, square=SQUARE_SIZE):
    """Known 3D corner positions on the Z=0 plane, x varying fastest."""
    w, h = pattern
    objp = np.zeros((w*h, 3), np.float32)
    objp[:, :2] = np.mgrid[0:w, 0:h].T.reshape(-1, 2)
    objp *= square
    return objp

def to_gray(img):
    if img.ndim == 2: return img
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)

def find_corners(img, pattern=BOARD_DIM, fast=False, refine=True):
    """Returns (found, corners). A missing board is (False, None), not an error.

    fast adds CALIB_CB_FAST_CHECK, which bails out early on frames without a
    board; meant for the live loop.
    """
    gray = to_gray(img)
    flags = FIND_FLAGS | (cv2.CALIB_CB_FAST_CHECK if fast else 0)
    ok, corners = cv2.findChessboardCorners(gray, tuple(pattern), flags=flags)
    if not ok:
        return False, None
    if refine:
        corners = cv2.cornerSubPix(gray, corners, (11,11), (-1,-1), SUBPIX_CRITERIA)
    return True, corners

def draw_corners(img, pattern, corners, found):
    if corners is not None:
        cv2.drawChessboardCorners(img, tuple(pattern), corners, found)
    return img
