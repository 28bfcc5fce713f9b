# Synthetic checkerboard views seen by a known pinhole camera.
import cv2, numpy as np, pytest

from checkercal.board import BOARD_DIM, SQUARE_SIZE, board_points

K_TRUE = np.array([[800.,0,320],[0,800.,240],[0,0,1]])
SIZE = (640, 480)
PX = 40   # pixels per square in the flat render

RVECS = [(0.3,0,0), (-0.3,0,0), (0,0.3,0), (0,-0.3,0), (0.2,0.2,0.1), (-0.2,0.25,-0.1)]

def flat_board(pattern=BOARD_DIM):
    """Fronto-parallel board: (w+1)x(h+1) squares with a one-square white margin."""
    w, h = pattern
    img = np.full(((h+3)*PX, (w+3)*PX), 255, np.uint8)
    for r in range(h+1):
        for c in range(w+1):
            if (r+c) % 2 == 0:
                img[(r+1)*PX:(r+2)*PX, (c+1)*PX:(c+2)*PX] = 0
    return img

def board_center(pattern=BOARD_DIM, square=SQUARE_SIZE):
    return np.array([(pattern[0]-1)*square/2, (pattern[1]-1)*square/2, 0.0])

def pose_for(rvec, dist=0.6):
    rvec = np.array(rvec, np.float64).reshape(3,1)
    R, _ = cv2.Rodrigues(rvec)
    tvec = (-R @ board_center() + np.array([0,0,dist])).reshape(3,1)
    return rvec, tvec

def true_corners(rvec):
    r, t = pose_for(rvec)
    pts, _ = cv2.projectPoints(board_points(), r, t, K_TRUE, None)
    return pts.astype(np.float32)

def view(rvec):
    """BGR frame of the flat board as seen from pose_for(rvec)."""
    r, t = pose_for(rvec)
    R, _ = cv2.Rodrigues(r)
    s = SQUARE_SIZE / PX
    # flat pixel -> board metres; first inner corner sits at 2*PX - 0.5
    S = np.array([[s,0,-(2*PX-0.5)*s],[0,s,-(2*PX-0.5)*s],[0,0,1]])
    H = K_TRUE @ np.column_stack([R[:,0], R[:,1], t.ravel()]) @ S
    img = cv2.warpPerspective(flat_board(), H, SIZE, flags=cv2.INTER_LINEAR, borderValue=255)
    return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)

@pytest.fixture
def views():
    return [view(r) for r in RVECS]
