# overlay.py
from collections import namedtuple
import numpy as np, cv2, transforms3d as t3d

from .board import BOARD_DIM, SQUARE_SIZE, board_points, draw_corners, find_corners

Pose = namedtuple("Pose", ["rvec", "tvec"])

# ---------- geometry ----------
def axis_points(length):
    # origin, x, y, z (z points out of the board, towards the camera)
    return np.float32([[0,0,0], [length,0,0], [0,length,0], [0,0,-length]])

def cube_points(s):
    return np.float32([
        [0,0,0], [s,0,0], [s,s,0], [0,s,0],
        [0,0,-s], [s,0,-s], [s,s,-s], [0,s,-s],
    ])

def scale_K(K, calib_size, frame_size):
    cw,ch = map(float, calib_size); fw,fh = map(float, frame_size)
    sx, sy = fw/cw, fh/ch
    K2 = np.array(K, np.float64, copy=True)
    K2[0,0]*=sx; K2[1,1]*=sy; K2[0,2]*=sx; K2[1,2]*=sy
    return K2

# ---------- pose ----------
def solve_pose(corners, object_points, K, dist):
    ok, rvec, tvec = cv2.solvePnP(object_points, corners, K, dist)
    if not ok: return None
    return Pose(rvec, tvec)

def project(points, pose, K, dist):
    pts, _ = cv2.projectPoints(np.float32(points), pose.rvec, pose.tvec, K, dist)
    return pts.reshape(-1, 2)

def pose_text(pose):
    R, _ = cv2.Rodrigues(pose.rvec)
    yaw,pitch,roll = t3d.euler.mat2euler(R, axes='sxyz')
    t = np.asarray(pose.tvec).reshape(3)
    return f"t(m)=[{t[0]:.3f} {t[1]:.3f} {t[2]:.3f}]  y/p/r={yaw:.2f},{pitch:.2f},{roll:.2f}"

# ---------- drawing ----------
def _pt(p):
    return (int(round(p[0])), int(round(p[1])))

def draw_axes(img, K, dist, pose, length):
    o, x, y, z = project(axis_points(length), pose, K, dist)
    cv2.line(img, _pt(o), _pt(x), (0,0,255), 3)
    cv2.line(img, _pt(o), _pt(y), (0,255,0), 3)
    cv2.line(img, _pt(o), _pt(z), (255,0,0), 3)
    return img

def draw_cube(img, K, dist, pose, size, color=(255,255,0)):
    p = np.round(project(cube_points(size), pose, K, dist)).astype(np.int32)
    cv2.polylines(img, [p[0:4]], True, color, 2)
    cv2.polylines(img, [p[4:8]], True, color, 2)
    for i in range(4):
        cv2.line(img, _pt(p[i]), _pt(p[i+4]), color, 2)
    return img

def render(vis, K, dist, corners, pattern=BOARD_DIM, square=SQUARE_SIZE, objp=None):
    """Solve the board pose from detected corners and draw axes + cube onto vis.

    Stateless per frame; returns the Pose or None if PnP fails.
    """
    if objp is None:
        objp = board_points(pattern, square)
    pose = solve_pose(corners, objp, K, dist)
    if pose is None:
        return None
    draw_corners(vis, pattern, corners, True)
    draw_axes(vis, K, dist, pose, 3*square)
    draw_cube(vis, K, dist, pose, 2*square)
    return pose

def overlay_frame(frame, K, dist, pattern=BOARD_DIM, square=SQUARE_SIZE, objp=None):
    """Detect, solve and draw on a copy of frame. Returns (vis, pose or None)."""
    vis = frame.copy()
    found, corners = find_corners(frame, pattern, fast=True)
    if not found:
        return vis, None
    return vis, render(vis, K, dist, corners, pattern, square, objp)
