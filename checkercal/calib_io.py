# calib_io.py
"""Reading and writing calibration results.

Text files hold one value per line, row-major:

    rows, cols, K values..., n, distortion values..., [width, height]

The trailing image size is optional. Paths ending in .npz are stored as a
numpy archive with keys K, dist and image_size instead.
"""
import math, os, zipfile
from collections import namedtuple
import numpy as np

CameraModel = namedtuple("CameraModel", ["K", "dist", "image_size"], defaults=(None,))

DIST_SIZES = (4, 5, 8, 12, 14)   # lengths cv2 accepts

class CalibrationFileError(ValueError):
    pass

def to_text(model):
    K = np.asarray(model.K, np.float64)
    d = np.asarray(model.dist, np.float64).ravel()
    lines = [str(K.shape[0]), str(K.shape[1])]
    lines += [f"{v:.17g}" for v in K.ravel()]
    lines.append(str(d.size))
    lines += [f"{v:.17g}" for v in d]
    if model.image_size is not None:
        lines += [str(int(v)) for v in model.image_size]
    return "\n".join(lines) + "\n"

def parse(text):
    tokens = text.split()
    if not tokens:
        raise CalibrationFileError("empty calibration file")
    try:
        vals = [float(t) for t in tokens]
    except ValueError as e:
        raise CalibrationFileError(str(e)) from None

    def count(i, what):
        if i >= len(vals):
            raise CalibrationFileError(f"truncated before {what}")
        v = vals[i]
        if not math.isfinite(v) or v != int(v) or v <= 0:
            raise CalibrationFileError(f"bad {what}: {tokens[i]}")
        return int(v)

    def block(i, n, what):
        if i + n > len(vals):
            raise CalibrationFileError(f"truncated {what}: need {n} values, have {len(vals) - i}")
        return np.array(vals[i:i+n], np.float64)

    rows, cols = count(0, "row count"), count(1, "column count")
    if (rows, cols) != (3, 3):
        raise CalibrationFileError(f"camera matrix must be 3x3, got {rows}x{cols}")
    i = 2
    K = block(i, rows*cols, "camera matrix").reshape(rows, cols); i += rows*cols
    n = count(i, "coefficient count"); i += 1
    if n not in DIST_SIZES:
        raise CalibrationFileError(f"unsupported number of distortion coefficients: {n}")
    dist = block(i, n, "distortion coefficients").reshape(n, 1); i += n
    check(K, dist)

    rest = len(vals) - i
    if rest == 0:
        return CameraModel(K, dist)
    if rest == 2:
        return CameraModel(K, dist, (count(i, "image width"), count(i+1, "image height")))
    raise CalibrationFileError(f"{rest} unexpected trailing values")

def check(K, dist):
    """Raise CalibrationFileError unless K and dist form a usable camera model."""
    if K.shape != (3, 3):
        raise CalibrationFileError(f"camera matrix must be 3x3, got {K.shape[0]}x{K.shape[1]}")
    if dist.size not in DIST_SIZES:
        raise CalibrationFileError(f"unsupported number of distortion coefficients: {dist.size}")
    if not (np.isfinite(K).all() and np.isfinite(dist).all()):
        raise CalibrationFileError("non-finite value in camera matrix or distortion coefficients")

def _is_npz(path):
    return os.fspath(path).lower().endswith(".npz")

def save(path, model):
    """Write model to path. Returns False (and says why) if the file can't be written."""
    try:
        if _is_npz(path):
            size = model.image_size if model.image_size is not None else (0, 0)
            np.savez(path, K=model.K, dist=model.dist, image_size=np.asarray(size, int))
        else:
            with open(path, "w") as f:
                f.write(to_text(model))
    except OSError as e:
        print(f"[SAVE] could not write {path}: {e}")
        return False
    print(f"[SAVE] calibration written to {path}")
    return True

def load(path):
    """Read a CameraModel from path, or None if it is missing or malformed."""
    try:
        if _is_npz(path):
            with np.load(path) as cal:
                K, dist = cal["K"].astype(np.float64), cal["dist"].astype(np.float64)
                size = tuple(int(v) for v in cal["image_size"]) if "image_size" in cal else None
            if K.ndim != 2:
                raise CalibrationFileError(f"camera matrix must be 3x3, got shape {K.shape}")
            check(K, dist)
            model = CameraModel(K, dist.reshape(-1, 1), size if size and all(size) else None)
        else:
            with open(path) as f:
                model = parse(f.read())
    except OSError as e:
        print(f"[LOAD] could not read {path}: {e}")
        return None
    except (ValueError, OverflowError, KeyError, zipfile.BadZipFile) as e:
        print(f"[LOAD] {path} is not a valid calibration file: {e}")
        return None
    print(f"[LOAD] calibration read from {path}")
    return model
