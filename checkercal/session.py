# session.py
"""State of one interactive calibration run.

idle -> searching -> ready -> calibrated, with done once quit is requested.
Loading a calibration file jumps straight to calibrated. The session holds no
camera or window; the capture loop feeds it frames and keys.
"""
from . import calib_io
from .calibrate import calibrate as run_calibration

MIN_SAMPLES = 15

IDLE, SEARCHING, READY, CALIBRATED, DONE = "idle", "searching", "ready", "calibrated", "done"

KEY_SPACE, KEY_ESC = 32, 27
KEYS_ENTER = (13, 10)

class CaptureSession:
    def __init__(self, min_samples=MIN_SAMPLES, calibrator=run_calibration, loader=calib_io.load):
        if min_samples < 1:
            raise ValueError("min_samples must be at least 1")
        self.min_samples = min_samples
        self.calibrator = calibrator   # samples -> (CameraModel, rms)
        self.loader = loader           # path -> CameraModel or None
        self.samples = []
        self.model = None
        self.rms = None
        self.frame = None
        self.found = False
        self.corners = None
        self.quit_requested = False

    @property
    def state(self):
        if self.quit_requested: return DONE
        if self.model is not None: return CALIBRATED
        if self.frame is None: return IDLE
        if len(self.samples) >= self.min_samples: return READY
        return SEARCHING

    @property
    def calibrated(self):
        return self.model is not None

    def observe(self, frame, found, corners=None):
        self.frame, self.found = frame, bool(found)
        self.corners = corners if found else None

    def retain(self):
        if self.frame is None or not self.found:
            return False
        self.samples.append(self.frame.copy())
        print(f"[CAL] sample {len(self.samples)}/{self.min_samples} retained")
        return True

    def calibrate(self):
        if len(self.samples) < self.min_samples:
            print(f"[CAL] need {self.min_samples} samples, have {len(self.samples)}")
            return False
        self.model, self.rms = self.calibrator(self.samples)
        return True

    def load(self, path):
        model = self.loader(path)
        if model is None:
            return False
        self.model, self.rms = model, None
        return True

    def quit(self):
        self.quit_requested = True

    def handle_key(self, key, cal_path=None):
        """Dispatch one waitKey code; returns the action taken, or None."""
        if key == KEY_ESC:
            self.quit(); return "quit"
        if key == KEY_SPACE:
            return "retain" if self.retain() else None
        if key in KEYS_ENTER:
            return "calibrate" if self.calibrate() else None
        if key == ord('l') and cal_path is not None:
            return "load" if self.load(cal_path) else None
        return None
