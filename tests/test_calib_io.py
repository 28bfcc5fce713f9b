import numpy as np, pytest

from checkercal import calib_io
from checkercal.calib_io import CalibrationFileError, CameraModel

EXAMPLE = "3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n8\n1\n0\n0\n0\n0\n0\n0\n0"

def sample_model(size=None):
    K = np.array([[812.3456789012345, 0, 319.51], [0, 809.1, 241.0000001], [0, 0, 1]])
    dist = np.array([0.1, -0.25, 1e-4, -2e-4, 0.0312, 0, 0, 1e-12]).reshape(8, 1)
    return CameraModel(K, dist, size)

def test_example_file(tmp_path):
    p = tmp_path / "Calibration"
    p.write_text(EXAMPLE)
    m = calib_io.load(p)
    assert np.array_equal(m.K, np.eye(3))
    assert m.dist.shape == (8, 1)
    # the example file reads as written: first coefficient 1 (see DESIGN.md, "Worked example")
    assert m.dist[0, 0] == 1 and not m.dist[1:].any()
    assert m.image_size is None

def test_identity_and_zero_dist():
    m = calib_io.parse("3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n8\n" + "0\n" * 8)
    assert np.array_equal(m.K, np.eye(3))
    assert np.array_equal(m.dist, np.zeros((8, 1)))

def test_round_trip_text(tmp_path):
    p = tmp_path / "calibration.txt"
    m = sample_model()
    assert calib_io.save(p, m)
    back = calib_io.load(p)
    assert np.array_equal(back.K, m.K)
    assert np.array_equal(back.dist, m.dist)

def test_text_layout():
    lines = calib_io.to_text(sample_model()).splitlines()
    assert lines[:2] == ["3", "3"]
    assert lines[11] == "8"
    assert len(lines) == 2 + 9 + 1 + 8

def test_round_trip_keeps_image_size(tmp_path):
    p = tmp_path / "calibration.txt"
    calib_io.save(p, sample_model((640, 480)))
    assert calib_io.load(p).image_size == (640, 480)

def test_round_trip_npz(tmp_path):
    p = tmp_path / "calibration.npz"
    m = sample_model((1280, 720))
    assert calib_io.save(p, m)
    back = calib_io.load(p)
    assert np.array_equal(back.K, m.K)
    assert np.array_equal(back.dist, m.dist)
    assert back.image_size == (1280, 720)

@pytest.mark.parametrize("text", [
    "",
    "3\n3\n1\n0",                                     # truncated matrix
    "3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1",                # no coefficients
    "3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n8\n0\n0",       # truncated coefficients
    "2\n2\n1\n0\n0\n1\n5\n0\n0\n0\n0\n0",             # not 3x3
    "3\n3\n1\n0\n0\n0\nx\n0\n0\n0\n1\n5\n0\n0\n0\n0\n0",
    "3.5\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n5\n0\n0\n0\n0\n0",
    "3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n7\n0\n0\n0\n0\n0\n0\n0",
    "3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n5\n0\n0\n0\n0\n0\n640",
    "inf\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n5\n0\n0\n0\n0\n0",
    "3\nnan\n1\n0\n0\n0\n1\n0\n0\n0\n1\n5\n0\n0\n0\n0\n0",
    "3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n1e400\n0\n0\n0\n0\n0",
    "3\n3\nnan\n0\n0\n0\n1\n0\n0\n0\n1\n5\n0\n0\n0\n0\n0",       # non-finite K
    "3\n3\n1\n0\n0\n0\n1\n0\n0\n0\n1\n5\n0\n-inf\n0\n0\n0",      # non-finite dist
])
def test_malformed(text):
    with pytest.raises(CalibrationFileError):
        calib_io.parse(text)

def test_load_missing_file(tmp_path, capsys):
    assert calib_io.load(tmp_path / "nope.txt") is None
    assert "could not read" in capsys.readouterr().out

def test_load_malformed_file(tmp_path):
    p = tmp_path / "bad.txt"
    p.write_text("3\n3\n1\n")
    assert calib_io.load(p) is None

def test_load_bad_npz(tmp_path):
    p = tmp_path / "bad.npz"
    p.write_text("not an archive")
    assert calib_io.load(p) is None

def test_save_unwritable(tmp_path, capsys):
    assert not calib_io.save(tmp_path / "missing" / "calibration.txt", sample_model())
    assert "could not write" in capsys.readouterr().out

def test_load_non_finite_header(tmp_path):
    p = tmp_path / "calibration.txt"
    p.write_text("inf\n3\n" + "1\n" * 9 + "5\n" + "0\n" * 5)
    assert calib_io.load(p) is None

def test_load_nan_camera_matrix(tmp_path, capsys):
    p = tmp_path / "calibration.txt"
    p.write_text("3\n3\nnan\n0\n0\n0\n1\n0\n0\n0\n1\n8\n" + "0\n" * 8)
    assert calib_io.load(p) is None
    assert "calibration read" not in capsys.readouterr().out

@pytest.mark.parametrize("K, dist", [
    (np.eye(3), np.zeros(3)),                       # dist length cv2 rejects
    (np.eye(3), np.full(5, np.nan)),
    (np.array([[np.inf, 0, 0], [0, 1, 0], [0, 0, 1]]), np.zeros(5)),
    (np.eye(4), np.zeros(5)),
    (np.ones(3), np.zeros(5)),
])
def test_load_invalid_npz_model(tmp_path, K, dist):
    p = tmp_path / "calibration.npz"
    np.savez(p, K=K, dist=dist, image_size=np.array([640, 480]))
    assert calib_io.load(p) is None
