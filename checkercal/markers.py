# markers.py
import os, cv2

def make_markers(out, count=50, size=500, dictionary=cv2.aruco.DICT_4X4_50):
    """Write printable ArUco markers 0..count-1 as 4x4_Marker_<i>.jpg."""
    d = cv2.aruco.getPredefinedDictionary(dictionary)
    os.makedirs(out, exist_ok=True)
    paths = []
    for i in range(count):
        img = cv2.aruco.generateImageMarker(d, i, size, borderBits=1)
        fn = os.path.join(out, f"4x4_Marker_{i}.jpg")
        cv2.imwrite(fn, img)
        paths.append(fn)
    print(f"[SAVE] {len(paths)} markers written to {out}")
    return paths
