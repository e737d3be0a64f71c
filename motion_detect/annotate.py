"""Drawing helpers. Every function returns a new image; inputs are not touched."""

from typing import Iterable, Tuple

import cv2
import numpy as np

from .regions import Rectangle


COLOR_MOTION = (0, 255, 0)    # green
COLOR_RESET  = (0, 60, 255)   # orange-red
COLOR_TEXT   = (220, 220, 220)


def _to_bgr(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img


def draw_rectangles(
    frame: np.ndarray,
    rects: Iterable[Rectangle],
    color: Tuple[int, int, int] = COLOR_MOTION,
    thickness: int = 2,
) -> np.ndarray:
    img = frame.copy()
    if img.ndim == 2:
        # single-channel output: draw in the luminance of the requested colour
        b, g, r = color
        color = int(round(0.114 * b + 0.587 * g + 0.299 * r))
    elif img.shape[2] == 4:
        color = (*color, 255)
    for rect in rects:
        cv2.rectangle(img, rect.top_left, rect.bottom_right, color, thickness)
    return img


def draw_hud(
    frame: np.ndarray,
    frame_idx: int,
    percent: float,
    motion: bool,
    reset: bool = False,
) -> np.ndarray:
    """One status line on a black strip along the top edge."""
    img = _to_bgr(frame).copy()
    status = f"#{frame_idx}  {percent:.2f}%"
    color = COLOR_TEXT
    if reset:
        status += "  RESET"
        color = COLOR_RESET
    elif motion:
        status += "  MOTION"
        color = COLOR_MOTION

    scale = max(0.4, img.shape[0] / 1200)
    (_, th), baseline = cv2.getTextSize(status, cv2.FONT_HERSHEY_SIMPLEX, scale, 1)
    strip_h = min(img.shape[0], th + baseline + 8)
    img[:strip_h] = 0
    cv2.putText(img, status, (4, th + 4), cv2.FONT_HERSHEY_SIMPLEX, scale,
                color, 1, cv2.LINE_AA)
    return img


def build_debug_panel(mask: np.ndarray, annotated: np.ndarray) -> np.ndarray:
    """2-panel horizontal: [change mask | annotated frame]"""
    annotated = _to_bgr(annotated).copy()
    h, w = annotated.shape[:2]
    panel_mask = cv2.resize(_to_bgr(mask), (w, h))

    for panel, text in [(panel_mask, "CHANGE MASK"), (annotated, "DETECTIONS")]:
        cv2.putText(panel, text, (6, 20), cv2.FONT_HERSHEY_SIMPLEX, 0.55,
                    (200, 200, 200), 1, cv2.LINE_AA)

    return np.hstack([panel_mask, annotated])
