"""
Conversions between 8-bit frames and the float32 accumulator.

The background is kept in float32 so that thousands of small alpha-weighted
updates do not compound rounding error; it is only brought back to uint8
when compared against a frame.
"""

import cv2
import numpy as np

from .errors import FrameError


def check_frame(frame: np.ndarray) -> np.ndarray:
    """Validate a decoded frame; (H, W, 1) frames are flattened to (H, W)."""
    if frame is None:
        raise FrameError("Frame is None")
    if frame.dtype != np.uint8:
        raise FrameError(f"Expected uint8 frame, got {frame.dtype}")
    if frame.ndim not in (2, 3) or (frame.ndim == 3 and frame.shape[2] not in (1, 3, 4)):
        raise FrameError(f"Unsupported frame shape {frame.shape}")
    frame_area(frame)
    if frame.ndim == 3 and frame.shape[2] == 1:
        return frame[:, :, 0]
    return frame


def frame_area(frame: np.ndarray) -> int:
    """Pixel count of one channel (width * height)."""
    h, w = frame.shape[:2]
    if h * w == 0:
        raise FrameError(f"Zero-area frame {w}×{h}")
    return h * w


def to_accumulator(frame: np.ndarray) -> np.ndarray:
    return frame.astype(np.float32)


def from_accumulator(acc: np.ndarray) -> np.ndarray:
    # abs -> round -> saturate to 0..255
    return cv2.convertScaleAbs(acc)


def to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image
    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0]
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    raise FrameError(f"Cannot reduce {channels}-channel image to grayscale")
