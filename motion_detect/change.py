"""Frame vs. background differencing."""

import cv2
import numpy as np

from .frames import frame_area, to_gray


class ChangeDetector:
    """
    absdiff(frame, background) -> grayscale -> fixed binary threshold.

    Output is a single-channel uint8 mask with 255 = changed, 0 = unchanged.
    """

    def __init__(self, threshold: int = 25):
        self._threshold = threshold

    def detect(self, frame: np.ndarray, background: np.ndarray) -> np.ndarray:
        diff = cv2.absdiff(frame, background)
        gray = to_gray(diff)
        _, mask = cv2.threshold(gray, self._threshold, 255, cv2.THRESH_BINARY)
        return mask


def motion_percent(mask: np.ndarray) -> float:
    """Percentage of changed pixels over the full mask area, in [0, 100]."""
    return 100.0 * cv2.countNonZero(mask) / frame_area(mask)
