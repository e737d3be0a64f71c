"""Binary mask -> bounding rectangles of the moving regions."""

from dataclasses import dataclass
from typing import List, Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class Rectangle:
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def top_left(self) -> Tuple[int, int]:
        return self.x, self.y

    @property
    def bottom_right(self) -> Tuple[int, int]:
        return self.x + self.width, self.y + self.height


class RegionExtractor:
    """
    Morphological cleanup followed by contour tracing.

    Dilation runs more passes than erosion so that fragments of one moving
    object merge into a single region; the net effect grows blobs slightly.
    Every traced contour yields a rectangle, nested ones included. Overlapping
    rectangles are not merged.
    """

    def __init__(
        self,
        kernel: np.ndarray,
        dilate_iterations: int = 15,
        erode_iterations: int = 10,
    ):
        self._kernel = kernel
        self._dilate_iterations = dilate_iterations
        self._erode_iterations = erode_iterations

    def apply_morphology(self, mask: np.ndarray) -> np.ndarray:
        """Dilate then erode, in place."""
        if self._dilate_iterations:
            cv2.dilate(mask, self._kernel, dst=mask, iterations=self._dilate_iterations)
        if self._erode_iterations:
            cv2.erode(mask, self._kernel, dst=mask, iterations=self._erode_iterations)
        return mask

    def extract(self, mask: np.ndarray) -> List[Rectangle]:
        """`mask` is modified in place by the morphology step."""
        self.apply_morphology(mask)
        contours, _ = cv2.findContours(mask, cv2.RETR_TREE, cv2.CHAIN_APPROX_SIMPLE)
        return [Rectangle(*map(int, cv2.boundingRect(c))) for c in contours]
