"""
Pipeline configuration.

One MotionConfig is built per run (usually from the CLI arguments) and
handed to MotionPipeline at construction time. Defaults are the reference
values the detector was tuned with on traffic footage.
"""

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from .errors import ConfigError


KERNEL_SHAPES = {
    "rect": cv2.MORPH_RECT,
    "cross": cv2.MORPH_CROSS,
    "ellipse": cv2.MORPH_ELLIPSE,
}


@dataclass
class MotionConfig:
    # Background model
    alpha: float = 0.03                    # weight of the newest frame in the running average
    blur_size: Tuple[int, int] = (8, 8)    # box blur applied before everything else

    # Change detection
    threshold: int = 25                    # diff > threshold -> changed (0-255 scale)

    # Region extraction
    kernel_shape: str = "cross"
    kernel_size: Tuple[int, int] = (3, 3)
    dilate_iterations: int = 15
    erode_iterations: int = 10

    # Motion policy (percent of frame area)
    reset_percent: float = 25.0
    motion_percent: float = 0.75

    # Output
    box_color: Tuple[int, int, int] = (0, 255, 0)   # BGR
    box_thickness: int = 2
    fourcc: str = "DIVX"

    def __post_init__(self) -> None:
        self.blur_size = tuple(self.blur_size)
        self.kernel_size = tuple(self.kernel_size)
        self.box_color = tuple(self.box_color)
        self.validate()

    def validate(self) -> None:
        if not 0.0 < self.alpha <= 1.0:
            raise ConfigError(f"alpha must be in (0, 1], got {self.alpha}")
        if len(self.blur_size) != 2 or min(self.blur_size) < 1:
            raise ConfigError(f"blur_size must be two positive ints, got {self.blur_size}")
        if not 0 <= self.threshold <= 255:
            raise ConfigError(f"threshold must be in [0, 255], got {self.threshold}")
        if self.kernel_shape not in KERNEL_SHAPES:
            raise ConfigError(
                f"Unknown kernel shape '{self.kernel_shape}'. "
                f"Supported: {sorted(KERNEL_SHAPES)}"
            )
        if len(self.kernel_size) != 2 or min(self.kernel_size) < 1:
            raise ConfigError(f"kernel_size must be two positive ints, got {self.kernel_size}")
        if self.dilate_iterations < 0 or self.erode_iterations < 0:
            raise ConfigError("dilate/erode iterations must be >= 0")
        for name in ("reset_percent", "motion_percent"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ConfigError(f"{name} must be in [0, 100], got {value}")
        if self.motion_percent > self.reset_percent:
            raise ConfigError(
                f"motion_percent ({self.motion_percent}) must not exceed "
                f"reset_percent ({self.reset_percent})"
            )
        if self.box_thickness < 1:
            raise ConfigError(f"box_thickness must be >= 1, got {self.box_thickness}")
        if len(self.fourcc) != 4:
            raise ConfigError(f"fourcc must be 4 characters, got '{self.fourcc}'")

    def structuring_kernel(self) -> np.ndarray:
        """Structuring element for dilate/erode, anchored at its centre."""
        return cv2.getStructuringElement(
            KERNEL_SHAPES[self.kernel_shape], self.kernel_size
        )
