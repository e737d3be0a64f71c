"""Running-average background model."""

from typing import Optional, Tuple

import cv2
import numpy as np

from .errors import FrameError, FrameSizeError
from .frames import from_accumulator, to_accumulator


class BackgroundModel:
    """
    Exponential moving average of the (smoothed) input frames.

        acc = alpha * frame + (1 - alpha) * acc

    The float32 accumulator is created lazily from the first frame and is
    overwritten in place on every update; there is no history beyond it.
    """

    def __init__(self) -> None:
        self._acc: Optional[np.ndarray] = None

    @property
    def initialized(self) -> bool:
        return self._acc is not None

    @property
    def shape(self) -> Optional[Tuple[int, ...]]:
        return None if self._acc is None else self._acc.shape

    def initialize(self, frame: np.ndarray) -> None:
        self._acc = to_accumulator(frame)

    def reset(self, frame: np.ndarray) -> None:
        """Hard overwrite with `frame`, discarding the running average."""
        self._check_shape(frame)
        self.initialize(frame)

    def update(self, frame: np.ndarray, alpha: float) -> None:
        self._check_shape(frame)
        cv2.accumulateWeighted(frame, self._acc, alpha)

    def estimate(self) -> np.ndarray:
        """Current background as uint8, comparable with input frames."""
        if self._acc is None:
            raise FrameError("Background model has not been initialized")
        return from_accumulator(self._acc)

    def release(self) -> None:
        self._acc = None

    def _check_shape(self, frame: np.ndarray) -> None:
        if self._acc is None:
            raise FrameError("Background model has not been initialized")
        if frame.shape != self._acc.shape:
            raise FrameSizeError(
                f"Frame shape {frame.shape} does not match background {self._acc.shape}; "
                f"resolution changes mid-stream are not supported"
            )
