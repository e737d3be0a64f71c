import numpy as np
import pytest

from motion_detect import MotionConfig, MotionPipeline


def black(h=100, w=100, channels=None):
    shape = (h, w) if channels is None else (h, w, channels)
    return np.zeros(shape, dtype=np.uint8)


def with_square(frame, x, y, size, value=255):
    out = frame.copy()
    out[y:y + size, x:x + size] = value
    return out


@pytest.fixture
def raw_config():
    """Reference config without the pre-blur, so pixel counts are exact."""
    return MotionConfig(blur_size=(1, 1))


@pytest.fixture
def raw_pipeline(raw_config):
    return MotionPipeline(raw_config)


class ListSink:
    def __init__(self):
        self.frames = []

    def write(self, frame):
        self.frames.append(frame)
