"""Moving-average motion detection for video streams."""

from .background import BackgroundModel
from .change import ChangeDetector, motion_percent
from .config import MotionConfig
from .errors import (
    ConfigError,
    FrameError,
    FrameSizeError,
    MotionDetectError,
    SinkUnavailableError,
    SourceUnavailableError,
    VideoDecodeError,
)
from .pipeline import FrameResult, MotionPipeline, RunStats
from .regions import Rectangle, RegionExtractor
from .video import VideoSink, VideoSource

__version__ = "1.0.0"

__all__ = [
    "BackgroundModel",
    "ChangeDetector",
    "ConfigError",
    "FrameError",
    "FrameResult",
    "FrameSizeError",
    "MotionConfig",
    "MotionDetectError",
    "MotionPipeline",
    "Rectangle",
    "RegionExtractor",
    "RunStats",
    "SinkUnavailableError",
    "SourceUnavailableError",
    "VideoDecodeError",
    "VideoSink",
    "VideoSource",
    "motion_percent",
]
