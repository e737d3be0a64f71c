"""Exception taxonomy for the motion detection pipeline.

End-of-stream is not an error and has no exception: a source simply stops
yielding frames. Everything below is fatal for a run; nothing is retried.
"""


class MotionDetectError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(MotionDetectError, ValueError):
    """A MotionConfig field is out of range."""


class FrameError(MotionDetectError, ValueError):
    """A frame is degenerate (None, zero-area, wrong dtype or channel count)."""


class FrameSizeError(FrameError):
    """A frame does not match the resolution the background was built from."""


class SourceUnavailableError(MotionDetectError, IOError):
    """The input video could not be opened."""


class SinkUnavailableError(MotionDetectError, IOError):
    """The output video could not be created."""


class VideoDecodeError(MotionDetectError, IOError):
    """The decoder failed mid-stream."""
