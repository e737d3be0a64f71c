"""
OpenCV-backed video source and sink.

The source is a lazy, single-pass iterator: `read()` returning no frame is
end-of-stream, while an OpenCV exception raised by the decoder is a
VideoDecodeError.
"""

from pathlib import Path
from typing import Iterator, Tuple, Union

import cv2
import numpy as np

from .errors import SinkUnavailableError, SourceUnavailableError, VideoDecodeError


PathLike = Union[str, Path]


class VideoSource:
    def __init__(self, path: PathLike):
        self.path = str(path)
        self._cap = cv2.VideoCapture(self.path)
        if not self._cap.isOpened():
            raise SourceUnavailableError(f"Cannot open video: {self.path}")
        self._exhausted = False

    @property
    def fps(self) -> float:
        return self._cap.get(cv2.CAP_PROP_FPS) or 25.0

    @property
    def frame_size(self) -> Tuple[int, int]:
        """(width, height) as reported by the container."""
        return (
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    @property
    def frame_count(self) -> int:
        return int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))

    def __iter__(self) -> Iterator[np.ndarray]:
        while not self._exhausted:
            try:
                ret, frame = self._cap.read()
            except cv2.error as exc:
                self._exhausted = True
                raise VideoDecodeError(f"Decode failure in {self.path}: {exc}") from exc
            if not ret:
                self._exhausted = True
                return
            yield frame

    def release(self) -> None:
        self._exhausted = True
        self._cap.release()

    def __enter__(self) -> "VideoSource":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class VideoSink:
    def __init__(
        self,
        path: PathLike,
        fps: float,
        frame_size: Tuple[int, int],
        fourcc: str = "DIVX",
    ):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.frame_size = frame_size
        self.frames_written = 0
        self._writer = cv2.VideoWriter(
            str(self.path),
            cv2.VideoWriter_fourcc(*fourcc),
            fps,
            frame_size,
            True,
        )
        if not self._writer.isOpened():
            raise SinkUnavailableError(f"Cannot create output video: {self.path}")

    def write(self, frame: np.ndarray) -> None:
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        elif frame.shape[2] == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
        self._writer.write(frame)
        self.frames_written += 1

    def release(self) -> None:
        self._writer.release()

    def __enter__(self) -> "VideoSink":
        return self

    def __exit__(self, *exc) -> None:
        self.release()
