"""
Per-frame motion policy and the driver loop around it.

    frame -> blur -> background (init | update) -> change mask -> percent
          -> [hard reset if percent > reset_percent]
          -> rectangles -> [motion if percent > motion_percent] -> annotated frame

Everything is sequential: the background used for frame N is the one left
behind by frame N-1, so frames are never processed out of order.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

import cv2
import numpy as np

from .annotate import draw_rectangles
from .background import BackgroundModel
from .change import ChangeDetector, motion_percent
from .config import MotionConfig
from .frames import check_frame
from .regions import Rectangle, RegionExtractor


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class FrameResult:
    index: int
    frame: np.ndarray                     # output frame, annotated when motion is True
    mask: Optional[np.ndarray]            # cleaned change mask; None on the baseline frame
    rects: List[Rectangle]
    percent: float                        # changed pixels, % of frame area (pre-morphology)
    baseline: bool = False                # frame used to initialise the background
    reset: bool = False                   # background was hard-reset from this frame
    motion: bool = False


@dataclass
class RunStats:
    frames: int = 0
    motion_frames: int = 0
    resets: int = 0
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    @property
    def fps(self) -> float:
        elapsed = self.elapsed
        return self.frames / elapsed if elapsed > 0 else 0.0

    def finish(self) -> None:
        self.finished_at = time.time()


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class MotionPipeline:
    """Owns the background model and the run counters for one stream."""

    def __init__(self, config: Optional[MotionConfig] = None):
        self.config = config or MotionConfig()
        self._background = BackgroundModel()
        self._detector = ChangeDetector(self.config.threshold)
        self._extractor = RegionExtractor(
            self.config.structuring_kernel(),
            dilate_iterations=self.config.dilate_iterations,
            erode_iterations=self.config.erode_iterations,
        )
        self._stats = RunStats()

    @property
    def background(self) -> BackgroundModel:
        return self._background

    @property
    def stats(self) -> RunStats:
        return self._stats

    def smooth(self, frame: np.ndarray) -> np.ndarray:
        if self.config.blur_size == (1, 1):
            return frame.copy()
        return cv2.blur(frame, self.config.blur_size)

    def process(self, frame: np.ndarray) -> FrameResult:
        """Run one frame through the pipeline and update the counters."""
        cfg = self.config
        frame = check_frame(frame)
        index = self._stats.frames
        work = self.smooth(frame)

        if not self._background.initialized:
            self._background.initialize(work)
            self._stats.frames += 1
            return FrameResult(index=index, frame=frame, mask=None, rects=[],
                               percent=0.0, baseline=True)

        self._background.update(work, cfg.alpha)
        mask = self._detector.detect(work, self._background.estimate())
        percent = motion_percent(mask)

        # Global change (exposure jump, lights): rebuild, do not blend.
        reset = percent > cfg.reset_percent
        if reset:
            self._background.reset(work)
            self._stats.resets += 1

        rects = self._extractor.extract(mask)

        motion = percent > cfg.motion_percent
        out = frame
        if motion:
            self._stats.motion_frames += 1
            out = draw_rectangles(frame, rects, cfg.box_color, cfg.box_thickness)

        self._stats.frames += 1
        return FrameResult(index=index, frame=out, mask=mask, rects=rects,
                           percent=percent, reset=reset, motion=motion)

    def run(
        self,
        frames: Iterable[np.ndarray],
        sink=None,
        should_stop: Optional[Callable[[], bool]] = None,
        on_frame: Optional[Callable[[FrameResult], None]] = None,
    ) -> RunStats:
        """
        Consume `frames` to exhaustion, writing one output frame per input.

        `should_stop` is polled before each read; `on_frame` sees every result
        after it has been written. Counters start from zero on every call.
        Any exception (VideoDecodeError from the source, FrameError, a failing
        sink) is recorded on the stats and re-raised.
        """
        self._stats = RunStats()
        it = iter(frames)
        try:
            while True:
                if should_stop is not None and should_stop():
                    break
                try:
                    frame = next(it)
                except StopIteration:
                    break
                result = self.process(frame)
                if sink is not None:
                    sink.write(result.frame)
                if on_frame is not None:
                    on_frame(result)
        except Exception as exc:
            self._stats.error = exc
            raise
        finally:
            self._stats.finish()
            self._background.release()
        return self._stats
