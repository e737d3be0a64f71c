#!/usr/bin/env python3
"""
Motion Detect
=============
Moving-average background subtraction for fixed-camera video (traffic,
surveillance) without any trained model: a running average of the scene
is compared against every frame and changed regions are boxed in green.

Usage examples
--------------
# Bundled sample, default output output/motion-detect-python.avi
motion-detect

# Own footage, watch it live
motion-detect data/street.mp4 --display --hud

# Side-by-side [change mask | detections] for tuning
motion-detect data/street.mp4 --debug --threshold 30 --motion-percent 1.5

# Slower-adapting background (parked cars stay foreground longer)
motion-detect data/street.mp4 --alpha 0.01
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

# Prevent Qt from crashing in headless environments (no display server).
# Must be set before the first OpenCV window is created.
if not os.environ.get("DISPLAY") and os.environ.get("QT_QPA_PLATFORM") is None:
    os.environ["QT_QPA_PLATFORM"] = "offscreen"

import cv2
import numpy as np

from .annotate import build_debug_panel, draw_hud
from .config import KERNEL_SHAPES, MotionConfig
from .errors import (
    ConfigError,
    FrameError,
    SinkUnavailableError,
    SourceUnavailableError,
    VideoDecodeError,
)
from .pipeline import FrameResult, MotionPipeline, RunStats
from .video import VideoSink, VideoSource


DEFAULT_INPUT = "resources/traffic.mp4"
DEFAULT_OUTPUT = "output/motion-detect-python.avi"

SUPPORTED_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv", ".webm", ".m4v"}

WINDOW_NAME = "Motion Detect  [q to quit]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Motion detection by moving-average background subtraction",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    defaults = MotionConfig()

    # I/O
    io = parser.add_argument_group("I/O")
    io.add_argument("input", nargs="?", default=DEFAULT_INPUT,
                    help="Input video file or stream URL")
    io.add_argument("--output", "-o", default=DEFAULT_OUTPUT,
                    help="Output video path")
    io.add_argument("--fourcc", default=defaults.fourcc,
                    help="Output codec FourCC")
    io.add_argument("--display", action="store_true",
                    help="Show live OpenCV window")
    io.add_argument("--debug", action="store_true",
                    help="Write 2-panel debug view [mask | detections] (2× frame width)")
    io.add_argument("--hud", action="store_true",
                    help="Overlay frame index and motion percentage")
    io.add_argument("--max-frames", type=int, default=None,
                    help="Stop after this many frames (default: whole stream)")

    # Background model
    bg = parser.add_argument_group("Background model")
    bg.add_argument("--alpha", type=float, default=defaults.alpha,
                    help="Running-average weight of the newest frame "
                         "(0.01=slow to adapt, 0.1=fast)")
    bg.add_argument("--blur", type=int, nargs=2, default=list(defaults.blur_size),
                    metavar=("W", "H"),
                    help="Box blur kernel applied to every frame (1 1 disables)")

    # Change detection
    det = parser.add_argument_group("Change detection")
    det.add_argument("--threshold", type=int, default=defaults.threshold,
                     help="Per-pixel difference threshold, 0-255 (lower=more sensitive)")

    # Regions
    reg = parser.add_argument_group("Regions")
    reg.add_argument("--kernel-shape", default=defaults.kernel_shape,
                     choices=sorted(KERNEL_SHAPES),
                     help="Structuring element shape for dilate/erode")
    reg.add_argument("--kernel-size", type=int, nargs=2, default=list(defaults.kernel_size),
                     metavar=("W", "H"), help="Structuring element size")
    reg.add_argument("--dilate", type=int, default=defaults.dilate_iterations,
                     help="Dilation passes (merges fragments of one object)")
    reg.add_argument("--erode", type=int, default=defaults.erode_iterations,
                     help="Erosion passes (shrinks back, removes specks)")

    # Motion policy
    pol = parser.add_argument_group("Motion policy")
    pol.add_argument("--motion-percent", type=float, default=defaults.motion_percent,
                     help="Changed-area percentage above which a frame counts as motion")
    pol.add_argument("--reset-percent", type=float, default=defaults.reset_percent,
                     help="Changed-area percentage above which the background is rebuilt "
                          "from the current frame (camera exposure jumps)")

    return parser


def config_from_args(args: argparse.Namespace) -> MotionConfig:
    return MotionConfig(
        alpha=args.alpha,
        blur_size=tuple(args.blur),
        threshold=args.threshold,
        kernel_shape=args.kernel_shape,
        kernel_size=tuple(args.kernel_size),
        dilate_iterations=args.dilate,
        erode_iterations=args.erode,
        reset_percent=args.reset_percent,
        motion_percent=args.motion_percent,
        fourcc=args.fourcc,
    )


def _is_stream_url(source: str) -> bool:
    return "://" in source


def print_summary(stats: RunStats) -> None:
    print(f"\n\n{stats.frames} frames, {stats.motion_frames} frames with motion, "
          f"{stats.resets} background resets")
    print(f"Elapsed time: {stats.elapsed:4.2f} seconds ({stats.fps:.1f} fps avg)")


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        sys.exit(1)

    # ---------------------------------------------------------------- paths
    if not _is_stream_url(args.input):
        input_path = Path(args.input)
        if not input_path.is_file():
            print(f"[ERROR] File not found: {input_path}")
            sys.exit(1)
        if input_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            print(f"[ERROR] Unsupported extension '{input_path.suffix}'. "
                  f"Supported: {SUPPORTED_EXTENSIONS}")
            sys.exit(1)
    out_path = Path(args.output)

    # ---------------------------------------------------------------- video open
    try:
        source = VideoSource(args.input)
    except SourceUnavailableError as exc:
        print(f"[ERROR] {exc}")
        sys.exit(1)

    width, height = source.frame_size
    out_size = (width * 2, height) if args.debug else (width, height)

    print(f"\nOpenCV  : {cv2.__version__}")
    print(f"Input   : {args.input}")
    print(f"Output  : {out_path}")
    print(f"Frames  : {source.frame_count}  |  FPS: {source.fps:.1f}  |  {width}×{height}")
    print(f"Alpha   : {config.alpha}  threshold: {config.threshold}  "
          f"  motion: >{config.motion_percent}%  reset: >{config.reset_percent}%")
    print()

    try:
        sink = VideoSink(out_path, source.fps, out_size, config.fourcc)
    except SinkUnavailableError as exc:
        print(f"[ERROR] {exc}")
        source.release()
        sys.exit(1)

    pipeline = MotionPipeline(config)
    show = args.display
    quit_requested = False
    total_frames = source.frame_count

    def should_stop() -> bool:
        if quit_requested:
            return True
        return args.max_frames is not None and pipeline.stats.frames >= args.max_frames

    def render(result: FrameResult) -> np.ndarray:
        out = result.frame
        if args.hud:
            out = draw_hud(out, result.index, result.percent, result.motion, result.reset)
        if args.debug:
            mask = result.mask
            if mask is None:
                mask = np.zeros(out.shape[:2], dtype=np.uint8)
            out = build_debug_panel(mask, out)
        return out

    def on_frame(result: FrameResult) -> None:
        nonlocal quit_requested
        out = render(result)
        sink.write(out)
        if show:
            cv2.imshow(WINDOW_NAME, out)
            if cv2.waitKey(1) & 0xFF == ord("q"):
                quit_requested = True

        idx = result.index
        if idx % 30 == 0 or idx == total_frames - 1:
            pct = idx / max(total_frames, 1) * 100
            print(
                f"  [{pct:5.1f}%] Frame {idx:5d}/{total_frames}"
                f"  motion:{result.percent:6.2f}%  motion frames:{pipeline.stats.motion_frames:5d}"
                f"  fps:{pipeline.stats.fps:5.1f}    ",
                end="\r",
            )

    # ---------------------------------------------------------------- main loop
    try:
        stats = pipeline.run(source, should_stop=should_stop, on_frame=on_frame)
    except (VideoDecodeError, FrameError) as exc:
        print_summary(pipeline.stats)
        print(f"[ERROR] {exc}")
        sys.exit(1)
    finally:
        source.release()
        sink.release()
        if show:
            cv2.destroyAllWindows()

    print_summary(stats)
    print(f"Saved → {out_path}")


if __name__ == "__main__":
    main()
