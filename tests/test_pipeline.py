import numpy as np
import pytest

from motion_detect import (
    FrameError,
    FrameSizeError,
    MotionConfig,
    MotionPipeline,
    VideoDecodeError,
)

from conftest import ListSink, black, with_square


def test_first_frame_is_baseline(raw_pipeline):
    frame = with_square(black(), 10, 10, 50)
    result = raw_pipeline.process(frame)
    assert result.baseline
    assert result.rects == []
    assert result.percent == 0.0
    assert not result.motion
    assert result.mask is None
    assert result.frame is frame
    assert raw_pipeline.stats.frames == 1
    assert raw_pipeline.stats.motion_frames == 0
    assert raw_pipeline.background.initialized


def test_static_scene_has_no_motion():
    rng = np.random.default_rng(3)
    frame = rng.integers(0, 256, size=(60, 80, 3), dtype=np.uint8)
    pipeline = MotionPipeline()
    pipeline.process(frame)
    for _ in range(5):
        result = pipeline.process(frame.copy())
        assert result.percent == 0.0
        assert not result.mask.any()
        assert not result.motion
    assert pipeline.stats.motion_frames == 0


def test_moderate_change_is_motion(raw_pipeline):
    raw_pipeline.process(black())
    result = raw_pipeline.process(with_square(black(), 35, 35, 30))

    assert result.percent == pytest.approx(9.0)
    assert result.motion
    assert not result.reset
    assert raw_pipeline.stats.motion_frames == 1
    assert raw_pipeline.stats.resets == 0
    assert result.rects
    assert all(r.area > 0 for r in result.rects)
    r = result.rects[0]
    assert r.x <= 35 and r.y <= 35 and r.x + r.width >= 65 and r.y + r.height >= 65


def test_small_change_is_not_motion(raw_pipeline):
    raw_pipeline.process(black())
    frame = with_square(black(), 50, 50, 5)
    result = raw_pipeline.process(frame)

    assert 0.0 < result.percent <= 0.75
    assert result.rects                  # regions exist but do not count
    assert not result.motion
    assert raw_pipeline.stats.motion_frames == 0
    assert result.frame is frame


def test_motion_frame_is_annotated_on_a_copy():
    config = MotionConfig(blur_size=(1, 1))
    pipeline = MotionPipeline(config)
    pipeline.process(black(channels=3))
    frame = with_square(black(channels=3), 35, 35, 30, value=(255, 255, 255))
    original = frame.copy()

    result = pipeline.process(frame)

    assert result.motion
    assert np.array_equal(frame, original)
    assert result.frame is not frame
    green = np.all(result.frame == np.array(config.box_color, dtype=np.uint8), axis=2)
    assert green.any()


def test_large_change_resets_background(raw_pipeline):
    raw_pipeline.process(black())
    raw_pipeline.process(black())
    frame = with_square(black(), 0, 0, 60)          # 36% of the frame

    result = raw_pipeline.process(frame)

    assert result.percent == pytest.approx(36.0)
    assert result.reset
    assert result.motion
    assert raw_pipeline.stats.resets == 1
    # hard reset, not 0.03 * 255 blended in
    assert np.array_equal(raw_pipeline.background.estimate(), frame)

    follow_up = raw_pipeline.process(frame.copy())
    assert follow_up.percent == 0.0


def test_rectangles_come_from_pre_reset_mask(raw_pipeline):
    raw_pipeline.process(black())
    result = raw_pipeline.process(with_square(black(), 0, 0, 60))
    assert result.reset
    assert result.rects
    assert result.mask.any()


def test_below_reset_threshold_blends(raw_pipeline):
    raw_pipeline.process(black())
    frame = with_square(black(), 35, 35, 30)
    raw_pipeline.process(frame)
    estimate = raw_pipeline.background.estimate()
    assert estimate[50, 50] == 8                     # round(0.03 * 255)
    assert not np.array_equal(estimate, frame)


def test_black_then_white_stream():
    pipeline = MotionPipeline()
    frames = [black() for _ in range(5)] + [np.full((100, 100), 255, dtype=np.uint8)]

    results = []
    stats = pipeline.run(frames, on_frame=results.append)

    assert results[0].baseline
    assert [r.percent for r in results[1:5]] == [0.0, 0.0, 0.0, 0.0]
    assert results[5].percent == 100.0
    assert results[5].reset
    assert results[5].motion
    assert stats.motion_frames == 1
    assert stats.resets == 1
    assert stats.frames == 6


def test_run_writes_one_frame_per_input():
    frames = [black()] * 3 + [with_square(black(), 35, 35, 30)] + [black()] * 2
    sink = ListSink()
    stats = MotionPipeline(MotionConfig(blur_size=(1, 1))).run(frames, sink)
    assert len(sink.frames) == len(frames) == stats.frames
    assert stats.finished_at is not None
    assert stats.elapsed >= 0.0
    assert not stats.failed


def test_run_polls_should_stop_before_each_read():
    pulled = []

    def frames():
        for i in range(10):
            pulled.append(i)
            yield black()

    pipeline = MotionPipeline()
    stats = pipeline.run(frames(), should_stop=lambda: pipeline.stats.frames >= 3)
    assert stats.frames == 3
    assert len(pulled) == 3


def test_run_reports_decode_failure():
    def frames():
        yield black()
        yield black()
        raise VideoDecodeError("corrupt packet")

    sink = ListSink()
    pipeline = MotionPipeline()
    with pytest.raises(VideoDecodeError):
        pipeline.run(frames(), sink)

    assert pipeline.stats.failed
    assert pipeline.stats.frames == 2
    assert len(sink.frames) == 2
    assert pipeline.stats.finished_at is not None
    assert not pipeline.background.initialized


def test_resolution_change_is_fatal():
    pipeline = MotionPipeline()
    with pytest.raises(FrameSizeError):
        pipeline.run([black(), black(50, 50)])
    assert pipeline.stats.failed


def test_zero_area_frame_is_rejected():
    with pytest.raises(FrameError):
        MotionPipeline().process(np.zeros((0, 0), dtype=np.uint8))


def test_background_released_after_run():
    pipeline = MotionPipeline()
    pipeline.run([black(), black()])
    assert not pipeline.background.initialized


def test_each_run_starts_fresh_counters():
    pipeline = MotionPipeline(MotionConfig(blur_size=(1, 1)))
    first = pipeline.run([black(), with_square(black(), 35, 35, 30), black()])
    assert first.frames == 3
    assert first.motion_frames == 1

    second = pipeline.run([black(), black()])
    assert second.frames == 2
    assert second.motion_frames == 0
    assert second.resets == 0
    assert pipeline.stats is second


def test_failed_run_does_not_leak_into_next_run():
    pipeline = MotionPipeline()
    with pytest.raises(FrameSizeError):
        pipeline.run([black(), black(50, 50)])
    assert pipeline.stats.failed

    stats = pipeline.run([black(), black()])
    assert not stats.failed
    assert stats.error is None


def test_exactly_reset_percent_is_motion_without_reset(raw_pipeline):
    raw_pipeline.process(black())
    result = raw_pipeline.process(with_square(black(), 25, 25, 50))
    assert result.percent == 25.0
    assert result.motion
    assert not result.reset
    assert raw_pipeline.stats.resets == 0


def test_exactly_motion_percent_is_not_motion():
    pipeline = MotionPipeline(MotionConfig(blur_size=(1, 1), dilate_iterations=0,
                                           erode_iterations=0))
    pipeline.process(black())
    frame = black()
    frame[50, 0:75] = 255
    result = pipeline.process(frame)
    assert result.percent == 0.75
    assert not result.motion
    assert pipeline.stats.motion_frames == 0


def test_sink_failure_marks_run_failed():
    class BrokenSink:
        def write(self, frame):
            raise RuntimeError("disk full")

    pipeline = MotionPipeline()
    with pytest.raises(RuntimeError):
        pipeline.run([black(), black()], BrokenSink())
    assert pipeline.stats.failed
    assert isinstance(pipeline.stats.error, RuntimeError)
    assert pipeline.stats.finished_at is not None
