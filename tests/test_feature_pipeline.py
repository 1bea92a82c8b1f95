"""Tests for the per-frame feature pipeline."""

import logging

import cv2
import numpy as np
import pytest

from conftest import FakeFlow
from monovo.config import PipelineConfig
from monovo.errors import CaptureError, DimensionMismatch, InvariantViolation, TrackingFailure
from monovo.frontend.feature_pipeline import FeaturePipeline, PipelineStatus
from monovo.frontend.feature_tracker import FeatureTracker


class TestFeaturePipeline:
    """Test suite for FeaturePipeline."""

    def test_first_frame_initializes(self, textured_image):
        """The first frame only detects."""
        pipeline = FeaturePipeline()

        result = pipeline.process_frame(textured_image, timestamp_ns=100)

        assert result.status == PipelineStatus.INITIALIZING
        assert result.frame_id == 0
        assert result.timestamp_ns == 100
        assert result.correspondences is None
        assert result.num_correspondences == 0
        assert len(result.features) > 0
        assert pipeline.previous_features is result.features

    def test_second_frame_tracks(self, textured_image, shifted_image):
        """The second frame produces aligned correspondences."""
        pipeline = FeaturePipeline()
        first = pipeline.process_frame(textured_image)

        result = pipeline.process_frame(shifted_image)

        assert result.is_ok
        assert result.frame_id == 1
        assert 0 < result.num_correspondences <= len(first.features)
        assert len(result.correspondences.previous) == len(result.correspondences.current)
        assert result.timing.total_ms >= result.timing.tracking_ms

    def test_color_frames_are_converted(self, textured_image, shifted_image):
        """BGR frames are tracked on their grayscale version."""
        pipeline = FeaturePipeline()
        pipeline.process_frame(cv2.cvtColor(textured_image, cv2.COLOR_GRAY2BGR))

        result = pipeline.process_frame(cv2.cvtColor(shifted_image, cv2.COLOR_GRAY2BGR))

        assert result.is_ok
        assert result.num_correspondences > 0

    def test_bad_frame_is_dropped_and_previous_kept(self, textured_image, shifted_image):
        """A failed frame carries the last good keypoints forward."""
        pipeline = FeaturePipeline()
        first = pipeline.process_frame(textured_image)

        dropped = pipeline.process_frame(None)

        assert dropped.status == PipelineStatus.FAILED
        assert isinstance(dropped.error, CaptureError)
        assert dropped.features is first.features
        assert pipeline.previous_features is first.features

        recovered = pipeline.process_frame(shifted_image)

        assert recovered.is_ok
        assert recovered.frame_id == 2
        assert recovered.num_correspondences > 0

    def test_size_change_is_dropped(self, textured_image):
        """A frame of different size fails tracking without crashing."""
        pipeline = FeaturePipeline()
        first = pipeline.process_frame(textured_image)

        result = pipeline.process_frame(textured_image[:120, :160].copy())

        assert result.status == PipelineStatus.FAILED
        assert isinstance(result.error, DimensionMismatch)
        assert result.error.frame_index == 1
        assert pipeline.previous_features is first.features

    def test_failure_before_first_frame(self):
        """Without any good frame, failed frames carry no features."""
        pipeline = FeaturePipeline()

        result = pipeline.process_frame(np.empty((0, 0), dtype=np.uint8))

        assert result.status == PipelineStatus.FAILED
        assert result.features is None

    def test_tracking_failure_is_dropped(self, textured_image, caplog):
        """Capability errors drop the frame and log a warning."""
        tracker = FeatureTracker(optical_flow=FakeFlow(error=cv2.error("bad")))
        pipeline = FeaturePipeline(tracker=tracker)
        pipeline.process_frame(textured_image)

        with caplog.at_level(logging.WARNING, logger="monovo"):
            result = pipeline.process_frame(textured_image)

        assert isinstance(result.error, TrackingFailure)
        assert "Dropping frame 1" in caplog.text

    def test_non_opencv_tracking_error_is_dropped(self, textured_image, shifted_image):
        """A plugged-in flow raising RuntimeError drops the frame only."""
        tracker = FeatureTracker(optical_flow=FakeFlow(error=RuntimeError("gpu flow died")))
        pipeline = FeaturePipeline(tracker=tracker)
        first = pipeline.process_frame(textured_image)

        result = pipeline.process_frame(shifted_image)

        assert result.status == PipelineStatus.FAILED
        assert isinstance(result.error, TrackingFailure)
        assert isinstance(result.error.__cause__, RuntimeError)
        assert pipeline.previous_features is first.features

    def test_invariant_violation_propagates(self, textured_image):
        """Alignment bugs are not swallowed as dropped frames."""
        tracker = FeatureTracker(optical_flow=FakeFlow(current_points=[(1, 1)], status=[1]))
        pipeline = FeaturePipeline(tracker=tracker)
        pipeline.process_frame(textured_image)

        with pytest.raises(InvariantViolation):
            pipeline.process_frame(textured_image)

    def test_reset(self, textured_image):
        """Reset forgets the previous frame."""
        pipeline = FeaturePipeline()
        pipeline.process_frame(textured_image)
        pipeline.process_frame(textured_image)

        pipeline.reset()
        result = pipeline.process_frame(textured_image)

        assert pipeline.num_frames == 1
        assert result.frame_id == 0
        assert result.status == PipelineStatus.INITIALIZING

    def test_from_config(self, textured_image):
        """Configured variants are used by the stages."""
        config = PipelineConfig.from_dict(
            {"detection": {"detector": "gftt"}, "tracking": {"window_size": 15}}
        )
        pipeline = FeaturePipeline.from_config(config)

        result = pipeline.process_frame(textured_image)

        assert pipeline.detector.detector_name == "gftt"
        assert pipeline.tracker.window_size == (15, 15)
        assert result.features.detector_name == "gftt"
