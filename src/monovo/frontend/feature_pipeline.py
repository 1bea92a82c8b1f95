"""Per-frame feature correspondence pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from ..config import PipelineConfig
from ..errors import FeatureError
from .feature_detector import FeatureDetector, Features
from .feature_tracker import FeatureTracker, SequentialFrameFeatures
from .image import to_grayscale

logger = logging.getLogger(__name__)


class PipelineStatus(Enum):
    """Outcome of processing a single frame."""

    OK = "OK"
    INITIALIZING = "INITIALIZING"
    FAILED = "FAILED"


@dataclass
class FrameTiming:
    """Timing breakdown for a single frame."""

    tracking_ms: float = 0.0
    detection_ms: float = 0.0
    total_ms: float = 0.0


@dataclass
class PipelineFrame:
    """Output of the pipeline for a single frame.

    On FAILED frames, features are the carried-forward previous features
    (None if no frame has succeeded yet) and correspondences is None.
    """

    frame_id: int
    timestamp_ns: int
    status: PipelineStatus
    features: Features | None
    correspondences: SequentialFrameFeatures | None = None
    error: FeatureError | None = None
    timing: FrameTiming = field(default_factory=FrameTiming)

    @property
    def num_correspondences(self) -> int:
        """Return number of correspondences with the previous frame."""
        if self.correspondences is None:
            return 0
        return len(self.correspondences)

    @property
    def is_ok(self) -> bool:
        """Return True if correspondences were produced."""
        return self.status == PipelineStatus.OK


class FeaturePipeline:
    """Detects, describes and tracks features across a frame stream.

    For every frame after the first:
    1. Track the previous frame's keypoints into this frame
    2. Detect and describe keypoints in this frame for the next step

    A frame that raises a FeatureError is dropped. The last good frame and
    its keypoints remain the "previous" side for the next call.
    """

    def __init__(
        self,
        detector: FeatureDetector | None = None,
        tracker: FeatureTracker | None = None,
    ) -> None:
        self._detector = detector or FeatureDetector()
        self._tracker = tracker or FeatureTracker()

        self._frame_id: int = 0
        self._prev_gray: np.ndarray | None = None
        self._prev_features: Features | None = None

    @classmethod
    def from_config(cls, config: PipelineConfig) -> FeaturePipeline:
        """Create a pipeline from configuration."""
        return cls(
            detector=FeatureDetector.from_config(config.detection),
            tracker=FeatureTracker.from_config(config.tracking),
        )

    def process_frame(self, image: np.ndarray, timestamp_ns: int = 0) -> PipelineFrame:
        """Process the next frame of the stream.

        Args:
            image: Camera frame (grayscale or BGR)
            timestamp_ns: Frame timestamp in nanoseconds

        Returns:
            PipelineFrame with correspondences to the last good frame
        """
        frame_id = self._frame_id
        self._frame_id += 1

        timing = FrameTiming()
        t_start = time.perf_counter()

        correspondences = None
        try:
            gray = to_grayscale(image, frame_index=frame_id)

            if self._prev_gray is not None and self._prev_features is not None:
                t0 = time.perf_counter()
                correspondences = self._tracker.track(
                    self._prev_gray,
                    gray,
                    self._prev_features,
                    frame_index=frame_id,
                )
                timing.tracking_ms = (time.perf_counter() - t0) * 1000

            t0 = time.perf_counter()
            features = self._detector.detect_and_describe(gray, frame_index=frame_id)
            timing.detection_ms = (time.perf_counter() - t0) * 1000
        except FeatureError as e:
            timing.total_ms = (time.perf_counter() - t_start) * 1000
            logger.warning("Dropping frame %d: %s", frame_id, e)
            return PipelineFrame(
                frame_id=frame_id,
                timestamp_ns=timestamp_ns,
                status=PipelineStatus.FAILED,
                features=self._prev_features,
                error=e,
                timing=timing,
            )

        self._prev_gray = gray
        self._prev_features = features

        status = PipelineStatus.INITIALIZING if correspondences is None else PipelineStatus.OK
        timing.total_ms = (time.perf_counter() - t_start) * 1000

        logger.debug(
            "frame %d: %s, %d features, %d correspondences, %.1f ms",
            frame_id,
            status.value,
            len(features),
            0 if correspondences is None else len(correspondences),
            timing.total_ms,
        )

        return PipelineFrame(
            frame_id=frame_id,
            timestamp_ns=timestamp_ns,
            status=status,
            features=features,
            correspondences=correspondences,
            timing=timing,
        )

    def reset(self) -> None:
        """Forget the previous frame and restart frame numbering."""
        self._frame_id = 0
        self._prev_gray = None
        self._prev_features = None

    @property
    def num_frames(self) -> int:
        """Return number of frames submitted so far."""
        return self._frame_id

    @property
    def previous_features(self) -> Features | None:
        """Return the features that the next frame will be tracked from."""
        return self._prev_features

    @property
    def detector(self) -> FeatureDetector:
        """Return the detector stage."""
        return self._detector

    @property
    def tracker(self) -> FeatureTracker:
        """Return the tracker stage."""
        return self._tracker
