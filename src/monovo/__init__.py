"""Monocular visual odometry frontend: feature detection and tracking."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .config import DetectorConfig, PipelineConfig, TrackerConfig
from .dataset_reader import ImageSequenceReader
from .errors import (
    CaptureError,
    DetectionFailure,
    DimensionMismatch,
    FeatureError,
    InvariantViolation,
    TrackingFailure,
)
from .frontend import (
    FeatureDetector,
    FeaturePipeline,
    Features,
    FeatureTracker,
    PipelineFrame,
    PipelineStatus,
    SequentialFrameFeatures,
    TrackStatus,
    ViewState,
    filter_correspondences,
)

__all__ = [
    "__version__",
    # Configuration
    "PipelineConfig",
    "DetectorConfig",
    "TrackerConfig",
    # Dataset
    "ImageSequenceReader",
    # Errors
    "FeatureError",
    "CaptureError",
    "DetectionFailure",
    "TrackingFailure",
    "DimensionMismatch",
    "InvariantViolation",
    # Detection
    "FeatureDetector",
    "Features",
    # Tracking
    "FeatureTracker",
    "SequentialFrameFeatures",
    "TrackStatus",
    "filter_correspondences",
    # Pipeline
    "FeaturePipeline",
    "PipelineFrame",
    "PipelineStatus",
    # Orientation
    "ViewState",
]
