"""Frontend components: detection, tracking and the per-frame pipeline.

Components:
- FeatureDetector: Keypoint detection + descriptor extraction
- FeatureTracker: Optical-flow tracking and correspondence filtering
- FeaturePipeline: Runs both stages over a frame stream
- capabilities: Named OpenCV-backed detector/descriptor/matcher/flow variants
- ViewState: View orientation updated from rotation deltas
"""

from .capabilities import (
    DescriptorType,
    DetectorType,
    FlowType,
    MatcherType,
    TerminationCriteria,
    create_describer,
    create_detector,
    create_matcher,
    create_optical_flow,
)
from .feature_detector import FeatureDetector, Features
from .feature_pipeline import FeaturePipeline, FrameTiming, PipelineFrame, PipelineStatus
from .feature_tracker import (
    FeatureTracker,
    SequentialFrameFeatures,
    TrackStatus,
    filter_correspondences,
    keypoints_to_points,
)
from .orientation import ViewState, compute_rotation_delta

__all__ = [
    # Capabilities
    "DetectorType",
    "DescriptorType",
    "MatcherType",
    "FlowType",
    "TerminationCriteria",
    "create_detector",
    "create_describer",
    "create_matcher",
    "create_optical_flow",
    # Detection
    "FeatureDetector",
    "Features",
    # Tracking
    "FeatureTracker",
    "SequentialFrameFeatures",
    "TrackStatus",
    "filter_correspondences",
    "keypoints_to_points",
    # Pipeline
    "FeaturePipeline",
    "PipelineFrame",
    "PipelineStatus",
    "FrameTiming",
    # Orientation
    "ViewState",
    "compute_rotation_delta",
]
