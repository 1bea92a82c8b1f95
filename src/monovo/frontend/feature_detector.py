"""Keypoint detection and description stage."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import cv2
import numpy as np

from ..config import DetectorConfig
from ..errors import DetectionFailure, FeatureError, InvariantViolation
from .capabilities import (
    DescriptionCapability,
    DetectionCapability,
    MatchingCapability,
    create_describer,
    create_detector,
    create_matcher,
)
from .image import validate_image

logger = logging.getLogger(__name__)


@dataclass
class Features:
    """Container for detected image features.

    Attributes:
        keypoints: Tuple of OpenCV KeyPoint objects
        descriptors: NxD descriptor array, row i describing keypoints[i].
            Has zero rows when nothing was detected.
        detector_name: Name of the detection variant that produced keypoints
        descriptor_name: Name of the description variant that produced descriptors
    """

    keypoints: tuple[cv2.KeyPoint, ...]
    descriptors: np.ndarray
    detector_name: str
    descriptor_name: str

    def __post_init__(self) -> None:
        """Enforce one descriptor per keypoint."""
        if len(self.descriptors) != len(self.keypoints):
            raise InvariantViolation(
                f"{len(self.descriptors)} descriptors for {len(self.keypoints)} keypoints"
            )

    @property
    def points(self) -> np.ndarray:
        """Return Nx2 array of keypoint (x, y) coordinates."""
        if len(self.keypoints) == 0:
            return np.empty((0, 2), dtype=np.float32)
        return np.array([kp.pt for kp in self.keypoints], dtype=np.float32)

    def __len__(self) -> int:
        """Return number of detected features."""
        return len(self.keypoints)


class FeatureDetector:
    """Turns one image into keypoints plus index-aligned descriptors.

    Defaults to FAST corners with ORB binary descriptors. A brute-force
    Hamming matcher is held alongside for consumers that match descriptor
    sets across frames; this stage never invokes it.

    Example:
        >>> detector = FeatureDetector()
        >>> features = detector.detect_and_describe(image)
        >>> print(f"{features.detector_name}/{features.descriptor_name}: {len(features)}")
    """

    def __init__(
        self,
        detector: DetectionCapability | None = None,
        describer: DescriptionCapability | None = None,
        matcher: MatchingCapability | None = None,
    ) -> None:
        self._detector = detector or create_detector()
        self._describer = describer or create_describer()
        self._matcher = matcher or create_matcher()

    @classmethod
    def from_config(cls, config: DetectorConfig) -> FeatureDetector:
        """Create a detector stage from named variants."""
        return cls(
            detector=create_detector(config.detector, **config.detector_params),
            describer=create_describer(config.descriptor, **config.descriptor_params),
            matcher=create_matcher(config.matcher, **config.matcher_params),
        )

    def detect_and_describe(
        self,
        image: np.ndarray,
        mask: np.ndarray | None = None,
        frame_index: int | None = None,
    ) -> Features:
        """Detect keypoints in an image and compute their descriptors.

        Args:
            image: Single image buffer (grayscale or color)
            mask: Optional binary mask where 255 = detect, 0 = ignore
            frame_index: Frame index attached to any raised error

        Returns:
            Features with len(descriptors) == len(keypoints). Zero keypoints
            yields an empty, valid Features.

        Raises:
            CaptureError: If the image buffer is None or empty
            DetectionFailure: If a detection or description capability raises
        """
        image = validate_image(image, frame_index=frame_index)
        start = time.perf_counter()

        try:
            keypoints = self._detector.detect(image, mask)
            # The describer may drop keypoints it cannot describe (e.g. near
            # the border); its returned keypoints own the descriptor rows.
            keypoints, descriptors = self._describer.describe(image, keypoints)
        except (FeatureError, InvariantViolation):
            raise
        except Exception as e:
            raise DetectionFailure(
                f"{self._detector.name}/{self._describer.name} failed: {e}",
                stage="detection",
                frame_index=frame_index,
            ) from e

        if descriptors is None:
            descriptors = np.empty(
                (0, self._describer.descriptor_size),
                dtype=self._describer.descriptor_dtype,
            )

        features = Features(
            keypoints=tuple(keypoints),
            descriptors=descriptors,
            detector_name=self._detector.name,
            descriptor_name=self._describer.name,
        )

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "detect_and_describe: %d features in %.1f ms", len(features), elapsed_ms
        )
        return features

    @property
    def detector_name(self) -> str:
        """Return the detection variant name."""
        return self._detector.name

    @property
    def descriptor_name(self) -> str:
        """Return the description variant name."""
        return self._describer.name

    @property
    def matcher(self) -> MatchingCapability:
        """Return the matcher held for cross-frame descriptor matching."""
        return self._matcher
