"""Optical-flow tracking of keypoints between consecutive frames."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence

import cv2
import numpy as np

from ..config import TrackerConfig
from ..errors import (
    DimensionMismatch,
    FeatureError,
    InvariantViolation,
    TrackingFailure,
)
from .capabilities import (
    OpticalFlowCapability,
    TerminationCriteria,
    create_optical_flow,
)
from .feature_detector import Features
from .image import validate_image

logger = logging.getLogger(__name__)


class TrackStatus(IntEnum):
    """Per-point outcome of optical-flow tracking.

    LOST and OFF_SCREEN are both failures. OFF_SCREEN marks points the
    tracker reported as found but that landed on the zero sentinel.
    """

    LOST = 0
    TRACKED = 1
    OFF_SCREEN = 2


def _empty_points() -> np.ndarray:
    return np.empty((0, 2), dtype=np.float32)


@dataclass
class SequentialFrameFeatures:
    """Index-aligned correspondences between a previous and current frame.

    Attributes:
        previous: Kx2 surviving point coordinates in the previous frame
        current: Kx2 tracked coordinates in the current frame; row k is the
            same scene point as previous[k]
        status: (N,) normalized TrackStatus of every original input index
    """

    previous: np.ndarray = field(default_factory=_empty_points)
    current: np.ndarray = field(default_factory=_empty_points)
    status: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.uint8))

    def __post_init__(self) -> None:
        """Enforce equal-length point sequences."""
        if len(self.previous) != len(self.current):
            raise InvariantViolation(
                f"previous has {len(self.previous)} points, current has {len(self.current)}"
            )

    def __len__(self) -> int:
        """Return number of correspondences."""
        return len(self.previous)

    @property
    def is_empty(self) -> bool:
        """Return True if no correspondences survived."""
        return len(self.previous) == 0

    @property
    def num_tracked(self) -> int:
        """Return number of input points with TRACKED status."""
        return int(np.count_nonzero(self.status == TrackStatus.TRACKED))

    @property
    def num_off_screen(self) -> int:
        """Return number of input points normalized to OFF_SCREEN."""
        return int(np.count_nonzero(self.status == TrackStatus.OFF_SCREEN))


def _has_zero_coordinate(point: np.ndarray) -> bool:
    return point[0] == 0 or point[1] == 0


def filter_correspondences(
    previous: np.ndarray,
    current: np.ndarray,
    status: np.ndarray,
) -> SequentialFrameFeatures:
    """Keep only the successfully tracked, on-screen correspondences.

    A single forward pass over the original indices appends each surviving
    pair to two new lists, so relative order and pairing are preserved no
    matter how many earlier entries were removed.

    An entry is dropped when its status is not TRACKED, or when either
    coordinate of its current or previous point is exactly zero (the
    off-screen sentinel). A TRACKED entry dropped only because of the
    sentinel is reported as OFF_SCREEN in the returned status.

    Args:
        previous: Nx2 point coordinates in the previous frame
        current: Nx2 tracked coordinates in the current frame
        status: (N,) raw tracker status, 1 (TRACKED) meaning found

    Returns:
        SequentialFrameFeatures with filtered points and a normalized copy
        of the status. The inputs are not modified.

    Raises:
        InvariantViolation: If the three inputs differ in length
    """
    previous = np.asarray(previous, dtype=np.float32).reshape(-1, 2)
    current = np.asarray(current, dtype=np.float32).reshape(-1, 2)
    normalized = np.array(status, dtype=np.uint8).reshape(-1)

    if not len(previous) == len(current) == len(normalized):
        raise InvariantViolation(
            f"Misaligned tracker output: {len(previous)} previous, "
            f"{len(current)} current, {len(normalized)} status"
        )

    kept_previous = []
    kept_current = []

    for i in range(len(normalized)):
        if normalized[i] != TrackStatus.TRACKED:
            continue

        if _has_zero_coordinate(current[i]) or _has_zero_coordinate(previous[i]):
            normalized[i] = TrackStatus.OFF_SCREEN
            continue

        kept_previous.append(previous[i])
        kept_current.append(current[i])

    if len(kept_previous) == 0:
        return SequentialFrameFeatures(status=normalized)

    return SequentialFrameFeatures(
        previous=np.array(kept_previous, dtype=np.float32),
        current=np.array(kept_current, dtype=np.float32),
        status=normalized,
    )


def keypoints_to_points(keypoints: Features | Sequence[cv2.KeyPoint]) -> np.ndarray:
    """Drop keypoint metadata, keeping Nx2 float32 coordinates."""
    if isinstance(keypoints, Features):
        return keypoints.points
    if len(keypoints) == 0:
        return _empty_points()
    return np.array([kp.pt for kp in keypoints], dtype=np.float32)


class FeatureTracker:
    """Tracks previous-frame keypoints into the current frame.

    Runs optical flow with a fixed search window and termination policy,
    then filters the result down to valid correspondences.

    Example:
        >>> tracker = FeatureTracker()
        >>> pair = tracker.track(prev_gray, curr_gray, features.keypoints)
        >>> print(f"{len(pair)} correspondences")
    """

    def __init__(
        self,
        optical_flow: OpticalFlowCapability | None = None,
        window_size: int = 21,
        termination: TerminationCriteria | None = None,
    ) -> None:
        """Initialize tracker.

        Args:
            optical_flow: Optical-flow capability. Pyramidal LK if None.
            window_size: Side length of the square search window (pixels)
            termination: Stopping policy. 10 iterations / 0.02 if None.
        """
        self._flow = optical_flow or create_optical_flow()
        self._window_size = (window_size, window_size)
        self._termination = termination or TerminationCriteria()

    @classmethod
    def from_config(cls, config: TrackerConfig) -> FeatureTracker:
        """Create a tracker from configuration."""
        flow = create_optical_flow(
            config.flow,
            max_level=config.max_level,
            min_eig_threshold=config.min_eig_threshold,
        )
        return cls(
            optical_flow=flow,
            window_size=config.window_size,
            termination=TerminationCriteria(
                max_iterations=config.max_iterations,
                epsilon=config.epsilon,
            ),
        )

    def track(
        self,
        previous_image: np.ndarray,
        current_image: np.ndarray,
        previous_keypoints: Features | Sequence[cv2.KeyPoint],
        frame_index: int | None = None,
    ) -> SequentialFrameFeatures:
        """Track keypoints from previous_image into current_image.

        Args:
            previous_image: Previous grayscale frame
            current_image: Current grayscale frame, same size as previous
            previous_keypoints: Keypoints detected in previous_image
            frame_index: Frame index attached to any raised error

        Returns:
            SequentialFrameFeatures with only valid correspondences. Empty
            keypoints yield an empty result.

        Raises:
            CaptureError: If either image is empty or not grayscale
            DimensionMismatch: If the images differ in size
            TrackingFailure: If the optical-flow capability raises
            ValueError: If previous_keypoints is None
        """
        previous_image = validate_image(
            previous_image, "previous", grayscale=True, frame_index=frame_index
        )
        current_image = validate_image(
            current_image, "current", grayscale=True, frame_index=frame_index
        )

        if previous_image.shape != current_image.shape:
            raise DimensionMismatch(
                f"previous frame is {previous_image.shape}, "
                f"current frame is {current_image.shape}",
                stage="tracking",
                frame_index=frame_index,
            )

        if previous_keypoints is None:
            raise ValueError("previous_keypoints must not be None")

        start = time.perf_counter()
        points = keypoints_to_points(previous_keypoints)
        if len(points) == 0:
            return SequentialFrameFeatures()

        try:
            current_points, status, _ = self._flow.track(
                previous_image,
                current_image,
                points,
                self._window_size,
                self._termination,
            )
        except (FeatureError, InvariantViolation):
            raise
        except Exception as e:
            raise TrackingFailure(
                f"{self._flow.name} failed: {e}",
                stage="tracking",
                frame_index=frame_index,
            ) from e

        result = filter_correspondences(points, current_points, status)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "track: %d/%d correspondences (%d off-screen) in %.1f ms",
            len(result),
            len(points),
            result.num_off_screen,
            elapsed_ms,
        )
        return result

    @property
    def window_size(self) -> tuple[int, int]:
        """Return the search window size."""
        return self._window_size

    @property
    def termination(self) -> TerminationCriteria:
        """Return the termination policy."""
        return self._termination
