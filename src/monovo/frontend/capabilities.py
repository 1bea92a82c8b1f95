"""Capability contracts for detection, description, matching and optical flow.

The frontend stages only talk to these protocols. Concrete variants wrap
OpenCV objects and are selected by name, so swapping a detector is a
configuration change rather than a subclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Sequence

import cv2
import numpy as np


class DetectorType(str, Enum):
    """Named keypoint detection variants."""

    FAST = "fast"
    ORB = "orb"
    GFTT = "gftt"
    AGAST = "agast"


class DescriptorType(str, Enum):
    """Named descriptor extraction variants."""

    ORB = "orb"
    BRISK = "brisk"
    SIFT = "sift"


class MatcherType(str, Enum):
    """Named descriptor matching variants."""

    BRUTEFORCE_HAMMING = "bruteforce-hamming"
    BRUTEFORCE_L2 = "bruteforce-l2"


class FlowType(str, Enum):
    """Named optical-flow variants."""

    PYRAMIDAL_LK = "pyramidal-lk"


@dataclass(frozen=True)
class TerminationCriteria:
    """Iterative stopping policy: stop after N iterations or below epsilon.

    Attributes:
        max_iterations: Maximum number of solver iterations
        epsilon: Stop once the per-iteration positional change drops below this
    """

    max_iterations: int = 10
    epsilon: float = 0.02

    def to_cv(self) -> tuple[int, int, float]:
        """Return an OpenCV TermCriteria tuple (COUNT | EPS)."""
        return (
            cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT,
            self.max_iterations,
            self.epsilon,
        )


class DetectionCapability(Protocol):
    """Finds keypoints in an image."""

    name: str

    def detect(
        self, image: np.ndarray, mask: np.ndarray | None = None
    ) -> tuple[cv2.KeyPoint, ...]: ...


class DescriptionCapability(Protocol):
    """Computes one descriptor per keypoint.

    Implementations may drop keypoints they cannot describe; the returned
    keypoints are the ones the descriptor rows belong to.
    """

    name: str

    @property
    def descriptor_size(self) -> int: ...

    @property
    def descriptor_dtype(self) -> np.dtype: ...

    def describe(
        self, image: np.ndarray, keypoints: Sequence[cv2.KeyPoint]
    ) -> tuple[tuple[cv2.KeyPoint, ...], np.ndarray | None]: ...


class MatchingCapability(Protocol):
    """Matches query descriptors against train descriptors."""

    name: str

    def match(self, query: np.ndarray, train: np.ndarray) -> list[cv2.DMatch]: ...


class OpticalFlowCapability(Protocol):
    """Predicts where points from one image moved to in the next."""

    name: str

    def track(
        self,
        prev_image: np.ndarray,
        curr_image: np.ndarray,
        prev_points: np.ndarray,
        window_size: tuple[int, int],
        termination: TerminationCriteria,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]: ...


class OpenCVDetector:
    """Detection capability backed by an OpenCV Feature2D instance."""

    def __init__(self, name: str, feature2d: Any) -> None:
        self.name = name
        self._impl = feature2d

    def detect(
        self, image: np.ndarray, mask: np.ndarray | None = None
    ) -> tuple[cv2.KeyPoint, ...]:
        keypoints = self._impl.detect(image, mask)
        if keypoints is None:
            return ()
        return tuple(keypoints)


class OpenCVDescriber:
    """Description capability backed by an OpenCV Feature2D instance."""

    def __init__(self, name: str, feature2d: Any) -> None:
        self.name = name
        self._impl = feature2d

    @property
    def descriptor_size(self) -> int:
        """Return number of columns per descriptor row."""
        return int(self._impl.descriptorSize())

    @property
    def descriptor_dtype(self) -> np.dtype:
        """Return element type of descriptor rows."""
        if self._impl.descriptorType() == cv2.CV_32F:
            return np.dtype(np.float32)
        return np.dtype(np.uint8)

    def describe(
        self, image: np.ndarray, keypoints: Sequence[cv2.KeyPoint]
    ) -> tuple[tuple[cv2.KeyPoint, ...], np.ndarray | None]:
        if len(keypoints) == 0:
            return (), None
        kept, descriptors = self._impl.compute(image, tuple(keypoints))
        if kept is None:
            kept = ()
        return tuple(kept), descriptors


class OpenCVMatcher:
    """Matching capability backed by a brute-force OpenCV matcher."""

    def __init__(self, name: str, matcher: cv2.DescriptorMatcher) -> None:
        self.name = name
        self._impl = matcher

    def match(self, query: np.ndarray, train: np.ndarray) -> list[cv2.DMatch]:
        if query is None or train is None or len(query) == 0 or len(train) == 0:
            return []
        return list(self._impl.match(query, train))


class PyramidalLKFlow:
    """Pyramidal Lucas-Kanade optical flow (cv2.calcOpticalFlowPyrLK)."""

    name = FlowType.PYRAMIDAL_LK.value

    def __init__(self, max_level: int = 0, min_eig_threshold: float = 1e-3) -> None:
        """Initialize the tracker.

        Args:
            max_level: Maximum pyramid level (0 = no pyramid)
            min_eig_threshold: Points whose spatial gradient matrix has a
                smaller minimum eigenvalue are reported as lost
        """
        self._max_level = max_level
        self._min_eig_threshold = min_eig_threshold

    def track(
        self,
        prev_image: np.ndarray,
        curr_image: np.ndarray,
        prev_points: np.ndarray,
        window_size: tuple[int, int],
        termination: TerminationCriteria,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Track points from prev_image into curr_image.

        Args:
            prev_image: Previous grayscale frame
            curr_image: Current grayscale frame
            prev_points: Nx2 float32 point coordinates in prev_image
            window_size: (width, height) of the search window
            termination: Solver stopping policy

        Returns:
            Tuple of (curr_points Nx2 float32, status (N,) uint8,
            errors (N,) float32), all index-aligned to prev_points
        """
        pts = np.ascontiguousarray(prev_points, dtype=np.float32).reshape(-1, 1, 2)
        curr_pts, status, errors = cv2.calcOpticalFlowPyrLK(
            prev_image,
            curr_image,
            pts,
            None,
            winSize=tuple(window_size),
            maxLevel=self._max_level,
            criteria=termination.to_cv(),
            flags=0,
            minEigThreshold=self._min_eig_threshold,
        )
        return (
            curr_pts.reshape(-1, 2).astype(np.float32),
            status.reshape(-1).astype(np.uint8),
            errors.reshape(-1).astype(np.float32),
        )


def _coerce(enum_cls: type[Enum], value: Enum | str) -> Any:
    """Convert a variant name into its enum member."""
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValueError(
            f"Unknown {enum_cls.__name__} '{value}'. Expected one of: {choices}"
        ) from None


def create_detector(kind: DetectorType | str = DetectorType.FAST, **params: Any) -> OpenCVDetector:
    """Create a named detection capability.

    Args:
        kind: Detector variant
        **params: Keyword arguments for the OpenCV constructor

    Returns:
        Detection capability
    """
    kind = _coerce(DetectorType, kind)
    if kind is DetectorType.FAST:
        impl = cv2.FastFeatureDetector_create(**params)
    elif kind is DetectorType.ORB:
        impl = cv2.ORB_create(**params)
    elif kind is DetectorType.GFTT:
        impl = cv2.GFTTDetector_create(**params)
    else:
        impl = cv2.AgastFeatureDetector_create(**params)
    return OpenCVDetector(kind.value, impl)


def create_describer(kind: DescriptorType | str = DescriptorType.ORB, **params: Any) -> OpenCVDescriber:
    """Create a named description capability.

    Args:
        kind: Descriptor variant
        **params: Keyword arguments for the OpenCV constructor

    Returns:
        Description capability
    """
    kind = _coerce(DescriptorType, kind)
    if kind is DescriptorType.ORB:
        impl = cv2.ORB_create(**params)
    elif kind is DescriptorType.BRISK:
        impl = cv2.BRISK_create(**params)
    else:
        impl = cv2.SIFT_create(**params)
    return OpenCVDescriber(kind.value, impl)


def create_matcher(kind: MatcherType | str = MatcherType.BRUTEFORCE_HAMMING, **params: Any) -> OpenCVMatcher:
    """Create a named matching capability.

    Args:
        kind: Matcher variant
        **params: Keyword arguments for cv2.BFMatcher (e.g. crossCheck)

    Returns:
        Matching capability
    """
    kind = _coerce(MatcherType, kind)
    norm = cv2.NORM_HAMMING if kind is MatcherType.BRUTEFORCE_HAMMING else cv2.NORM_L2
    return OpenCVMatcher(kind.value, cv2.BFMatcher(norm, **params))


def create_optical_flow(kind: FlowType | str = FlowType.PYRAMIDAL_LK, **params: Any) -> PyramidalLKFlow:
    """Create a named optical-flow capability."""
    _coerce(FlowType, kind)
    return PyramidalLKFlow(**params)
