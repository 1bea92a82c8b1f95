"""Exception taxonomy for the feature-correspondence frontend."""

from __future__ import annotations


class FeatureError(Exception):
    """Base class for recoverable per-frame failures.

    A ``FeatureError`` means the current frame pair should be dropped; the
    pipeline carries on with the next frame.

    Attributes:
        stage: Name of the stage that failed (e.g. "detection", "tracking")
        frame_index: Index of the frame being processed, if known
    """

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        frame_index: int | None = None,
    ) -> None:
        self.stage = stage
        self.frame_index = frame_index

        context = []
        if stage is not None:
            context.append(f"stage={stage}")
        if frame_index is not None:
            context.append(f"frame={frame_index}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)


class CaptureError(FeatureError):
    """Image buffer is missing, empty, or has an unusable layout."""


class DetectionFailure(FeatureError):
    """The detection or description capability raised an error."""


class TrackingFailure(FeatureError):
    """The optical-flow capability raised an error."""


class DimensionMismatch(FeatureError):
    """Previous and current frames differ in size."""


class InvariantViolation(RuntimeError):
    """Index alignment between parallel sequences was broken.

    This indicates a bug rather than bad input, so it is not a
    ``FeatureError`` and is never swallowed by the pipeline.
    """
