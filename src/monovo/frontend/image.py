"""Validation and conversion helpers for borrowed image buffers."""

from __future__ import annotations

import cv2
import numpy as np

from ..errors import CaptureError


def validate_image(
    image: np.ndarray | None,
    role: str = "image",
    grayscale: bool = False,
    frame_index: int | None = None,
) -> np.ndarray:
    """Check that an image buffer is a single, non-empty frame.

    Args:
        image: Image buffer (HxW or HxWxC)
        role: Name used in error messages (e.g. "previous", "current")
        grayscale: If True, require a 2D single-channel buffer
        frame_index: Frame index for error context

    Returns:
        The same buffer, unmodified

    Raises:
        CaptureError: If the buffer is None, empty, batched, or not
            grayscale when grayscale is required
    """
    if image is None:
        raise CaptureError(f"{role} image is None", stage="capture", frame_index=frame_index)

    if not isinstance(image, np.ndarray):
        raise CaptureError(
            f"{role} image must be a numpy array, got {type(image).__name__}",
            stage="capture",
            frame_index=frame_index,
        )

    if image.size == 0:
        raise CaptureError(f"{role} image is empty", stage="capture", frame_index=frame_index)

    if image.ndim not in (2, 3):
        raise CaptureError(
            f"{role} image must be HxW or HxWxC, got shape {image.shape}",
            stage="capture",
            frame_index=frame_index,
        )

    if grayscale and image.ndim != 2:
        raise CaptureError(
            f"{role} image must be grayscale, got shape {image.shape}",
            stage="capture",
            frame_index=frame_index,
        )

    return image


def to_grayscale(image: np.ndarray, frame_index: int | None = None) -> np.ndarray:
    """Return a grayscale view or copy of an image buffer.

    Grayscale input is returned as-is. BGR and BGRA inputs are converted.

    Raises:
        CaptureError: If the buffer is invalid or has an unsupported
            channel count
    """
    image = validate_image(image, frame_index=frame_index)
    if image.ndim == 2:
        return image

    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0]
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

    raise CaptureError(
        f"Unsupported channel count {channels}",
        stage="capture",
        frame_index=frame_index,
    )
