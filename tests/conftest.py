"""Shared fixtures for frontend tests."""

import cv2
import numpy as np
import pytest


def make_textured_image(seed: int = 0, width: int = 320, height: int = 240) -> np.ndarray:
    """Create a grayscale image of random-intensity blocks with soft edges.

    Block corners give FAST plenty of keypoints and the blur gives optical
    flow smooth gradients to work with.
    """
    rng = np.random.default_rng(seed)
    blocks = rng.integers(0, 256, size=(height // 10, width // 10), dtype=np.uint8)
    image = cv2.resize(blocks, (width, height), interpolation=cv2.INTER_NEAREST)
    return cv2.GaussianBlur(image, (5, 5), 1.0)


class FakeFlow:
    """Optical-flow capability returning canned results."""

    name = "fake-flow"

    def __init__(self, current_points=None, status=None, error: Exception | None = None):
        self.current_points = current_points
        self.status = status
        self.error = error
        self.calls = []

    def track(self, prev_image, curr_image, prev_points, window_size, termination):
        self.calls.append((prev_points.copy(), window_size, termination))
        if self.error is not None:
            raise self.error

        current = prev_points if self.current_points is None else self.current_points
        current = np.asarray(current, dtype=np.float32).reshape(-1, 2)
        status = (
            np.ones(len(current), dtype=np.uint8)
            if self.status is None
            else np.asarray(self.status, dtype=np.uint8)
        )
        return current, status, np.zeros(len(current), dtype=np.float32)


@pytest.fixture
def textured_image() -> np.ndarray:
    """320x240 grayscale frame with trackable texture."""
    return make_textured_image()


@pytest.fixture
def shifted_image(textured_image: np.ndarray) -> np.ndarray:
    """Same frame translated 2 pixels to the right."""
    return np.roll(textured_image, 2, axis=1)


@pytest.fixture
def blank_image() -> np.ndarray:
    """Featureless grayscale frame."""
    return np.zeros((240, 320), dtype=np.uint8)
