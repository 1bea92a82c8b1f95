"""View orientation state driven by device rotation deltas."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

import cv2
import numpy as np


def axis_rotation(axis: int, angle: float) -> np.ndarray:
    """Return the 3x3 rotation of `angle` radians about a principal axis.

    Args:
        axis: 0 = X, 1 = Y, 2 = Z
        angle: Rotation angle in radians
    """
    rvec = np.zeros(3, dtype=np.float64)
    rvec[axis] = angle
    R, _ = cv2.Rodrigues(rvec)
    return R


def compute_rotation_delta(
    current: np.ndarray,
    previous: np.ndarray,
    scale: float = 1.0,
) -> np.ndarray:
    """Return the scaled change between two 3-component rotation readings."""
    current = np.asarray(current, dtype=np.float64).reshape(3)
    previous = np.asarray(previous, dtype=np.float64).reshape(3)
    return scale * (current - previous)


@dataclass(frozen=True, eq=False)
class ViewState:
    """Immutable view orientation and position.

    Each update returns a new ViewState instead of mutating shared fields.

    Attributes:
        rotation: 3x3 rotation of the view in world coordinates
        position: 3D position of the view, 100 units along Z by default
        rotation_enabled: If False, rotation deltas are ignored
    """

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 100.0]))
    rotation_enabled: bool = True

    def __post_init__(self) -> None:
        """Validate and normalize inputs."""
        rotation = np.asarray(self.rotation, dtype=np.float64)
        position = np.asarray(self.position, dtype=np.float64).flatten()
        if rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be 3x3, got {rotation.shape}")
        if position.shape != (3,):
            raise ValueError(f"Position must be (3,), got {position.shape}")
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "position", position)

    def apply_rotation_delta(self, delta: np.ndarray) -> ViewState:
        """Rotate the view about its own axes by a 3-component delta.

        Axes are applied in the order Y, X, Z, with the first component
        negated: Y by -delta[0], X by delta[1], Z by delta[2].

        Args:
            delta: (3,) rotation delta in radians

        Returns:
            New ViewState (or self when rotation is disabled)
        """
        if not self.rotation_enabled:
            return self

        delta = np.asarray(delta, dtype=np.float64).reshape(3)
        R = (
            self.rotation
            @ axis_rotation(1, -delta[0])
            @ axis_rotation(0, delta[1])
            @ axis_rotation(2, delta[2])
        )
        return replace(self, rotation=R)

    def with_position(self, position: np.ndarray) -> ViewState:
        """Return a copy moved to a new position."""
        return replace(self, position=position)

    @property
    def direction(self) -> np.ndarray:
        """Return the viewing direction (Z-axis) in world frame."""
        return self.rotation[:, 2].copy()
