"""Configuration for the detection, tracking and pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class DetectorConfig:
    """Named capability variants used by the detector stage.

    Attributes:
        detector: Detection variant name (fast, orb, gftt, agast)
        descriptor: Description variant name (orb, brisk, sift)
        matcher: Matching variant name (bruteforce-hamming, bruteforce-l2)
        detector_params: Keyword arguments forwarded to the detector factory
        descriptor_params: Keyword arguments forwarded to the descriptor factory
        matcher_params: Keyword arguments forwarded to the matcher factory
    """

    detector: str = "fast"
    descriptor: str = "orb"
    matcher: str = "bruteforce-hamming"
    detector_params: dict[str, Any] = field(default_factory=dict)
    descriptor_params: dict[str, Any] = field(default_factory=dict)
    matcher_params: dict[str, Any] = field(default_factory=dict)


@dataclass
class TrackerConfig:
    """Optical-flow parameters used by the tracking stage.

    Attributes:
        flow: Optical-flow variant name
        window_size: Side length (pixels) of the square search window
        max_iterations: Iteration cap of the termination policy
        epsilon: Minimum positional change before iteration stops
        max_level: Maximum pyramid level (0 = single level)
        min_eig_threshold: Minimum eigenvalue of the spatial gradient matrix
            below which a point is reported as lost
    """

    flow: str = "pyramidal-lk"
    window_size: int = 21
    max_iterations: int = 10
    epsilon: float = 0.02
    max_level: int = 0
    min_eig_threshold: float = 1e-3

    def __post_init__(self) -> None:
        """Validate numeric ranges."""
        if self.window_size < 3:
            raise ValueError(f"window_size must be >= 3, got {self.window_size}")
        if self.max_iterations < 1:
            raise ValueError(
                f"max_iterations must be >= 1, got {self.max_iterations}"
            )
        if self.epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if self.max_level < 0:
            raise ValueError(f"max_level must be >= 0, got {self.max_level}")


@dataclass
class PipelineConfig:
    """Top-level configuration for a FeaturePipeline."""

    detection: DetectorConfig = field(default_factory=DetectorConfig)
    tracking: TrackerConfig = field(default_factory=TrackerConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PipelineConfig:
        """Build a configuration from a plain mapping.

        Missing sections and keys fall back to defaults.

        Args:
            data: Mapping with optional ``detection`` and ``tracking`` sections

        Returns:
            PipelineConfig instance

        Raises:
            ValueError: If a section is not a mapping or contains unknown keys
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")

        unknown = set(data) - {"detection", "tracking"}
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        detection = _build_section(DetectorConfig, data.get("detection"), "detection")
        tracking = _build_section(TrackerConfig, data.get("tracking"), "tracking")
        return cls(detection=detection, tracking=tracking)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> PipelineConfig:
        """Load configuration from a YAML file.

        Example file::

            detection:
              detector: fast
              descriptor: orb
              detector_params:
                threshold: 20
            tracking:
              window_size: 21
              max_iterations: 10
              epsilon: 0.02

        Args:
            yaml_path: Path to the YAML file

        Returns:
            PipelineConfig instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file content is invalid
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Malformed YAML in {yaml_path}: {e}") from e

        try:
            return cls.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def _build_section(section_cls: type, values: Any, name: str) -> Any:
    """Instantiate one configuration dataclass from a mapping."""
    if values is None:
        return section_cls()
    if not isinstance(values, dict):
        raise ValueError(f"Section '{name}' must be a mapping")

    try:
        return section_cls(**values)
    except TypeError as e:
        raise ValueError(f"Invalid keys in section '{name}': {e}") from e
