"""Tests for pipeline configuration."""

from pathlib import Path

import pytest

from monovo.config import DetectorConfig, PipelineConfig, TrackerConfig


class TestPipelineConfig:
    """Test suite for PipelineConfig."""

    def test_defaults(self):
        """Defaults mirror FAST/ORB/Hamming and a 21x21, 10/0.02 tracker."""
        config = PipelineConfig()

        assert config.detection.detector == "fast"
        assert config.detection.descriptor == "orb"
        assert config.detection.matcher == "bruteforce-hamming"
        assert config.tracking.window_size == 21
        assert config.tracking.max_iterations == 10
        assert config.tracking.epsilon == 0.02

    def test_from_dict_partial(self):
        """Missing keys fall back to defaults."""
        config = PipelineConfig.from_dict({"tracking": {"window_size": 31}})

        assert config.tracking.window_size == 31
        assert config.tracking.max_iterations == 10
        assert config.detection == DetectorConfig()

    def test_from_dict_none(self):
        """An empty document gives the defaults."""
        assert PipelineConfig.from_dict(None) == PipelineConfig()

    def test_unknown_section(self):
        """Unknown top-level sections are rejected."""
        with pytest.raises(ValueError, match="Unknown configuration sections"):
            PipelineConfig.from_dict({"rendering": {}})

    def test_unknown_key(self):
        """Unknown keys inside a section are rejected."""
        with pytest.raises(ValueError, match="tracking"):
            PipelineConfig.from_dict({"tracking": {"window": 21}})

    def test_section_must_be_mapping(self):
        """Sections must be mappings."""
        with pytest.raises(ValueError, match="detection"):
            PipelineConfig.from_dict({"detection": "fast"})

    def test_from_yaml(self, tmp_path: Path):
        """YAML files are parsed into nested dataclasses."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "detection:\n"
            "  detector: orb\n"
            "  detector_params:\n"
            "    nfeatures: 500\n"
            "tracking:\n"
            "  max_iterations: 30\n"
            "  epsilon: 0.01\n"
        )

        config = PipelineConfig.from_yaml(path)

        assert config.detection.detector == "orb"
        assert config.detection.detector_params == {"nfeatures": 500}
        assert config.tracking.max_iterations == 30
        assert config.tracking.epsilon == 0.01

    def test_from_yaml_missing_file(self, tmp_path: Path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            PipelineConfig.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_invalid_value(self, tmp_path: Path):
        """Invalid values name the offending file."""
        path = tmp_path / "config.yaml"
        path.write_text("tracking:\n  window_size: 1\n")

        with pytest.raises(ValueError, match="config.yaml"):
            PipelineConfig.from_yaml(path)

    def test_from_yaml_syntax_error(self, tmp_path: Path):
        """Unparseable YAML is a ValueError naming the file."""
        path = tmp_path / "broken.yaml"
        path.write_text("tracking:\n  window_size: [21\n")

        with pytest.raises(ValueError, match="broken.yaml"):
            PipelineConfig.from_yaml(path)

    def test_from_dict_empty_list(self):
        """An empty list is not mistaken for an empty document."""
        with pytest.raises(ValueError, match="mapping"):
            PipelineConfig.from_dict([])

    def test_from_yaml_not_a_mapping(self, tmp_path: Path):
        """A YAML list is not a configuration."""
        path = tmp_path / "config.yaml"
        path.write_text("- fast\n- orb\n")

        with pytest.raises(ValueError):
            PipelineConfig.from_yaml(path)


class TestTrackerConfig:
    """Test suite for TrackerConfig validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"window_size": 2},
            {"max_iterations": 0},
            {"epsilon": 0.0},
            {"max_level": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        """Out-of-range values are rejected."""
        with pytest.raises(ValueError):
            TrackerConfig(**kwargs)
