"""EuRoC MAV dataset reader for monocular camera images."""

from pathlib import Path
from typing import Iterator

import cv2
import numpy as np


class ImageSequenceReader:
    """Reader for the cam0 image stream of a EuRoC MAV dataset."""

    def __init__(self, dataset_path: str = "data/euroc/MH_01_easy/mav0", camera: str = "cam0") -> None:
        """Initialize reader with path to dataset.

        Args:
            dataset_path: Path to mav0 directory
            camera: Camera directory to read (cam0 or cam1)

        Raises:
            FileNotFoundError: If dataset path or required directories don't exist
            ValueError: If data.csv is empty or invalid
        """
        self.dataset_path = Path(dataset_path)
        self.camera_path = self.dataset_path / camera
        self.data_path = self.camera_path / "data"
        self.csv_path = self.camera_path / "data.csv"

        self._validate_paths()
        self._image_list = self._load_image_list()

        if not self._image_list:
            raise ValueError(f"No images found in {self.csv_path}")

        self._current_idx = 0

    def _validate_paths(self) -> None:
        """Validate that all required paths exist."""
        if not self.dataset_path.exists():
            raise FileNotFoundError(f"Dataset path does not exist: {self.dataset_path}")

        if not self.camera_path.exists():
            raise FileNotFoundError(
                f"{self.camera_path.name} directory not found: {self.camera_path}\n"
                f"Expected structure: {self.dataset_path}/{self.camera_path.name}/"
            )

        if not self.data_path.exists():
            raise FileNotFoundError(
                f"{self.camera_path.name}/data directory not found: {self.data_path}"
            )

        if not self.csv_path.exists():
            raise FileNotFoundError(
                f"{self.camera_path.name}/data.csv not found: {self.csv_path}\n"
                f"This file is required to list image timestamps and filenames."
            )

    def _load_image_list(self) -> list[tuple[int, str]]:
        """Parse data.csv to get image list.

        CSV format:
            #timestamp [ns],filename
            1403636579763555584,1403636579763555584.png

        Returns:
            List of (timestamp_ns, filename) tuples in file order
        """
        image_list = []

        with open(self.csv_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue

                try:
                    timestamp_str, filename = line.split(",")
                    image_list.append((int(timestamp_str.strip()), filename.strip()))
                except ValueError as e:
                    raise ValueError(
                        f"Invalid line in {self.csv_path}: '{line}'\n"
                        f"Expected format: timestamp,filename"
                    ) from e

        return image_list

    def _load_image(self, filename: str) -> np.ndarray:
        """Load one frame as grayscale.

        Raises:
            FileNotFoundError: If the image file doesn't exist
            ValueError: If image decoding fails
        """
        path = self.data_path / filename
        if not path.exists():
            raise FileNotFoundError(f"Camera image not found: {path}")

        image = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise ValueError(f"Failed to load image: {path}")

        return image

    def get_next_frame(self) -> tuple[np.ndarray, int] | None:
        """Get next frame.

        Returns:
            Tuple of (image, timestamp_ns), or None if no more images.

        Example:
            >>> reader = ImageSequenceReader('data/euroc/MH_01_easy/mav0')
            >>> while (frame := reader.get_next_frame()) is not None:
            ...     image, timestamp = frame
        """
        if self._current_idx >= len(self._image_list):
            return None

        timestamp_ns, filename = self._image_list[self._current_idx]
        image = self._load_image(filename)

        self._current_idx += 1
        return image, timestamp_ns

    def reset(self) -> None:
        """Reset iterator to beginning of dataset."""
        self._current_idx = 0

    def __len__(self) -> int:
        """Return total number of frames in dataset."""
        return len(self._image_list)

    def __iter__(self) -> Iterator[tuple[np.ndarray, int]]:
        """Iterate over (image, timestamp_ns) from the start."""
        self.reset()
        return self

    def __next__(self) -> tuple[np.ndarray, int]:
        frame = self.get_next_frame()
        if frame is None:
            raise StopIteration
        return frame
