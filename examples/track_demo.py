#!/usr/bin/env python3
"""Demo script for monocular feature tracking with timing diagnostics.

Usage:
    uv run python examples/track_demo.py [config.yaml]
"""

import logging
import sys

from monovo import FeaturePipeline, ImageSequenceReader, PipelineConfig, PipelineStatus


def main() -> None:
    """Run the feature tracking demo."""
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")

    # Configuration
    dataset_path = "data/euroc/MH_01_easy/mav0"
    max_frames = None  # Set to int to limit frames
    config = PipelineConfig.from_yaml(sys.argv[1]) if len(sys.argv) > 1 else PipelineConfig()

    # Initialize
    print("Initializing feature pipeline...")
    reader = ImageSequenceReader(dataset_path)
    pipeline = FeaturePipeline.from_config(config)

    print(f"Processing {len(reader)} frames...")
    print()
    print(f"{'Frame':>6} {'Status':^12} {'Feat':>5} {'Corr':>5} | {'Track':>7} {'Detect':>7} {'Total':>7}")
    print("-" * 64)

    failed_count = 0
    timing_totals = {"track": 0.0, "detect": 0.0, "total": 0.0}

    for i, (image, timestamp_ns) in enumerate(reader):
        if max_frames is not None and i >= max_frames:
            break

        result = pipeline.process_frame(image, timestamp_ns)
        if result.status == PipelineStatus.FAILED:
            failed_count += 1

        t = result.timing
        timing_totals["track"] += t.tracking_ms
        timing_totals["detect"] += t.detection_ms
        timing_totals["total"] += t.total_ms

        if i % 20 == 0 or result.status == PipelineStatus.FAILED:
            n_features = len(result.features) if result.features is not None else 0
            print(
                f"{i:6d} {result.status.value:^12} {n_features:5d} "
                f"{result.num_correspondences:5d} | "
                f"{t.tracking_ms:5.1f}ms {t.detection_ms:5.1f}ms {t.total_ms:5.1f}ms"
            )

    n_frames = max(pipeline.num_frames, 1)
    print()
    print("=" * 64)
    print(f"Frames processed: {pipeline.num_frames}")
    print(f"Dropped frames:   {failed_count}")
    print("Average timing per frame:")
    print(f"  Tracking:  {timing_totals['track']/n_frames:6.1f} ms")
    print(f"  Detection: {timing_totals['detect']/n_frames:6.1f} ms")
    print(f"  Total:     {timing_totals['total']/n_frames:6.1f} ms")


if __name__ == "__main__":
    main()
