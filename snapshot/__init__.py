"""Snapshot package initializer.

整页看板截图：稳定检测 → 分片规划 → 分片截图 → 无损拼接。

Run the batch tool via `python -m snapshot <target> [start]`.
"""

from .config import CaptureConfig, Target, TargetRegistry
from .errors import (
    CaptureError,
    CompositionError,
    ConfigurationError,
    NavigationError,
    SnapshotError,
    StabilizationTimeout,
    SurfaceError,
    TargetTimeout,
)
from .pipeline import CaptureResult, capture_page, run_batch
from .planner import Region, SlicePlan, plan_slices

__all__ = [
    "CaptureConfig",
    "CaptureError",
    "CaptureResult",
    "CompositionError",
    "ConfigurationError",
    "NavigationError",
    "Region",
    "SlicePlan",
    "SnapshotError",
    "StabilizationTimeout",
    "SurfaceError",
    "Target",
    "TargetRegistry",
    "TargetTimeout",
    "capture_page",
    "plan_slices",
    "run_batch",
]
