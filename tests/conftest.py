# noqa: D100 - all tests share this setup module
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the repository root is on sys.path before importing project modules
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from snapshot.config import CaptureConfig  # noqa: E402


@pytest.fixture
def fast_config(tmp_path):
    """No waits, small viewport, DPR 1; individual tests override via dataclasses.replace."""
    return CaptureConfig(
        viewport_width=100,
        viewport_height=900,
        device_scale_factor=1.0,
        wait_after_load_ms=0,
        scroll_pause_ms=0,
        settle_ms=0,
        poll_interval_ms=0,
        loader_interval_ms=0,
        out_root=str(tmp_path / "out"),
    )
