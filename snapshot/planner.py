"""
snapshot.planner
分片规划：把 [0, height) 贪心切成不超过 max_slice_height 的连续区间。

纯函数，相同输入总是得到相同、按偏移升序的计划。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True)
class Region:
    index: int
    offset_y: int
    height: int

    @property
    def end(self) -> int:
        return self.offset_y + self.height


@dataclass(frozen=True)
class SlicePlan:
    regions: Tuple[Region, ...]
    # True 表示页面不超过视口，直接截视口即可
    direct: bool = False

    def __iter__(self) -> Iterator[Region]:
        return iter(self.regions)

    def __len__(self) -> int:
        return len(self.regions)

    @property
    def total_height(self) -> int:
        return sum(r.height for r in self.regions)


def plan_slices(height_css: int, viewport_height_css: int, max_slice_height_css: int) -> SlicePlan:
    if max_slice_height_css < 1:
        raise ConfigurationError(f"max slice height must be >= 1, got {max_slice_height_css}", stage="plan")
    if viewport_height_css < 1:
        raise ConfigurationError(f"viewport height must be >= 1, got {viewport_height_css}", stage="plan")
    if height_css < 0:
        raise ConfigurationError(f"page height must be >= 0, got {height_css}", stage="plan")

    if height_css <= viewport_height_css:
        return SlicePlan(regions=(Region(0, 0, height_css),), direct=True)

    regions = []
    offset = 0
    while offset < height_css:
        h = min(max_slice_height_css, height_css - offset)
        regions.append(Region(len(regions), offset, h))
        offset += h
    return SlicePlan(regions=tuple(regions))
