"""
snapshot.capture
按计划逐片截图：滚动到区间起点 → 等待重绘/吸顶元素归位 → 按 CSS 坐标裁剪截图。

裁剪坐标为页面 CSS 像素，由 Playwright 按当前 DPR 换算为设备像素；
因此切片的真实像素尺寸必须读取图片本身，不能由 CSS 尺寸推算。
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, List

from PIL import Image, UnidentifiedImageError
from playwright.sync_api import Error as PlaywrightError

from .errors import CaptureError, TargetTimeout
from .planner import Region, SlicePlan

logger = logging.getLogger(__name__)

# DPR=4 时单片可达上亿像素，超过 Pillow 默认的解压炸弹阈值；仅在读取切片时放宽到该上限
MAX_SLICE_PIXELS = 1 << 30


@contextmanager
def slice_pixel_limit(limit: int = MAX_SLICE_PIXELS) -> Iterator[None]:
    previous = Image.MAX_IMAGE_PIXELS
    Image.MAX_IMAGE_PIXELS = limit
    try:
        yield
    finally:
        Image.MAX_IMAGE_PIXELS = previous


@dataclass
class SliceImage:
    index: int
    data: bytes
    width_px: int
    height_px: int


def measure_png(data: bytes) -> tuple:
    with slice_pixel_limit(), Image.open(BytesIO(data)) as im:
        return im.size


def _to_slice(index: int, data: bytes) -> SliceImage:
    try:
        w, h = measure_png(data)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise CaptureError(f"slice {index} is not a readable image: {e}", stage="capture", original=e) from e
    return SliceImage(index=index, data=data, width_px=int(w), height_px=int(h))


def capture_slice(surface, region: Region, width_css: int, settle_ms: int) -> SliceImage:
    try:
        surface.check_deadline("capture")
        surface.scroll_to(region.offset_y)
        surface.wait(settle_ms)
        data = surface.screenshot(
            clip={"x": 0, "y": region.offset_y, "width": width_css, "height": region.height}
        )
    except (CaptureError, TargetTimeout):
        raise
    except (PlaywrightError, OSError, ValueError) as e:
        raise CaptureError(
            f"slice {region.index} (y={region.offset_y}, h={region.height}) failed: {e}",
            stage="capture",
            original=e,
        ) from e
    shot = _to_slice(region.index, data)
    logger.info(
        "[snapshot] slice %d: y=%d h=%d -> %dx%d px",
        region.index, region.offset_y, region.height, shot.width_px, shot.height_px,
    )
    return shot


def capture_direct(surface) -> SliceImage:
    """页面不超过视口时直接截取整个视口。"""
    try:
        surface.check_deadline("capture")
        surface.scroll_to(0)
        data = surface.screenshot()
    except (CaptureError, TargetTimeout):
        raise
    except (PlaywrightError, OSError, ValueError) as e:
        raise CaptureError(f"viewport screenshot failed: {e}", stage="capture", original=e) from e
    return _to_slice(0, data)


def capture_plan(surface, plan: SlicePlan, width_css: int, settle_ms: int) -> List[SliceImage]:
    if plan.direct:
        return [capture_direct(surface)]
    return [capture_slice(surface, region, width_css, settle_ms) for region in plan]
