"""
snapshot.pipeline
截图编排：导航 → 等待渲染 → 截图前钩子 → 稳定检测 → 分片规划 → 截图 → 拼接 → 落盘。

接口：
    capture_page(surface, url, out_path, config, ...) -> CaptureResult
    run_batch(session, target, config, start=1, ...) -> list[CaptureResult]

产物目录：<out_root>/<YYYY-MM>/<看板显示名>/Dashboard-<n>.png

说明：
    - 单页的任何错误都在本层被捕获并记录为 failed(reason)，批处理继续下一页；
    - 只有配置错误与浏览器无法启动属于进程级错误，向上传播；
    - 每页使用独立 page 与独立的硬超时（target_timeout_s）。
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .capture import capture_plan
from .compose import compose, save_image
from .config import CaptureConfig, Target
from .constants import ARTIFACTS, REPORT_VERSION
from .errors import ConfigurationError, SnapshotError, StabilizationTimeout, SurfaceError
from .hooks import PreCaptureHook, default_hooks
from .planner import plan_slices
from .stabilize import stabilize
from .utils import Deadline, ensure_dir, month_partition, sanitize_dirname, write_json

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILED = "failed"


@dataclass
class CaptureResult:
    index: int
    url: str
    status: str = SUCCESS
    path: Optional[str] = None
    reason: Optional[str] = None
    code: Optional[str] = None
    width_px: int = 0
    height_px: int = 0
    slices: int = 0
    elapsed_s: float = 0.0
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


def output_dir(config: CaptureConfig, target: Target, now: Optional[datetime] = None) -> str:
    return os.path.join(config.out_root, month_partition(now), sanitize_dirname(target.name))


def _capture(
    surface,
    url: str,
    out_path: str,
    config: CaptureConfig,
    hooks: Sequence[PreCaptureHook],
    result: CaptureResult,
) -> None:
    surface.navigate(url, timeout_ms=config.nav_timeout_ms, wait_until=config.wait_until)

    logger.info("[snapshot]    waiting %.0fs for dashboard to render...", config.wait_after_load_ms / 1000)
    surface.wait(config.wait_after_load_ms)

    for hook in hooks:
        hook(surface, config)
    surface.scroll_to(0)

    logger.info("[snapshot]    pre-loading all content...")
    try:
        stable_height = stabilize(surface, config)
    except StabilizationTimeout as st:
        # 未稳定不致命：按最后观测高度继续
        logger.warning("[snapshot]    %s; continuing with height=%d", st.message, st.best_height)
        result.warnings.append({"code": st.code, "stage": st.stage, "best_height": st.best_height})
        stable_height = st.best_height

    dims = surface.dimensions()
    height = dims.height_css or stable_height
    vw, vh = surface.viewport_size()
    width = dims.width_css or vw
    plan = plan_slices(height, vh, config.slice_max_height)
    logger.info(
        "[snapshot]    page %dx%d css @%gx, %s",
        width, height, dims.device_pixel_ratio,
        "direct capture" if plan.direct else f"{len(plan)} slices",
    )

    slices = capture_plan(surface, plan, width, config.settle_ms)
    image = compose(slices)
    result.slices = len(slices)
    del slices
    surface.check_deadline("compose")
    save_image(image, out_path)
    result.path = out_path
    result.width_px, result.height_px = image.size


def capture_page(
    surface,
    url: str,
    out_path: str,
    config: CaptureConfig,
    *,
    index: int = 1,
    hooks: Optional[Sequence[PreCaptureHook]] = None,
) -> CaptureResult:
    """单页完整流程；除 SurfaceError 外所有错误都转换为 failed 结果。"""
    result = CaptureResult(index=index, url=url)
    hooks = default_hooks(config) if hooks is None else hooks
    started = time.monotonic()
    try:
        _capture(surface, url, out_path, config, hooks, result)
    except SurfaceError:
        raise
    except SnapshotError as e:
        result.status, result.code, result.reason = FAILED, e.code, e.message
        logger.error("[snapshot] Dashboard %d failed [%s@%s]: %s", index, e.code, e.stage, e.message)
    except Exception as e:
        result.status, result.code, result.reason = FAILED, "UNEXPECTED_ERROR", f"{type(e).__name__}: {e}"
        logger.exception("[snapshot] Dashboard %d failed unexpectedly", index)
    finally:
        result.elapsed_s = round(time.monotonic() - started, 3)
    if result.ok:
        logger.info("[snapshot] saved: %s (%dx%d px)", result.path, result.width_px, result.height_px)
    else:
        result.path = None
    return result


def run_batch(
    session,
    target: Target,
    config: CaptureConfig,
    *,
    start: int = 1,
    hooks: Optional[Sequence[PreCaptureHook]] = None,
    now: Optional[datetime] = None,
) -> List[CaptureResult]:
    """按顺序截取 target 的全部看板；start 为 1 起的续跑位置。"""
    urls = list(target.urls)
    if start < 1 or start > len(urls):
        raise ConfigurationError(
            f"start must be within 1..{len(urls)} for {target.name}, got {start}", stage="config", target=target.key
        )

    out_dir = ensure_dir(output_dir(config, target, now))
    started_epoch = time.time()
    logger.info("[snapshot] capturing dashboards for %s (%d-%d) -> %s", target.name, start, len(urls), out_dir)

    results: List[CaptureResult] = []
    for i in range(start - 1, len(urls)):
        n = i + 1
        url = urls[i]
        logger.info("[snapshot] Dashboard %d/%d: %s", n, len(urls), url)
        out_path = os.path.join(out_dir, ARTIFACTS["page"].format(n=n))
        deadline = Deadline(config.target_timeout_s)
        try:
            surface = session.new_surface(deadline)
        except Exception as e:
            logger.error("[snapshot] Dashboard %d failed: cannot open page: %s", n, e)
            results.append(CaptureResult(index=n, url=url, status=FAILED, code=SurfaceError.code, reason=str(e)))
            continue
        try:
            results.append(capture_page(surface, url, out_path, config, index=n, hooks=hooks))
        finally:
            surface.close()

    ok = sum(1 for r in results if r.ok)
    logger.info("[snapshot] Done. %d succeeded, %d failed.", ok, len(results) - ok)
    if config.write_report:
        write_json(os.path.join(out_dir, ARTIFACTS["report"]), {
            "target": {"key": target.key, "name": target.name, "count": len(urls)},
            "month": month_partition(now),
            "start": start,
            "report_version": REPORT_VERSION,
            "tool": "playwright-python",
            "started_epoch": started_epoch,
            "finished_epoch": time.time(),
            "config": config.to_dict(),
            "results": [asdict(r) for r in results],
        })
    return results
