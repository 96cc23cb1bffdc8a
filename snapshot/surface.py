"""
Playwright-backed render surface used by the capture pipeline.

Methods provided are intentionally minimal and stable:
  - navigate(url, *, timeout_ms, wait_until) -> None   (raises NavigationError)
  - viewport_size() -> (width, height)
  - scroll_height() -> int
  - dimensions() -> PageDimensions
  - scroll_to(y) -> None
  - wait(ms) -> None
  - screenshot(clip=None) -> bytes (PNG)
  - hide_selectors(selectors) -> int

Usage:
  from snapshot.surface import open_session
  with open_session(config) as session:
      surface = session.new_surface(deadline)
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .config import CaptureConfig
from .constants import (
    JS_DOCUMENT_METRICS,
    JS_HIDE_SELECTORS,
    JS_SCROLL_TO,
    LAUNCH_ARGS,
    WAIT_UNTIL_CHOICES,
)
from .errors import NavigationError, SurfaceError, TargetTimeout
from .utils import Deadline


@dataclass(frozen=True)
class PageDimensions:
    """Measured document size in CSS pixels plus the active device pixel ratio."""

    width_css: int
    height_css: int
    device_pixel_ratio: float


class PageSurface:
    def __init__(self, page, *, deadline: Optional[Deadline] = None) -> None:
        self._page = page
        self._deadline = deadline or Deadline(None)

    @property
    def deadline(self) -> Deadline:
        return self._deadline

    def _timeout(self, timeout_ms: int) -> int:
        # Playwright treats 0 as "no timeout"
        return max(1, self._deadline.clamp_ms(timeout_ms))

    def check_deadline(self, stage: str) -> None:
        if self._deadline.expired():
            raise TargetTimeout("per-target time budget exhausted", stage=stage)

    # Navigation
    def navigate(self, url: str, *, timeout_ms: int, wait_until: str = "networkidle") -> None:
        _wu = wait_until if wait_until in WAIT_UNTIL_CHOICES else "domcontentloaded"
        try:
            self._page.goto(url, timeout=self._timeout(timeout_ms), wait_until=_wu)
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"navigation timed out after {timeout_ms}ms", stage="navigate", target=url, original=e) from e
        except PlaywrightError as e:
            raise NavigationError(str(e), stage="navigate", target=url, original=e) from e

    # Metrics
    def viewport_size(self) -> Tuple[int, int]:
        vs = self._page.viewport_size
        if isinstance(vs, dict):
            return int(vs.get("width", 0)), int(vs.get("height", 0))
        return (0, 0)

    def scroll_height(self) -> int:
        # same extent the planner slices: max(body, documentElement)
        return self.dimensions().height_css

    def dimensions(self) -> PageDimensions:
        m = self._page.evaluate(JS_DOCUMENT_METRICS) or {}
        return PageDimensions(
            width_css=int(math.ceil(float(m.get("width") or 0))),
            height_css=int(math.ceil(float(m.get("height") or 0))),
            device_pixel_ratio=float(m.get("dpr") or 1.0),
        )

    # Actions
    def scroll_to(self, y: int) -> None:
        self._page.evaluate(JS_SCROLL_TO, int(y))

    def wait(self, ms: int) -> None:
        """Bounded suspension point; never outlives the target deadline."""
        ms = self._deadline.clamp_ms(max(0, int(ms)))
        if ms > 0:
            self._page.wait_for_timeout(ms)

    def screenshot(self, clip: Optional[Dict[str, float]] = None, *, timeout_ms: int = 30000) -> bytes:
        if clip is None:
            return self._page.screenshot(type="png", full_page=False, timeout=self._timeout(timeout_ms))
        # clip is in document coordinates; without full_page Playwright trims it to the viewport
        return self._page.screenshot(type="png", clip=clip, full_page=True, timeout=self._timeout(timeout_ms))

    def hide_selectors(self, selectors: Sequence[str]) -> int:
        if not selectors:
            return 0
        return int(self._page.evaluate(JS_HIDE_SELECTORS, list(selectors)) or 0)

    def close(self) -> None:
        try:
            self._page.close()
        except PlaywrightError:
            pass


def make_context_args(config: CaptureConfig) -> Dict[str, Any]:
    """根据配置生成 BrowserContext 参数（视口 + DPR）。"""
    return {
        "viewport": {"width": int(config.viewport_width), "height": int(config.viewport_height)},
        "device_scale_factor": float(config.device_scale_factor),
    }


class BrowserSession:
    """One browser context; hands out a fresh page per target."""

    def __init__(self, context, config: CaptureConfig) -> None:
        self._context = context
        self._config = config

    def new_surface(self, deadline: Optional[Deadline] = None) -> PageSurface:
        page = self._context.new_page()
        page.set_default_navigation_timeout(int(self._config.nav_timeout_ms))
        return PageSurface(page, deadline=deadline)


@contextmanager
def open_session(config: CaptureConfig, *, launch_args: Optional[List[str]] = None) -> Iterator[BrowserSession]:
    """Context manager launching Chromium and yielding a BrowserSession.

    启动失败（未安装浏览器内核等）转换为 SurfaceError，属于进程级致命错误。
    需要浏览器内核：`python -m playwright install chromium`。
    """
    with sync_playwright() as pw:
        try:
            browser = pw.chromium.launch(headless=config.headless, args=list(launch_args or LAUNCH_ARGS))
            context = browser.new_context(**make_context_args(config))
        except PlaywrightError as e:
            raise SurfaceError(f"cannot start browser: {e}", stage="launch", original=e) from e
        try:
            yield BrowserSession(context, config)
        finally:
            try:
                context.close()
            except PlaywrightError:
                pass
            try:
                browser.close()
            except PlaywrightError:
                pass
