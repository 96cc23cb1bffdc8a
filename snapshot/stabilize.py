"""
snapshot.stabilize
页面高度稳定检测：先逐步滚动触发懒加载，再定时轮询直到高度连续不变。

两个阶段都有硬预算（max_scroll_steps / max_polls），页面无限增长时也必然终止；
预算耗尽时抛出 StabilizationTimeout，携带最后观测到的高度，由调用方按该高度继续截图。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import CaptureConfig
from .errors import StabilizationTimeout

logger = logging.getLogger(__name__)


@dataclass
class StabilizationState:
    last_height: int = 0
    unchanged_streak: int = 0
    probes: int = 0

    def observe(self, height: int) -> None:
        self.probes += 1
        if height == self.last_height:
            self.unchanged_streak += 1
        else:
            self.unchanged_streak = 0
        self.last_height = height


def scroll_sweep(surface, config: CaptureConfig, state: StabilizationState) -> bool:
    """从顶部按固定步长滚动到底部，每步暂停后比较高度。

    终止条件：高度连续 stable_steps 步不变，或游标到达当前高度。
    返回：是否在 max_scroll_steps 预算内正常结束。
    """
    state.last_height = surface.scroll_height()
    y = 0
    steps = 0
    while y < state.last_height and state.unchanged_streak < config.stable_steps:
        if steps >= config.max_scroll_steps:
            return False
        surface.check_deadline("stabilize")
        surface.scroll_to(y)
        surface.wait(config.scroll_pause_ms)
        y += config.scroll_step_px
        steps += 1
        state.observe(surface.scroll_height())
    logger.debug("[snapshot] sweep done: steps=%d height=%d", steps, state.last_height)
    return True


def poll_until_stable(surface, config: CaptureConfig, state: StabilizationState) -> bool:
    """定时轮询高度，要求连续 stable_polls 次读数相同。

    捕获滚动触发懒加载之后才异步完成的内容。返回：是否在 max_polls 内稳定。
    """
    run = 0
    for i in range(config.max_polls):
        surface.check_deadline("stabilize")
        if i:
            surface.wait(config.poll_interval_ms)
        height = surface.scroll_height()
        run = run + 1 if (run and height == state.last_height) else 1
        state.observe(height)
        if run >= config.stable_polls:
            return True
    return False


def stabilize(surface, config: CaptureConfig) -> int:
    """返回页面稳定后的内容高度（CSS 像素），结束时滚回顶部。"""
    state = StabilizationState()
    swept = scroll_sweep(surface, config, state)
    surface.scroll_to(0)
    settled = poll_until_stable(surface, config, state)
    if not (swept and settled):
        phase = "scroll sweep" if not swept else "height polling"
        raise StabilizationTimeout(
            f"page did not stabilize during {phase} after {state.probes} probes",
            stage="stabilize",
            best_height=state.last_height,
        )
    logger.info("[snapshot] stabilized: height=%d probes=%d", state.last_height, state.probes)
    return state.last_height
