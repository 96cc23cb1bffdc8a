"""
snapshot.hooks
截图前钩子（可选、可替换）。

钩子签名：hook(surface, config) -> None。内置 hide_loading_indicators 针对看板产品的加载遮罩，
属于启发式逻辑，默认启用，可通过 hide_loaders=False 关闭或传入自定义钩子列表替换。
"""

from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from .config import CaptureConfig
from .constants import LOADING_SELECTORS

logger = logging.getLogger(__name__)

PreCaptureHook = Callable[[object, CaptureConfig], None]


def hide_loading_indicators(surface, config: CaptureConfig, selectors: Sequence[str] = LOADING_SELECTORS) -> int:
    """反复隐藏加载遮罩，直到不再出现或达到轮数上限。返回执行的轮数。"""
    rounds = 0
    for rounds in range(1, config.loader_max_rounds + 1):
        surface.check_deadline("hooks")
        hidden = surface.hide_selectors(selectors)
        if hidden == 0:
            break
        logger.debug("[snapshot] hid %d loading elements (round %d)", hidden, rounds)
        surface.wait(config.loader_interval_ms)
    return rounds


def default_hooks(config: CaptureConfig) -> List[PreCaptureHook]:
    hooks: List[PreCaptureHook] = []
    if config.hide_loaders:
        hooks.append(hide_loading_indicators)
    return hooks
