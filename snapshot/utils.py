"""
snapshot.utils
中文通用工具函数：路径/时间/JSON/URL 校验/视口解析等。
"""

from __future__ import annotations

import json
import os
import re
import time
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from .errors import ConfigurationError


def month_partition(now: Optional[datetime] = None) -> str:
    """返回按月分区的目录名，格式 YYYY-MM。"""
    return (now or datetime.now()).strftime("%Y-%m")


def sanitize_dirname(name: str) -> str:
    """将看板显示名清洗为文件系统安全的目录名（保留空格与点，如 "VM 14.0"）。"""
    key = re.sub(r"[^0-9A-Za-z ._-]", "_", name or "").strip(" .")
    key = re.sub(r"_+", "_", key)
    return key or "unknown"


def ensure_dir(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path


def write_json(path: str, obj: Dict[str, Any]) -> None:
    """以 UTF-8 与缩进写入 JSON 文件。"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


def load_json_config(path: Optional[str]) -> Dict[str, Any]:
    """加载 JSON 配置文件。

    未提供路径返回空 dict；显式提供但不存在/无法解析时抛 ConfigurationError。
    """
    if not path:
        return {}
    if not os.path.exists(path):
        raise ConfigurationError(f"config file not found: {path}", stage="config")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"cannot read config {path}: {e}", stage="config", original=e) from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"config {path} must be a JSON object", stage="config")
    return data


def validate_url(url: str) -> None:
    """校验 URL（仅允许 http/https），非法则抛 ConfigurationError。"""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"unsupported URL: {url}", stage="config", target=url)


def parse_viewport(viewport: Optional[str]) -> Optional[Tuple[int, int]]:
    """解析 "WxH" 形式的视口参数。失败返回 None。"""
    if isinstance(viewport, str) and "x" in viewport.lower():
        try:
            w, h = viewport.lower().split("x", 1)
            return int(w), int(h)
        except ValueError:
            return None
    return None


class Deadline:
    """单页硬超时：所有等待都被截断到剩余时间内。"""

    def __init__(self, seconds: Optional[float], *, clock=None) -> None:
        self._clock = clock or time.monotonic
        self._expires = None if seconds is None else self._clock() + float(seconds)

    def remaining_ms(self) -> Optional[int]:
        if self._expires is None:
            return None
        return max(0, int((self._expires - self._clock()) * 1000))

    def expired(self) -> bool:
        return self._expires is not None and self._clock() >= self._expires

    def clamp_ms(self, ms: int) -> int:
        rem = self.remaining_ms()
        return int(ms) if rem is None else min(int(ms), rem)
