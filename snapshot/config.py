"""
snapshot.config
截图配置与看板注册表。

配置来源优先级（与采集脚本一致）：
  1) CLI 显式参数；
  2) JSON 配置文件（--config）；
  3) 环境变量 SNAPSHOT_<UPPER(name)>；
  4) CaptureConfig 字段默认值。

注册表为纯数据 JSON：{"<key>": {"name": "<显示名>", "urls": [...]}}，
可按短键或显示名查找。
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .constants import DEFAULT_DEVICE_SCALE_FACTOR, DEFAULT_VIEWPORT, ENV_PREFIX, WAIT_UNTIL_CHOICES
from .errors import ConfigurationError
from .utils import validate_url


@dataclass(frozen=True)
class CaptureConfig:
    # 视口与 DPR
    viewport_width: int = DEFAULT_VIEWPORT["width"]
    viewport_height: int = DEFAULT_VIEWPORT["height"]
    device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR
    headless: bool = True
    # 导航
    nav_timeout_ms: int = 120000
    wait_until: str = "networkidle"
    wait_after_load_ms: int = 60000
    # 分片
    slice_max_height: int = 4000
    settle_ms: int = 500
    # 滚动扫描
    scroll_step_px: int = 800
    scroll_pause_ms: int = 500
    stable_steps: int = 5
    max_scroll_steps: int = 200
    # 轮询稳定
    poll_interval_ms: int = 1000
    stable_polls: int = 3
    max_polls: int = 30
    # 加载遮罩
    hide_loaders: bool = True
    loader_max_rounds: int = 30
    loader_interval_ms: int = 1000
    # 单页硬超时（秒）
    target_timeout_s: float = 600.0
    # 产物
    out_root: str = "snapshots"
    write_report: bool = True

    def validate(self) -> "CaptureConfig":
        if self.viewport_width <= 0 or self.viewport_height <= 0:
            raise ConfigurationError(
                f"viewport must be positive, got {self.viewport_width}x{self.viewport_height}", stage="config"
            )
        if self.device_scale_factor <= 0:
            raise ConfigurationError(f"device_scale_factor must be > 0, got {self.device_scale_factor}", stage="config")
        if self.slice_max_height < 1:
            raise ConfigurationError(f"slice_max_height must be >= 1, got {self.slice_max_height}", stage="config")
        if self.scroll_step_px < 1:
            raise ConfigurationError(f"scroll_step_px must be >= 1, got {self.scroll_step_px}", stage="config")
        if self.stable_steps < 1 or self.stable_polls < 1:
            raise ConfigurationError("stable_steps and stable_polls must be >= 1", stage="config")
        if self.max_scroll_steps < 1 or self.max_polls < 1:
            raise ConfigurationError("max_scroll_steps and max_polls must be >= 1", stage="config")
        if self.wait_until not in WAIT_UNTIL_CHOICES:
            raise ConfigurationError(
                f"wait_until must be one of {', '.join(WAIT_UNTIL_CHOICES)}, got {self.wait_until!r}", stage="config"
            )
        if self.target_timeout_s <= 0:
            raise ConfigurationError(f"target_timeout_s must be > 0, got {self.target_timeout_s}", stage="config")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_sources(
        cls,
        cfg: Optional[Mapping[str, Any]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "CaptureConfig":
        """按 CLI > JSON > 环境变量 > 默认值 合成配置。

        overrides 中为 None 的项视为未提供。
        """
        env = os.environ if environ is None else environ
        cfg = cfg or {}
        overrides = overrides or {}
        base = cls()
        values: Dict[str, Any] = {}
        for f in fields(cls):
            default = getattr(base, f.name)
            if overrides.get(f.name) is not None:
                values[f.name] = _cast_like(overrides[f.name], default, f.name)
            elif f.name in cfg:
                values[f.name] = _cast_like(cfg[f.name], default, f.name)
            else:
                env_v = env.get(ENV_PREFIX + f.name.upper())
                if env_v is not None:
                    values[f.name] = _cast_like(env_v, default, f.name)
        return replace(base, **values).validate()


def _cast_like(value: Any, default: Any, name: str = "") -> Any:
    """将字符串/JSON 值转换为与默认值一致的类型。"""
    if value is None:
        return default
    try:
        # bool 需先于 int 判断
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value
            return str(value).strip().lower() in ("1", "true", "yes", "on")
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid value for {name}: {value!r}", stage="config", original=e) from e
    return str(value)


@dataclass(frozen=True)
class Target:
    key: str
    name: str
    urls: Tuple[str, ...] = field(default_factory=tuple)


class TargetRegistry:
    """短键 → 显示名 → URL 列表。"""

    def __init__(self, targets: Mapping[str, Target]) -> None:
        self._targets: Dict[str, Target] = dict(targets)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TargetRegistry":
        targets: Dict[str, Target] = {}
        for key, entry in data.items():
            if isinstance(entry, list):
                # 简写：{"VM 14.0": [url, ...]}，以键为显示名
                name, urls = key, entry
            elif isinstance(entry, dict):
                name, urls = str(entry.get("name") or key), entry.get("urls") or []
            else:
                raise ConfigurationError(f"target {key!r} must be an object or a URL list", stage="config")
            if not isinstance(urls, list) or not urls:
                raise ConfigurationError(f"target {key!r} has no URLs", stage="config")
            for u in urls:
                validate_url(str(u))
            targets[str(key)] = Target(key=str(key), name=name, urls=tuple(str(u) for u in urls))
        return cls(targets)

    @classmethod
    def load(cls, path: str) -> "TargetRegistry":
        if not os.path.exists(path):
            raise ConfigurationError(f"targets file not found: {path}", stage="config")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"cannot read targets {path}: {e}", stage="config", original=e) from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"targets {path} must be a JSON object", stage="config")
        return cls.from_dict(data)

    def get(self, ident: str) -> Target:
        """按短键或显示名查找，未知则抛 ConfigurationError。"""
        if ident in self._targets:
            return self._targets[ident]
        for t in self._targets.values():
            if t.name == ident:
                return t
        raise ConfigurationError(f"unknown target: {ident}", stage="config", target=ident)

    def describe(self) -> List[str]:
        return [f"{t.key} ({t.name})" if t.key != t.name else t.key for t in self._targets.values()]

    def __len__(self) -> int:
        return len(self._targets)
