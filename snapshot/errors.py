"""
snapshot.errors
中文异常类型定义。

SnapshotError 为截图流程的统一错误封装：
  - ConfigurationError / SurfaceError：进程级致命错误，批处理开始前即退出；
  - NavigationError / CaptureError / CompositionError / TargetTimeout：
    单个页面失败，由编排器转换为 failed 结果，批处理继续；
  - StabilizationTimeout：页面始终未稳定，携带 best_height，按最佳高度继续截图。
"""

from dataclasses import dataclass
from typing import ClassVar, Optional


@dataclass
class SnapshotError(Exception):
    """截图流程错误。

    message: 人类可读的错误信息
    stage: 出错阶段（config/launch/navigate/stabilize/capture/compose/...）
    target: 可选，出错页面（URL 或 Dashboard-N）
    original: 可选，原始异常对象
    """

    message: str
    stage: str = "capture"
    target: Optional[str] = None
    original: Optional[BaseException] = None

    code: ClassVar[str] = "SNAPSHOT_ERROR"

    def __str__(self) -> str:  # pragma: no cover
        base = f"[{self.code}@{self.stage}] {self.message}"
        if self.target:
            base += f" (target={self.target})"
        return base


class ConfigurationError(SnapshotError):
    code = "CONFIG_ERROR"


class SurfaceError(SnapshotError):
    """浏览器无法启动等环境级故障。"""

    code = "LAUNCH_ERROR"


class NavigationError(SnapshotError):
    code = "NAV_ERROR"


class CaptureError(SnapshotError):
    code = "CAPTURE_ERROR"


class CompositionError(SnapshotError):
    code = "COMPOSE_ERROR"


class TargetTimeout(SnapshotError):
    code = "TARGET_TIMEOUT"


@dataclass
class StabilizationTimeout(SnapshotError):
    """预算耗尽仍未稳定；best_height 为观测到的最大高度。"""

    best_height: int = 0

    code: ClassVar[str] = "STABILIZE_TIMEOUT"
