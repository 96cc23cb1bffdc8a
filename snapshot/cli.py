"""
snapshot.cli
命令行入口：按看板分组批量截取整页截图。

典型用法::

    python -m snapshot vm14            # 短键
    python -m snapshot "VM 14.0" 5     # 显示名 + 从第 5 个看板续跑
    python -m snapshot vm14 --targets targets.json --config snapshot.json --dpr 2

退出码：0 表示批处理正常跑完（单页失败只记日志）；2 表示配置错误；1 表示浏览器无法启动等环境错误。
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import CaptureConfig, TargetRegistry
from .constants import ARTIFACTS, WAIT_UNTIL_CHOICES
from .errors import ConfigurationError, SurfaceError
from .pipeline import run_batch
from .surface import open_session
from .utils import load_json_config, parse_viewport

logger = logging.getLogger("snapshot")

EXIT_OK = 0
EXIT_ENV = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="snapshot",
        description="Capture full-length, stitched screenshots of dashboard pages using Playwright.",
    )
    p.add_argument("target", nargs="?", help="Target short key or display name from the targets file")
    p.add_argument("start", nargs="?", default=None, help="1-based dashboard index to resume from (default: 1)")
    p.add_argument("--targets", default=ARTIFACTS["targets"], help="Path to targets JSON (default: targets.json)")
    p.add_argument("--config", type=str, default=None, help="Path to JSON config file to override defaults")
    p.add_argument("--out-root", default=None, help="Output root directory (default: snapshots)")
    p.add_argument("--viewport", type=str, default=None, help="Viewport as 'WIDTHxHEIGHT' (default: 1440x900)")
    p.add_argument("--dpr", type=float, default=None, help="Device scale factor (default: 4)")
    p.add_argument("--slice-max-height", type=int, default=None, help="Max CSS pixels per slice (default: 4000)")
    p.add_argument("--wait-after-load-ms", type=int, default=None, help="Silent wait after navigation (default: 60000)")
    p.add_argument("--nav-timeout-ms", type=int, default=None, help="Navigation timeout in ms (default: 120000)")
    p.add_argument(
        "--wait-until",
        type=str,
        default=None,
        choices=list(WAIT_UNTIL_CHOICES),
        help="WaitUntil for page.goto (default: networkidle)",
    )
    p.add_argument("--target-timeout-s", type=float, default=None, help="Hard time budget per dashboard (default: 600)")
    p.add_argument("--no-hide-loaders", dest="hide_loaders", action="store_const", const=False, default=None,
                   help="Do not hide known loading overlays before capture")
    p.add_argument("--no-report", dest="write_report", action="store_const", const=False, default=None,
                   help="Do not write report.json")
    p.add_argument("--no-headless", dest="headless", action="store_const", const=False, default=None,
                   help="Run browser in headed mode")
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging (default: on)")
    p.add_argument("--no-verbose", dest="verbose", action="store_false", help="Only log warnings and errors")
    p.set_defaults(verbose=True)
    return p


def parse_start(value: Optional[str]) -> int:
    if value is None or value == "":
        return 1
    try:
        start = int(value)
    except ValueError:
        raise ConfigurationError(f"start must be an integer, got {value!r}", stage="config") from None
    if start < 1:
        raise ConfigurationError(f"start must be >= 1, got {start}", stage="config")
    return start


def resolve_config(args: argparse.Namespace) -> CaptureConfig:
    cfg = load_json_config(args.config)
    overrides = {
        "out_root": args.out_root,
        "device_scale_factor": args.dpr,
        "slice_max_height": args.slice_max_height,
        "wait_after_load_ms": args.wait_after_load_ms,
        "nav_timeout_ms": args.nav_timeout_ms,
        "wait_until": args.wait_until,
        "target_timeout_s": args.target_timeout_s,
        "hide_loaders": args.hide_loaders,
        "write_report": args.write_report,
        "headless": args.headless,
    }
    if args.viewport is not None:
        vp = parse_viewport(args.viewport)
        if vp is None:
            raise ConfigurationError(f"invalid viewport: {args.viewport!r} (expected WIDTHxHEIGHT)", stage="config")
        overrides["viewport_width"], overrides["viewport_height"] = vp
    return CaptureConfig.from_sources(cfg, overrides=overrides)


def _usage(registry: Optional[TargetRegistry]) -> None:
    print("Usage: python -m snapshot <target> [startFromDashboard]", file=sys.stderr)
    if registry is not None and len(registry):
        print("Available targets:", file=sys.stderr)
        for line in registry.describe():
            print(f"  {line}", file=sys.stderr)
    print("\nExample: python -m snapshot 'VM 14.0' 5", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    registry: Optional[TargetRegistry] = None
    try:
        config = resolve_config(args)
        registry = TargetRegistry.load(args.targets)
        if not args.target:
            raise ConfigurationError("missing target", stage="config")
        target = registry.get(args.target)
        start = parse_start(args.start)
        if start > len(target.urls):
            raise ConfigurationError(f"start must be within 1..{len(target.urls)}, got {start}", stage="config")
    except ConfigurationError as e:
        logger.error("[snapshot] %s", e)
        _usage(registry)
        return EXIT_CONFIG

    try:
        with open_session(config) as session:
            run_batch(session, target, config, start=start)
    except SurfaceError as e:
        logger.error("[snapshot] fatal: %s", e)
        return EXIT_ENV
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
