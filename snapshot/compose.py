"""
snapshot.compose
切片纵向无损拼接。

规则：
  - 每片真实像素尺寸从图片本身读取；
  - 画布宽度取第一片宽度，所有切片宽度必须一致，否则整页失败（CompositionError）；
  - 画布高度 = 各片高度之和，白色不透明背景，自上而下无缝粘贴；
  - PNG 无损编码，先写临时文件再原子替换，失败时不留残缺文件。
"""

from __future__ import annotations

import logging
import os
from io import BytesIO
from typing import Sequence

from PIL import Image, UnidentifiedImageError

from .capture import SliceImage, slice_pixel_limit
from .errors import CompositionError

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255, 255)


def _open(s: SliceImage) -> Image.Image:
    try:
        with slice_pixel_limit():
            return Image.open(BytesIO(s.data))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise CompositionError(f"slice {s.index} is not a readable image: {e}", stage="compose", original=e) from e


def compose(slices: Sequence[SliceImage]) -> Image.Image:
    if not slices:
        raise CompositionError("no slices to compose", stage="compose")

    # 先只读文件头取尺寸，解码放到逐片合成时进行
    sizes = []
    for s in slices:
        with _open(s) as im:
            sizes.append(im.size)

    width = sizes[0][0]
    for s, (w, _h) in zip(slices, sizes):
        if w != width:
            raise CompositionError(
                f"slice {s.index} width {w}px differs from first slice width {width}px",
                stage="compose",
            )
    total_h = sum(h for _w, h in sizes)

    canvas = Image.new("RGBA", (width, total_h), BACKGROUND)
    top = 0
    for s, (_w, h) in zip(slices, sizes):
        im = _open(s)
        try:
            rgba = im.convert("RGBA")
            canvas.alpha_composite(rgba, dest=(0, top))
            rgba.close()
        except OSError as e:
            raise CompositionError(f"slice {s.index} cannot be decoded: {e}", stage="compose", original=e) from e
        finally:
            im.close()
        top += h

    logger.debug("[snapshot] composed %d slices -> %dx%d px", len(slices), width, total_h)
    return canvas


def save_image(image: Image.Image, path: str) -> str:
    """PNG 无损写出；临时文件 + os.replace 保证不留半成品。"""
    tmp = f"{path}.part"
    try:
        image.save(tmp, format="PNG")
        os.replace(tmp, path)
    except OSError as e:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise CompositionError(f"cannot write {path}: {e}", stage="compose", target=path, original=e) from e
    return path
