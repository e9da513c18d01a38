"""PNG 图片对的加载与尺寸校验。"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from visual_differ.core.exceptions import ImageDecodeError
from visual_differ.core.models import Dimensions, DimensionMismatch, LoadedImagePair, MatchedPair
from visual_differ.core.output_manager import OutputManager

LOGGER = logging.getLogger(__name__)

BASELINE = "baseline"
CANDIDATE = "candidate"

SIXTEEN_BIT_GRAY_MODES = {"I", "I;16", "I;16B", "I;16L"}


def decode_png(path: Path, side: str) -> np.ndarray:
    """解码单张 PNG，返回 (height, width, 4) 的 RGBA uint8 数组。

    调色板、灰度等模式统一转换为 RGBA；非 PNG 内容视为解码失败。
    """

    try:
        with Image.open(path) as img:
            if img.format != "PNG":
                raise ImageDecodeError(side, path, f"不是 PNG 文件（实际格式: {img.format}）")
            img.load()
            if img.mode in SIXTEEN_BIT_GRAY_MODES:
                return _gray16_to_rgba(np.asarray(img))
            rgba = img if img.mode == "RGBA" else img.convert("RGBA")
            return np.array(rgba, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        LOGGER.debug("无法解码 %s 图片 %s: %s", side, path, exc)
        raise ImageDecodeError(side, path, str(exc) or type(exc).__name__) from exc


def _gray16_to_rgba(samples: np.ndarray) -> np.ndarray:
    # 16 位灰度按比例缩放到 8 位；直接 convert 会把 255 以上的值全部截断为白色。
    gray = np.clip(np.rint(samples.astype(np.float64) / 257.0), 0, 255).astype(np.uint8)
    rgba = np.empty(gray.shape + (4,), dtype=np.uint8)
    rgba[..., 0] = gray
    rgba[..., 1] = gray
    rgba[..., 2] = gray
    rgba[..., 3] = 255
    return rgba


def load_image_pair(pair: MatchedPair, output_manager: OutputManager) -> LoadedImagePair:
    """加载匹配对的两侧图片。

    尺寸不一致不会报错，而是记录在 dimension_mismatch 中交由调用方决定；
    任一侧解码失败则抛出 ImageDecodeError。
    """

    baseline_pixels = decode_png(pair.baseline_path, BASELINE)
    candidate_pixels = decode_png(pair.candidate_path, CANDIDATE)

    baseline_height, baseline_width = baseline_pixels.shape[:2]
    candidate_height, candidate_width = candidate_pixels.shape[:2]

    mismatch = None
    if (baseline_width, baseline_height) != (candidate_width, candidate_height):
        mismatch = DimensionMismatch(
            baseline=Dimensions(baseline_width, baseline_height),
            candidate=Dimensions(candidate_width, candidate_height),
        )

    return LoadedImagePair(
        name=pair.name,
        width=baseline_width,
        height=baseline_height,
        baseline_pixels=baseline_pixels,
        candidate_pixels=candidate_pixels,
        outputs=output_manager.derive_paths(pair.name),
        dimension_mismatch=mismatch,
    )
