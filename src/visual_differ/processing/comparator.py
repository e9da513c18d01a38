"""逐像素差异计算与差异产物输出。

两个像素的差异按 YIQ 色彩空间的加权距离度量：带透明度的像素先与白色背景混合，
距离超过 ``35215 * threshold ** 2`` 即判定为差异像素（35215 为 YIQ 距离的上界）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from visual_differ.core.config import DiffConfig
from visual_differ.core.exceptions import InvalidConfigurationError
from visual_differ.core.models import (
    ComparisonResult,
    DerivedPaths,
    Different,
    Identical,
    LoadedImagePair,
)
from visual_differ.core.output_manager import OutputManager

LOGGER = logging.getLogger(__name__)

MAX_YIQ_DELTA = 35215.0


@dataclass(slots=True)
class DiffMask:
    """差异计算的原始产出。"""

    image: np.ndarray
    diff_pixels: int
    total_pixels: int

    @property
    def percentage(self) -> float:
        if self.total_pixels == 0:
            return 0.0
        return 100.0 * self.diff_pixels / self.total_pixels


def validate_diff_config(config: DiffConfig) -> None:
    if not 0.0 <= config.threshold <= 1.0:
        raise InvalidConfigurationError(f"阈值必须位于 [0, 1]: {config.threshold}")
    if not 0.0 <= config.alpha <= 1.0:
        raise InvalidConfigurationError(f"alpha 必须位于 [0, 1]: {config.alpha}")
    if len(config.diff_color) != 3 or any(not 0 <= channel <= 255 for channel in config.diff_color):
        raise InvalidConfigurationError(f"差异颜色必须是 0-255 的 RGB 三元组: {config.diff_color}")


def _blend_with_white(pixels: np.ndarray) -> np.ndarray:
    rgb = pixels[..., :3].astype(np.float64)
    alpha = pixels[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgb - 255.0) * alpha


def _rgb2y(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _rgb2i(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.59597799 - rgb[..., 1] * 0.27417610 - rgb[..., 2] * 0.32180189


def _rgb2q(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.21147017 - rgb[..., 1] * 0.52261711 + rgb[..., 2] * 0.31114694


def color_delta(baseline: np.ndarray, candidate: np.ndarray) -> np.ndarray:
    """计算两组 RGBA 像素逐点的 YIQ 加权平方距离，返回 (height, width) 数组。"""

    first = _blend_with_white(baseline)
    second = _blend_with_white(candidate)

    y = _rgb2y(first) - _rgb2y(second)
    i = _rgb2i(first) - _rgb2i(second)
    q = _rgb2q(first) - _rgb2q(second)
    return 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q


def compute_diff(baseline: np.ndarray, candidate: np.ndarray, config: DiffConfig) -> DiffMask:
    """对两张等尺寸图片计算差异掩码与差异像素数。"""

    if baseline.shape != candidate.shape:
        raise ValueError(f"像素数组尺寸不一致: {baseline.shape} != {candidate.shape}")

    height, width = baseline.shape[:2]

    if config.threshold == 0:
        # 阈值为 0 时任何通道的变化都算差异。
        different = np.any(baseline != candidate, axis=-1)
    else:
        max_delta = MAX_YIQ_DELTA * config.threshold * config.threshold
        different = color_delta(baseline, candidate) > max_delta

    image = _render_diff_image(baseline, different, config)
    return DiffMask(image=image, diff_pixels=int(np.count_nonzero(different)), total_pixels=width * height)


def _render_diff_image(baseline: np.ndarray, different: np.ndarray, config: DiffConfig) -> np.ndarray:
    height, width = baseline.shape[:2]
    output = np.zeros((height, width, 4), dtype=np.uint8)

    if not config.diff_mask:
        # 未变化区域绘制为淡化的基线灰度图。
        luma = _rgb2y(baseline[..., :3].astype(np.float64))
        weight = config.alpha * baseline[..., 3].astype(np.float64) / 255.0
        gray = np.clip(255.0 + (luma - 255.0) * weight, 0, 255).astype(np.uint8)
        output[..., 0] = gray
        output[..., 1] = gray
        output[..., 2] = gray
        output[..., 3] = 255

    output[different] = (*config.diff_color, 255)
    return output


def compare_pair(pair: LoadedImagePair, config: DiffConfig, output_manager: OutputManager) -> ComparisonResult:
    """比较尺寸一致的图片对。

    仅在存在差异时写出 diff、baseline、candidate 三个文件；无差异时删除上次运行遗留的同名产物。
    """

    if pair.dimension_mismatch is not None:
        raise ValueError(f"{pair.name} 尺寸不一致，不能逐像素比较")

    mask = compute_diff(pair.baseline_pixels, pair.candidate_pixels, config)
    outputs = pair.outputs
    if mask.diff_pixels == 0:
        LOGGER.debug("%s 无差异", pair.name)
        output_manager.discard(outputs.baseline, outputs.candidate, outputs.diff)
        return ComparisonResult(name=pair.name, outcome=Identical())

    output_manager.save_pixels(mask.image, outputs.diff)
    output_manager.save_pixels(pair.baseline_pixels, outputs.baseline)
    output_manager.save_pixels(pair.candidate_pixels, outputs.candidate)

    LOGGER.debug("%s 差异像素 %d 个 (%.2f%%)", pair.name, mask.diff_pixels, mask.percentage)
    return ComparisonResult(
        name=pair.name,
        outcome=Different(percentage=mask.percentage, diff_pixels=mask.diff_pixels),
        output_paths=outputs,
    )


def record_dimension_mismatch(pair: LoadedImagePair, output_manager: OutputManager) -> ComparisonResult:
    """尺寸不一致的图片对直接判定为 100% 差异，只写出两侧原图用于报告并排展示。"""

    mismatch = pair.dimension_mismatch
    if mismatch is None:
        raise ValueError(f"{pair.name} 尺寸一致，应使用逐像素比较")

    LOGGER.warning("%s 尺寸不一致: 基线 %s，候选 %s", pair.name, mismatch.baseline, mismatch.candidate)
    output_manager.discard(pair.outputs.diff)
    output_manager.save_pixels(pair.baseline_pixels, pair.outputs.baseline)
    output_manager.save_pixels(pair.candidate_pixels, pair.outputs.candidate)

    return ComparisonResult(
        name=pair.name,
        outcome=mismatch,
        output_paths=DerivedPaths(baseline=pair.outputs.baseline, candidate=pair.outputs.candidate, diff=None),
    )
