"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np


@dataclass(frozen=True, slots=True)
class ScannedFile:
    """扫描阶段在目录中找到的 PNG 文件。"""

    name: str
    path: Path


@dataclass(frozen=True, slots=True)
class MatchedPair:
    """基线与候选目录中同名（区分大小写）的一对文件。"""

    name: str
    baseline_path: Path
    candidate_path: Path


@dataclass(slots=True)
class FileMatchResult:
    """文件匹配的三个互不相交的分组。"""

    matched: list[MatchedPair]
    baseline_only: list[ScannedFile]
    candidate_only: list[ScannedFile]


@dataclass(frozen=True, slots=True)
class Dimensions:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True, slots=True)
class DerivedPaths:
    """差异产物在输出目录中的路径。"""

    baseline: Path
    candidate: Path
    diff: Optional[Path]


@dataclass(frozen=True, slots=True)
class Identical:
    """阈值内没有任何差异像素。"""


@dataclass(frozen=True, slots=True)
class Different:
    """存在差异像素。"""

    percentage: float
    diff_pixels: int


@dataclass(frozen=True, slots=True)
class DimensionMismatch:
    """两侧尺寸不一致，无法逐像素比较。"""

    baseline: Dimensions
    candidate: Dimensions


ComparisonOutcome = Union[Identical, Different, DimensionMismatch]


@dataclass(slots=True)
class LoadedImagePair:
    """解码完成的图片对，像素为 (height, width, 4) 的 RGBA uint8 数组。

    width/height 始终取基线图片的尺寸。
    """

    name: str
    width: int
    height: int
    baseline_pixels: np.ndarray
    candidate_pixels: np.ndarray
    outputs: DerivedPaths
    dimension_mismatch: Optional[DimensionMismatch] = None


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """单个匹配对的对比结果。

    output_paths 仅在实际写出了差异产物时存在；尺寸不一致时 diff 图不会生成。
    """

    name: str
    outcome: ComparisonOutcome
    output_paths: Optional[DerivedPaths] = None

    @property
    def has_difference(self) -> bool:
        return not isinstance(self.outcome, Identical)

    @property
    def diff_percentage(self) -> float:
        if isinstance(self.outcome, Different):
            return self.outcome.percentage
        if isinstance(self.outcome, DimensionMismatch):
            return 100.0
        return 0.0


@dataclass(frozen=True, slots=True)
class DirectorySummary:
    """一次对比运行的汇总，供 CLI 输出与决定退出码。"""

    total_images: int
    with_differences: int
    without_differences: int
    removed_count: int
    added_count: int
    exit_code: int
    report_path: Optional[Path] = None
