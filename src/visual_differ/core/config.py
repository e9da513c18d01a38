"""对比任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_THRESHOLD = 0.1


@dataclass(slots=True)
class DiffConfig:
    """像素对比与差异图渲染配置。"""

    threshold: float = DEFAULT_THRESHOLD
    alpha: float = 0.1  # 差异图中未变化像素的淡化灰度透明度
    diff_color: Tuple[int, int, int] = (255, 0, 0)
    diff_mask: bool = False  # True 时未变化像素输出为全透明


@dataclass(slots=True)
class OutputConfig:
    """输出目录与报告文件名配置。"""

    output_dir: Path
    report_filename: str = "index.html"
    csv_report_filename: Optional[str] = "report.csv"


@dataclass(slots=True)
class CompareConfig:
    """单次目录对比任务的配置集合。"""

    baseline_dir: Path
    candidate_dir: Path
    output: OutputConfig
    diff: DiffConfig = field(default_factory=DiffConfig)
    max_workers: int = 1
