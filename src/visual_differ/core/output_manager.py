"""输出目录、派生文件命名与 PNG 写入模块。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from visual_differ.core.config import OutputConfig
from visual_differ.core.exceptions import VisualDifferError
from visual_differ.core.models import DerivedPaths

LOGGER = logging.getLogger(__name__)

BASELINE_SUFFIX = "-baseline"
CANDIDATE_SUFFIX = "-candidate"
DIFF_SUFFIX = "-diff"


def derived_file_name(name: str, suffix: str) -> str:
    """在原文件名的主干与扩展名之间插入后缀，如 home.png -> home-diff.png。"""

    original = Path(name)
    return f"{original.stem}{suffix}{original.suffix}"


class ImageWriteError(VisualDifferError):
    """输出写入失败。"""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"写入文件失败: {self.path} ({self.reason})"


class OutputManager:
    """负责输出目录、派生文件路径与图像写入。

    同一个匹配对的派生文件名由原文件名唯一确定，多进程并发写入无需加锁。
    """

    def __init__(self, config: OutputConfig) -> None:
        self.config = config
        self.output_dir = Path(config.output_dir).resolve()

    def ensure_output_dir(self) -> None:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ImageWriteError(self.output_dir, exc.strerror or str(exc)) from exc

    def derive_paths(self, name: str) -> DerivedPaths:
        """根据原文件名计算三个派生文件路径，不做任何 I/O。"""

        return DerivedPaths(
            baseline=self.output_dir / derived_file_name(name, BASELINE_SUFFIX),
            candidate=self.output_dir / derived_file_name(name, CANDIDATE_SUFFIX),
            diff=self.output_dir / derived_file_name(name, DIFF_SUFFIX),
        )

    def report_path(self) -> Path:
        return self.output_dir / self.config.report_filename

    def csv_report_path(self) -> Optional[Path]:
        if not self.config.csv_report_filename:
            return None
        return self.output_dir / self.config.csv_report_filename

    def discard(self, *paths: Optional[Path]) -> None:
        """删除上一次运行遗留的派生文件，不存在时忽略。"""

        for path in paths:
            if path is None:
                continue
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise ImageWriteError(path, exc.strerror or str(exc)) from exc

    def save_pixels(self, pixels: np.ndarray, destination: Path) -> None:
        """将 RGBA 像素数组编码为 PNG 写入磁盘。"""

        image = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
        try:
            image.save(destination, format="PNG", optimize=True)
        except OSError as exc:
            raise ImageWriteError(destination, exc.strerror or str(exc)) from exc
        finally:
            image.close()
        LOGGER.debug("已写入 %s", destination.name)
