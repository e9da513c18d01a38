"""报告生成工具。

HTML 报告由单一的 ReportData 渲染而来，渲染函数本身不做 I/O；
所有图片引用只使用文件名，输出目录整体移动后报告依然可用。
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from visual_differ.core.models import (
    ComparisonResult,
    Different,
    DimensionMismatch,
    Identical,
    ScannedFile,
)
from visual_differ.core.output_manager import (
    BASELINE_SUFFIX,
    CANDIDATE_SUFFIX,
    DIFF_SUFFIX,
    derived_file_name,
)

LOGGER = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
REPORT_TEMPLATE = "report.html.j2"

HEADER = [
    "name",
    "status",
    "diff_percentage",
    "baseline_size",
    "candidate_size",
    "baseline_image",
    "candidate_image",
    "diff_image",
]


@dataclass(frozen=True, slots=True)
class DifferenceEntry:
    name: str
    diff_percentage: str
    baseline_image: str
    candidate_image: str
    diff_image: Optional[str]
    baseline_size: Optional[str] = None
    candidate_size: Optional[str] = None

    @property
    def dimension_mismatch(self) -> bool:
        return self.diff_image is None


@dataclass(frozen=True, slots=True)
class ReportData:
    """渲染报告所需的全部数据。"""

    passed: bool
    total_images: int
    diff_count: int
    identical_count: int
    removed_count: int
    added_count: int
    differences: list[DifferenceEntry]
    identical: list[str]
    removed: list[str]
    added: list[str]

    @property
    def status_text(self) -> str:
        return "PASSED" if self.passed else "FAILED"


def build_report_data(
    results: Sequence[ComparisonResult],
    baseline_only: Sequence[ScannedFile],
    candidate_only: Sequence[ScannedFile],
) -> ReportData:
    """将对比结果整理为报告数据，差异项在前、无差异项在后。"""

    differences: list[DifferenceEntry] = []
    identical: list[str] = []

    for result in results:
        outcome = result.outcome
        if isinstance(outcome, Identical):
            identical.append(result.name)
        elif isinstance(outcome, Different):
            differences.append(
                DifferenceEntry(
                    name=result.name,
                    diff_percentage=f"{outcome.percentage:.2f}",
                    baseline_image=_image_name(result, BASELINE_SUFFIX),
                    candidate_image=_image_name(result, CANDIDATE_SUFFIX),
                    diff_image=_image_name(result, DIFF_SUFFIX),
                )
            )
        elif isinstance(outcome, DimensionMismatch):
            differences.append(
                DifferenceEntry(
                    name=result.name,
                    diff_percentage=f"{result.diff_percentage:.2f}",
                    baseline_image=_image_name(result, BASELINE_SUFFIX),
                    candidate_image=_image_name(result, CANDIDATE_SUFFIX),
                    diff_image=None,
                    baseline_size=str(outcome.baseline),
                    candidate_size=str(outcome.candidate),
                )
            )
        else:
            raise TypeError(f"未知的对比结果类型: {outcome!r}")

    removed = [item.name for item in baseline_only]
    added = [item.name for item in candidate_only]

    return ReportData(
        passed=not differences and not removed,
        total_images=len(results) + len(removed) + len(added),
        diff_count=len(differences),
        identical_count=len(identical),
        removed_count=len(removed),
        added_count=len(added),
        differences=differences,
        identical=identical,
        removed=removed,
        added=added,
    )


def _image_name(result: ComparisonResult, suffix: str) -> str:
    paths = result.output_paths
    if paths is not None:
        path = {BASELINE_SUFFIX: paths.baseline, CANDIDATE_SUFFIX: paths.candidate, DIFF_SUFFIX: paths.diff}[suffix]
        if path is not None:
            return path.name
    return derived_file_name(result.name, suffix)


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
        keep_trailing_newline=True,
    )


def render_html_report(data: ReportData) -> str:
    """把报告数据渲染为静态 HTML 文本。"""

    return _environment().get_template(REPORT_TEMPLATE).render(report=data)


def write_html_report(data: ReportData, report_path: Path) -> Path:
    """写出 HTML 报告，覆盖已有文件。"""

    report_path.write_text(render_html_report(data), encoding="utf-8")
    LOGGER.info("报告已生成: %s", report_path)
    return report_path


def write_csv_report(data: ReportData, results: Sequence[ComparisonResult], report_path: Path) -> Path:
    """将每个文件的结论写入 CSV，方便流水线脚本解析。"""

    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for result in results:
            writer.writerow(_result_row(result))
        for name in data.removed:
            writer.writerow([name, "removed", "", "", "", "", "", ""])
        for name in data.added:
            writer.writerow([name, "added", "", "", "", "", "", ""])
    return report_path


def _result_row(result: ComparisonResult) -> list[str]:
    outcome = result.outcome
    if isinstance(outcome, Identical):
        return [result.name, "identical", _format_percentage(0.0), "", "", "", "", ""]
    if isinstance(outcome, Different):
        return [
            result.name,
            "different",
            _format_percentage(outcome.percentage),
            "",
            "",
            _image_name(result, BASELINE_SUFFIX),
            _image_name(result, CANDIDATE_SUFFIX),
            _image_name(result, DIFF_SUFFIX),
        ]
    if isinstance(outcome, DimensionMismatch):
        return [
            result.name,
            "dimension-mismatch",
            _format_percentage(result.diff_percentage),
            str(outcome.baseline),
            str(outcome.candidate),
            _image_name(result, BASELINE_SUFFIX),
            _image_name(result, CANDIDATE_SUFFIX),
            "",
        ]
    raise TypeError(f"未知的对比结果类型: {outcome!r}")


def _format_percentage(value: float) -> str:
    return f"{value:.4f}"
