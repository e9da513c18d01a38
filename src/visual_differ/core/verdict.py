"""通过/失败判定与汇总统计。"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from visual_differ.core.models import ComparisonResult, DirectorySummary, FileMatchResult, ScannedFile

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def calculate_exit_code(results: Sequence[ComparisonResult], baseline_only: Sequence[ScannedFile]) -> int:
    """任一对存在差异或有截图被删除即失败；新增截图不影响结论。"""

    if baseline_only or any(result.has_difference for result in results):
        return EXIT_FAILURE
    return EXIT_SUCCESS


def summarize(
    results: Sequence[ComparisonResult],
    matches: FileMatchResult,
    report_path: Optional[Path] = None,
) -> DirectorySummary:
    with_differences = sum(1 for result in results if result.has_difference)
    return DirectorySummary(
        total_images=len(results) + len(matches.baseline_only) + len(matches.candidate_only),
        with_differences=with_differences,
        without_differences=len(results) - with_differences,
        removed_count=len(matches.baseline_only),
        added_count=len(matches.candidate_only),
        exit_code=calculate_exit_code(results, matches.baseline_only),
        report_path=report_path,
    )
