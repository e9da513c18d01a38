"""对比流水线：扫描匹配、逐对加载比较、判定结论并生成报告。"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional

from visual_differ.core.config import CompareConfig, DiffConfig, OutputConfig
from visual_differ.core.exceptions import InvalidConfigurationError
from visual_differ.core.models import ComparisonResult, DirectorySummary, FileMatchResult
from visual_differ.core.output_manager import OutputManager
from visual_differ.core.progress import ProgressUpdate
from visual_differ.core.report import build_report_data, write_csv_report, write_html_report
from visual_differ.core.scanner import match_files
from visual_differ.core.verdict import summarize
from visual_differ.processing.comparator import validate_diff_config
from visual_differ.processing.worker import ComparisonTask, run_task

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def compare_directories(
    baseline_dir: Path,
    candidate_dir: Path,
    output_dir: Path,
    threshold: Optional[float] = None,
) -> DirectorySummary:
    """以默认配置比较两个目录，可选覆盖灵敏度阈值。"""

    diff = DiffConfig() if threshold is None else DiffConfig(threshold=threshold)
    config = CompareConfig(
        baseline_dir=Path(baseline_dir),
        candidate_dir=Path(candidate_dir),
        output=OutputConfig(output_dir=Path(output_dir)),
        diff=diff,
    )
    return run_comparison(config)


def run_comparison(config: CompareConfig, progress_callback: ProgressCallback = None) -> DirectorySummary:
    """执行一次完整的目录对比。

    目录不可读或图片解码失败时直接抛出，不生成报告。
    """

    validate_diff_config(config.diff)
    if config.max_workers < 1:
        raise InvalidConfigurationError(f"并发进程数必须大于 0: {config.max_workers}")

    LOGGER.info("开始扫描基线目录 %s 与候选目录 %s", config.baseline_dir, config.candidate_dir)
    matches = match_files(config.baseline_dir, config.candidate_dir)
    total = len(matches.matched)
    LOGGER.info(
        "匹配 %d 对，删除 %d 个，新增 %d 个",
        total,
        len(matches.baseline_only),
        len(matches.candidate_only),
    )

    output_manager = OutputManager(config.output)
    output_manager.ensure_output_dir()

    tasks = [ComparisonTask(pair=pair, diff=config.diff, output_manager=output_manager) for pair in matches.matched]
    _emit_progress(progress_callback, 0, total, "开始逐对比较" if tasks else "没有需要比较的图片")

    if config.max_workers <= 1 or len(tasks) <= 1:
        results = _run_sequential(tasks, progress_callback)
    else:
        results = _run_parallel(tasks, config.max_workers, progress_callback)

    summary = _write_reports(results, matches, output_manager)
    LOGGER.info(
        "对比完成：差异 %d，相同 %d，删除 %d，新增 %d，退出码 %d",
        summary.with_differences,
        summary.without_differences,
        summary.removed_count,
        summary.added_count,
        summary.exit_code,
    )
    return summary


def _run_sequential(tasks: list[ComparisonTask], progress_callback: ProgressCallback) -> list[ComparisonResult]:
    results: list[ComparisonResult] = []
    for task in tasks:
        results.append(run_task(task))
        _emit_progress(progress_callback, len(results), len(tasks), f"完成 {task.pair.name}")
    return results


def _run_parallel(
    tasks: list[ComparisonTask],
    max_workers: int,
    progress_callback: ProgressCallback,
) -> list[ComparisonResult]:
    collected: dict[int, ComparisonResult] = {}

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_map = {executor.submit(run_task, task): index for index, task in enumerate(tasks)}
        for future in as_completed(future_map):
            index = future_map[future]
            try:
                collected[index] = future.result()
            except Exception:
                LOGGER.error("%s 比较失败，取消剩余任务", tasks[index].pair.name)
                for pending in future_map:
                    pending.cancel()
                raise
            _emit_progress(progress_callback, len(collected), len(tasks), f"完成 {tasks[index].pair.name}")

    # 按匹配顺序输出，保证与串行执行的报告完全一致。
    return [collected[index] for index in range(len(tasks))]


def _write_reports(
    results: list[ComparisonResult],
    matches: FileMatchResult,
    output_manager: OutputManager,
) -> DirectorySummary:
    data = build_report_data(results, matches.baseline_only, matches.candidate_only)
    report_path = write_html_report(data, output_manager.report_path())

    csv_path = output_manager.csv_report_path()
    if csv_path is not None:
        write_csv_report(data, results, csv_path)

    return summarize(results, matches, report_path=report_path)


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    message: Optional[str] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(total=total, completed=completed, message=message))
