"""命令行入口。"""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

import typer
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from visual_differ.core.config import DEFAULT_THRESHOLD, CompareConfig, DiffConfig, OutputConfig
from visual_differ.core.exceptions import InvalidConfigurationError, VisualDifferError
from visual_differ.core.progress import ProgressUpdate
from visual_differ.core.verdict import EXIT_FAILURE, EXIT_SUCCESS
from visual_differ.processing.pipeline import run_comparison
from visual_differ.utils.colors import parse_color
from visual_differ.utils.logging import setup_logging

app = typer.Typer(help="比较两个目录中的 PNG 截图并生成可视化差异报告。", add_completion=False)


def _version_callback(value: bool) -> None:
    if not value:
        return
    try:
        typer.echo(version("visual-differ"))
    except PackageNotFoundError:
        typer.echo("unknown")
    raise typer.Exit()


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            task_id = progress.add_task("比较截图", total=update.total)
        progress.update(task_id, completed=update.completed)

    return callback


def _check_output_dir(output_dir: Path) -> None:
    # 目录本身在输入目录扫描成功后才由流水线创建。
    if output_dir.exists() and not output_dir.is_dir():
        raise InvalidConfigurationError(f"输出路径已存在且不是目录: {output_dir}")


@app.command()
def compare(  # noqa: PLR0913
    baseline_dir: Path = typer.Argument(..., help="基线（期望）截图目录"),
    candidate_dir: Path = typer.Argument(..., help="候选（实际）截图目录"),
    output_dir: Path = typer.Argument(..., help="差异图片与报告的输出目录，不存在时自动创建"),
    threshold: float = typer.Option(DEFAULT_THRESHOLD, "--threshold", "-t", help="差异灵敏度 0~1，越小越敏感"),
    diff_color: str = typer.Option("#ff0000", "--diff-color", help="差异像素颜色 (HEX 或 r,g,b)"),
    diff_mask: bool = typer.Option(False, "--diff-mask", help="差异图中未变化区域输出为透明"),
    max_workers: int = typer.Option(1, "--workers", "-w", help="并发进程数量"),
    write_csv: bool = typer.Option(True, "--csv/--no-csv", help="是否同时生成 report.csv"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
    show_version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="显示版本号并退出"
    ),
) -> None:
    """比较基线与候选目录，存在差异或删除的截图时以退出码 1 结束。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    baseline = baseline_dir.expanduser().resolve()
    candidate = candidate_dir.expanduser().resolve()
    output = output_dir.expanduser().resolve()

    try:
        _check_output_dir(output)
        config = CompareConfig(
            baseline_dir=baseline,
            candidate_dir=candidate,
            output=OutputConfig(output_dir=output, csv_report_filename="report.csv" if write_csv else None),
            diff=DiffConfig(threshold=threshold, diff_color=parse_color(diff_color), diff_mask=diff_mask),
            max_workers=max_workers,
        )

        typer.echo("Comparing screenshots...")
        typer.echo(f"  Baseline: {baseline}")
        typer.echo(f"  Candidate: {candidate}")
        typer.echo(f"  Output: {output}")

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
        )
        with progress:
            summary = run_comparison(config, progress_callback=_build_progress_callback(progress))
    except (VisualDifferError, OSError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc

    typer.echo("Results:")
    typer.echo(f"  Total images: {summary.total_images}")
    typer.echo(f"  With differences: {summary.with_differences}")
    typer.echo(f"  Identical: {summary.without_differences}")
    typer.echo(f"  Removed: {summary.removed_count}")
    typer.echo(f"  Added: {summary.added_count}")

    if summary.exit_code == EXIT_SUCCESS:
        typer.echo("All checks passed!")
    else:
        typer.echo("Visual differences detected.")
    typer.echo(f"Report generated: {summary.report_path}")

    raise typer.Exit(code=summary.exit_code)


if __name__ == "__main__":
    app()
