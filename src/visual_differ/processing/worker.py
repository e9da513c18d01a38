"""并发对比的工作单元。"""

from __future__ import annotations

from dataclasses import dataclass

from visual_differ.core.config import DiffConfig
from visual_differ.core.models import ComparisonResult, MatchedPair
from visual_differ.core.output_manager import OutputManager
from visual_differ.processing.comparator import compare_pair, record_dimension_mismatch
from visual_differ.processing.image_loader import load_image_pair


@dataclass(slots=True)
class ComparisonTask:
    """描述单个匹配对的对比任务，可跨进程传递。"""

    pair: MatchedPair
    diff: DiffConfig
    output_manager: OutputManager


def run_task(task: ComparisonTask) -> ComparisonResult:
    """加载并比较一个匹配对；解码失败的异常原样向上抛出。"""

    loaded = load_image_pair(task.pair, task.output_manager)
    if loaded.dimension_mismatch is not None:
        return record_dimension_mismatch(loaded, task.output_manager)
    return compare_pair(loaded, task.diff, task.output_manager)
