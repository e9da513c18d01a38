"""文件扫描与按名称匹配逻辑。"""

from __future__ import annotations

import locale
import logging
import os
from pathlib import Path

from visual_differ.core.exceptions import DirectoryAccessError
from visual_differ.core.models import FileMatchResult, MatchedPair, ScannedFile

LOGGER = logging.getLogger(__name__)

IMAGE_EXTENSION = ".png"


def _sort_key(name: str) -> tuple[str, str]:
    # 先按当前 locale 排序，原始名称兜底，保证结果确定。
    return locale.strxfrm(name.casefold()), name


def scan_directory(directory: Path) -> list[ScannedFile]:
    """列出单层目录中的 PNG 文件（不递归，不跟随符号链接）。"""

    directory = Path(directory).resolve()
    try:
        with os.scandir(directory) as entries:
            names = [entry.name for entry in entries if _is_eligible(entry)]
    except OSError as exc:
        raise DirectoryAccessError(directory, exc.strerror or str(exc)) from exc

    names.sort(key=_sort_key)
    return [ScannedFile(name=name, path=directory / name) for name in names]


def _is_eligible(entry: os.DirEntry) -> bool:
    if not entry.name.lower().endswith(IMAGE_EXTENSION):
        return False
    try:
        return entry.is_file(follow_symlinks=False)
    except OSError:
        LOGGER.debug("跳过无法访问的条目: %s", entry.path)
        return False


def match_files(baseline_dir: Path, candidate_dir: Path) -> FileMatchResult:
    """扫描两个目录并按文件名划分为 matched / baseline_only / candidate_only。"""

    baseline_files = scan_directory(baseline_dir)
    candidate_files = scan_directory(candidate_dir)

    baseline_lookup = {item.name: item.path for item in baseline_files}
    candidate_lookup = {item.name: item.path for item in candidate_files}

    matched: list[MatchedPair] = []
    baseline_only: list[ScannedFile] = []

    for item in baseline_files:
        candidate_path = candidate_lookup.get(item.name)
        if candidate_path is None:
            baseline_only.append(item)
            continue
        matched.append(MatchedPair(name=item.name, baseline_path=item.path, candidate_path=candidate_path))

    candidate_only = [item for item in candidate_files if item.name not in baseline_lookup]

    LOGGER.debug(
        "匹配 %d 对，仅基线 %d 个，仅候选 %d 个",
        len(matched),
        len(baseline_only),
        len(candidate_only),
    )
    return FileMatchResult(matched=matched, baseline_only=baseline_only, candidate_only=candidate_only)
