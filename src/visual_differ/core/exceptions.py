"""项目内使用的自定义异常定义。

所有异常都必须能被 pickle，以便跨进程池边界原样抛出。
"""

from __future__ import annotations

from pathlib import Path


class VisualDifferError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(VisualDifferError):
    """配置不合法时抛出。"""


class DirectoryAccessError(VisualDifferError):
    """基线或候选目录不存在、不是目录或无法读取。"""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"无法读取目录: {self.path} ({self.reason})"


class ImageDecodeError(VisualDifferError):
    """配对中的某一侧图片无法解码为 PNG。"""

    def __init__(self, side: str, path: Path, reason: str) -> None:
        super().__init__(side, path, reason)
        self.side = side
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"无法解码 {self.side} 图片: {self.path} ({self.reason})"
