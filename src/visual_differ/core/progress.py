"""进度更新的数据模型。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class ProgressUpdate:
    """目录对比过程中，每完成一个匹配对发出一次。"""

    total: int
    completed: int
    message: Optional[str] = None
