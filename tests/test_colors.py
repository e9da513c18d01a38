"""颜色解析测试。"""

from __future__ import annotations

import pytest

from visual_differ.core.exceptions import InvalidConfigurationError
from visual_differ.utils.colors import parse_color


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("#ff0000", (255, 0, 0)),
        ("00ff00", (0, 255, 0)),
        ("#00f", (0, 0, 255)),
        ("12, 34, 56", (12, 34, 56)),
    ],
)
def test_parse_color_accepts_supported_formats(value: str, expected: tuple[int, int, int]) -> None:
    assert parse_color(value) == expected


@pytest.mark.parametrize("value", ["", "   ", "#12", "red", "300,0,0", "1,2"])
def test_parse_color_rejects_invalid_values(value: str) -> None:
    with pytest.raises(InvalidConfigurationError):
        parse_color(value)
