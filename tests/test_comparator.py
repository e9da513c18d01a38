"""逐像素差异计算与差异产物输出测试。"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from visual_differ.core.config import DiffConfig, OutputConfig
from visual_differ.core.exceptions import InvalidConfigurationError
from visual_differ.core.models import Different, Dimensions, DimensionMismatch, Identical, LoadedImagePair
from visual_differ.core.output_manager import OutputManager
from visual_differ.processing.comparator import (
    MAX_YIQ_DELTA,
    color_delta,
    compare_pair,
    compute_diff,
    record_dimension_mismatch,
    validate_diff_config,
)


def solid(width: int, height: int, rgba: tuple[int, int, int, int]) -> np.ndarray:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[...] = rgba
    return pixels


def make_manager(tmp_path: Path) -> OutputManager:
    manager = OutputManager(OutputConfig(output_dir=tmp_path / "output"))
    manager.ensure_output_dir()
    return manager


def make_loaded(
    manager: OutputManager,
    baseline: np.ndarray,
    candidate: np.ndarray,
    name: str = "x.png",
) -> LoadedImagePair:
    height, width = baseline.shape[:2]
    mismatch = None
    if baseline.shape != candidate.shape:
        mismatch = DimensionMismatch(
            baseline=Dimensions(width, height),
            candidate=Dimensions(candidate.shape[1], candidate.shape[0]),
        )
    return LoadedImagePair(
        name=name,
        width=width,
        height=height,
        baseline_pixels=baseline,
        candidate_pixels=candidate,
        outputs=manager.derive_paths(name),
        dimension_mismatch=mismatch,
    )


def test_color_delta_black_on_white_is_below_maximum() -> None:
    white = solid(1, 1, (255, 255, 255, 255))
    black = solid(1, 1, (0, 0, 0, 255))

    delta = color_delta(white, black)

    assert delta.shape == (1, 1)
    assert 0 < delta[0, 0] < MAX_YIQ_DELTA


def test_color_delta_transparent_pixel_blends_with_white() -> None:
    transparent_black = solid(1, 1, (0, 0, 0, 0))
    white = solid(1, 1, (255, 255, 255, 255))

    assert color_delta(transparent_black, white)[0, 0] == pytest.approx(0.0)


def test_identical_images_write_nothing(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    pixels = solid(10, 10, (40, 80, 120, 255))

    result = compare_pair(make_loaded(manager, pixels, pixels.copy()), DiffConfig(), manager)

    assert result.outcome == Identical()
    assert result.has_difference is False
    assert result.diff_percentage == 0
    assert result.output_paths is None
    assert list(manager.output_dir.iterdir()) == []


def test_differing_pixels_are_counted_and_written(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    baseline = solid(10, 10, (255, 255, 255, 255))
    candidate = baseline.copy()
    candidate[0, :7] = (0, 0, 0, 255)

    result = compare_pair(make_loaded(manager, baseline, candidate), DiffConfig(), manager)

    assert isinstance(result.outcome, Different)
    assert result.outcome.diff_pixels == 7
    assert result.diff_percentage == pytest.approx(7.0)
    assert result.has_difference is True

    paths = result.output_paths
    assert paths is not None and paths.diff is not None
    assert sorted(p.name for p in manager.output_dir.iterdir()) == [
        "x-baseline.png",
        "x-candidate.png",
        "x-diff.png",
    ]

    with Image.open(paths.diff) as diff_image:
        assert diff_image.size == (10, 10)
        assert diff_image.getpixel((0, 0)) == (255, 0, 0, 255)
        # 未变化区域为淡化后的基线（白色）。
        assert diff_image.getpixel((9, 9)) == (255, 255, 255, 255)

    with Image.open(paths.candidate) as candidate_copy:
        assert np.array_equal(np.array(candidate_copy.convert("RGBA")), candidate)


def test_small_difference_below_default_threshold_is_ignored() -> None:
    baseline = solid(4, 4, (200, 200, 200, 255))
    candidate = solid(4, 4, (201, 200, 200, 255))

    mask = compute_diff(baseline, candidate, DiffConfig())

    assert mask.diff_pixels == 0
    assert mask.percentage == 0


def test_threshold_zero_counts_any_channel_change() -> None:
    baseline = solid(4, 4, (200, 200, 200, 255))
    candidate = baseline.copy()
    candidate[2, 3] = (200, 200, 200, 254)

    mask = compute_diff(baseline, candidate, DiffConfig(threshold=0.0))

    assert mask.diff_pixels == 1
    assert mask.percentage == pytest.approx(100 / 16)


def test_threshold_one_counts_nothing() -> None:
    baseline = solid(3, 3, (255, 255, 255, 255))
    candidate = solid(3, 3, (0, 0, 0, 255))

    mask = compute_diff(baseline, candidate, DiffConfig(threshold=1.0))

    assert mask.diff_pixels == 0


def test_diff_mask_mode_leaves_unchanged_pixels_transparent() -> None:
    baseline = solid(2, 1, (255, 255, 255, 255))
    candidate = baseline.copy()
    candidate[0, 1] = (0, 0, 0, 255)

    mask = compute_diff(baseline, candidate, DiffConfig(diff_mask=True, diff_color=(0, 255, 0)))

    assert tuple(mask.image[0, 0]) == (0, 0, 0, 0)
    assert tuple(mask.image[0, 1]) == (0, 255, 0, 255)


def test_zero_area_images_report_zero_percentage() -> None:
    empty = np.zeros((0, 0, 4), dtype=np.uint8)

    mask = compute_diff(empty, empty.copy(), DiffConfig())

    assert mask.total_pixels == 0
    assert mask.percentage == 0.0


def test_compare_pair_rejects_mismatched_pair(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    loaded = make_loaded(manager, solid(2, 2, (0, 0, 0, 255)), solid(3, 2, (0, 0, 0, 255)))

    with pytest.raises(ValueError):
        compare_pair(loaded, DiffConfig(), manager)


def test_dimension_mismatch_writes_both_sides_without_diff(tmp_path: Path) -> None:
    manager = make_manager(tmp_path)
    loaded = make_loaded(manager, solid(10, 10, (0, 0, 0, 255)), solid(10, 12, (0, 0, 0, 255)), "page.png")

    result = record_dimension_mismatch(loaded, manager)

    assert isinstance(result.outcome, DimensionMismatch)
    assert result.has_difference is True
    assert result.diff_percentage == 100.0
    assert result.output_paths is not None and result.output_paths.diff is None
    assert sorted(p.name for p in manager.output_dir.iterdir()) == ["page-baseline.png", "page-candidate.png"]


@pytest.mark.parametrize(
    "config",
    [
        DiffConfig(threshold=-0.1),
        DiffConfig(threshold=1.5),
        DiffConfig(alpha=2.0),
        DiffConfig(diff_color=(256, 0, 0)),
    ],
)
def test_invalid_diff_config_is_rejected(config: DiffConfig) -> None:
    with pytest.raises(InvalidConfigurationError):
        validate_diff_config(config)
