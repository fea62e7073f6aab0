from __future__ import annotations

import numpy as np
import pytest

from covjson.core.search import index_of_exact, index_of_nearest, indices_of_nearest


@pytest.mark.parametrize(
    ("x", "expected"),
    [
        (12, (1, 2)),
        (20, (2, 2)),
        (0, (0, 0)),
        (-5, (0, 0)),
        (35, (3, 3)),
        (29.9, (2, 3)),
    ],
)
def test_indices_of_nearest_ascending(x: float, expected: tuple[int, int]) -> None:
    assert indices_of_nearest([0, 10, 20, 30], x) == expected


@pytest.mark.parametrize(
    ("x", "expected"),
    [
        (12, (1, 2)),
        (20, (1, 1)),
        (40, (0, 0)),
        (-1, (3, 3)),
    ],
)
def test_indices_of_nearest_descending(x: float, expected: tuple[int, int]) -> None:
    assert indices_of_nearest([30, 20, 10, 0], x) == expected


def test_indices_of_nearest_single_value() -> None:
    assert indices_of_nearest([5], 1) == (0, 0)
    assert indices_of_nearest([5], 9) == (0, 0)


def test_indices_of_nearest_empty() -> None:
    with pytest.raises(ValueError):
        indices_of_nearest([], 1)


@pytest.mark.parametrize(
    ("x", "expected"),
    [(12, 1), (16, 2), (15, 1), (-100, 0), (100, 3), (30, 3)],
)
def test_index_of_nearest(x: float, expected: int) -> None:
    assert index_of_nearest([0, 10, 20, 30], x) == expected


def test_index_of_nearest_descending_tie() -> None:
    # tie between index 1 (20) and 2 (10) resolves to the lower index
    assert index_of_nearest([30, 20, 10, 0], 15) == 1


def test_index_of_exact_numeric() -> None:
    values = np.array([0.0, 10.0, 20.0, 30.0])
    assert index_of_exact(values, 20) == 2
    assert index_of_exact(values, 99) == -1
    assert index_of_exact(values, "20") == -1


def test_index_of_exact_strings() -> None:
    values = np.array(["a", "b", "c"], dtype=object)
    assert index_of_exact(values, "c") == 2
    assert index_of_exact(values, "d") == -1


@pytest.mark.parametrize(
    ("values", "x", "expected"),
    [
        ([0, 0, 10, 20, 30], 12, (2, 3)),
        ([0, 0, 10, 20, 30], 22, (3, 4)),
        ([0, 10, 10, 20], 15, (2, 3)),
        ([30, 20, 20, 10, 10], 15, (2, 3)),
        ([5, 5, 5], 1, (0, 0)),
    ],
)
def test_indices_of_nearest_repeated_values(
    values: list[float], x: float, expected: tuple[int, int]
) -> None:
    assert indices_of_nearest(values, x) == expected


def test_index_of_nearest_repeated_leading_value() -> None:
    assert index_of_nearest([0, 0, 10, 20, 30], 12) == 2
    assert index_of_nearest([30, 30, 20, 10], 12) == 3
