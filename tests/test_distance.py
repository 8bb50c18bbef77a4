"""Tests for the uniform and Jaccard distance matrices."""

from __future__ import annotations

import numpy as np
import pytest

from sockscope.distance import distance_for, jaccard_distance, uniform_distance


def test_uniform_distance_shape_and_values() -> None:
    matrix = uniform_distance(["a", "b", "c", "d"])

    assert matrix.shape == (4, 4)
    assert np.all(np.diag(matrix) == 0.0)
    off_diagonal = matrix[~np.eye(4, dtype=bool)]
    assert np.all(off_diagonal == 1.0)


def test_uniform_distance_empty() -> None:
    assert uniform_distance([]).tolist() == []


def test_uniform_distance_custom_value() -> None:
    matrix = uniform_distance(["a", "b"], value=0.5)
    assert matrix.tolist() == [[0.0, 0.5], [0.5, 0.0]]


def test_jaccard_identical_disjoint_and_empty() -> None:
    keyset_map = {
        "same1": ["t1", "t2"],
        "same2": ["t2", "t1"],
        "other": ["t9"],
        "empty1": [],
        "empty2": [],
    }
    matrix = jaccard_distance(keyset_map)

    assert matrix[0, 1] == pytest.approx(0.0)
    assert matrix[0, 2] == pytest.approx(1.0)
    # Two empty histories are incomparable, not identical
    assert matrix[3, 4] == pytest.approx(1.0)
    assert matrix[0, 3] == pytest.approx(1.0)


def test_jaccard_partial_overlap() -> None:
    matrix = jaccard_distance({"a": ["k1", "k2", "k3"], "b": ["k2", "k3", "k4"]})
    # |∩| = 2, |∪| = 4
    assert matrix[0, 1] == pytest.approx(0.5)


def test_jaccard_duplicate_keys_use_set_semantics() -> None:
    matrix = jaccard_distance({"a": ["k1", "k1", "k2"], "b": ["k1"]})
    assert matrix[0, 1] == pytest.approx(0.5)


def test_jaccard_symmetric_with_zero_diagonal() -> None:
    keyset_map = {
        "p": ["1", "2", "3"],
        "q": ["3", "4"],
        "r": [],
        "s": ["1", "4", "5", "6"],
    }
    matrix = jaccard_distance(keyset_map)

    assert np.array_equal(matrix, matrix.T)
    assert np.all(np.diag(matrix) == 0.0)
    assert np.all((matrix >= 0.0) & (matrix <= 1.0))


def test_jaccard_follows_map_order() -> None:
    matrix = jaccard_distance({"z": ["1"], "a": ["1"], "m": ["2"]})
    assert matrix[0, 1] == pytest.approx(0.0)
    assert matrix[0, 2] == pytest.approx(1.0)


def test_jaccard_empty_map() -> None:
    assert jaccard_distance({}).shape == (0, 0)


def test_distance_for_dispatch() -> None:
    keyset_map = {"a": ["1"], "b": ["1"]}
    assert distance_for("jaccard", keyset_map)[0, 1] == pytest.approx(0.0)
    assert distance_for("uniform", keyset_map, uniform_value=0.3)[0, 1] == pytest.approx(0.3)
    with pytest.raises(ValueError, match="Unknown distance metric"):
        distance_for("cosine", keyset_map)
