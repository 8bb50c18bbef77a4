"""Pairwise distance matrices over poster identifiers."""

from __future__ import annotations

from typing import Callable, Dict, Mapping, Sequence

import numpy as np

KeysetMap = Mapping[str, Sequence[str]]


def uniform_distance(ids: Sequence[str], value: float = 1.0) -> np.ndarray:
    """Placeholder metric: zero on the diagonal, ``value`` everywhere else."""

    size = len(ids)
    matrix = np.full((size, size), float(value), dtype=np.float64)
    np.fill_diagonal(matrix, 0.0)
    return matrix


def jaccard_distance(keyset_map: KeysetMap) -> np.ndarray:
    """Jaccard distance between the thread-key sets of each identifier.

    Rows and columns follow the iteration order of ``keyset_map``. Two
    identifiers that both have empty key sets are incomparable and sit at the
    maximum distance of 1.0 rather than 0.0.
    """

    keysets = [frozenset(keys) for keys in keyset_map.values()]
    size = len(keysets)
    matrix = np.zeros((size, size), dtype=np.float64)

    for i in range(size):
        for j in range(i + 1, size):
            union = len(keysets[i] | keysets[j])
            if union == 0:
                distance = 1.0
            else:
                distance = 1.0 - len(keysets[i] & keysets[j]) / union
            matrix[i, j] = distance
            matrix[j, i] = distance

    return matrix


def _uniform_over_keysets(keyset_map: KeysetMap, value: float = 1.0) -> np.ndarray:
    return uniform_distance(list(keyset_map), value=value)


DISTANCE_METRICS: Dict[str, Callable[..., np.ndarray]] = {
    "jaccard": jaccard_distance,
    "uniform": _uniform_over_keysets,
}


def distance_for(metric: str, keyset_map: KeysetMap, *, uniform_value: float = 1.0) -> np.ndarray:
    """Dispatch to a named metric over a key-set map."""

    try:
        func = DISTANCE_METRICS[metric]
    except KeyError:
        raise ValueError(
            f"Unknown distance metric '{metric}'. Expected one of: {', '.join(DISTANCE_METRICS)}"
        ) from None
    if metric == "uniform":
        return func(keyset_map, value=uniform_value)
    return func(keyset_map)
