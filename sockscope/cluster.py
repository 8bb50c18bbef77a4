"""Clustering of identifiers from a precomputed distance matrix."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
from scipy.cluster.hierarchy import linkage
from scipy.spatial.distance import squareform
from sklearn.cluster import DBSCAN

logger = logging.getLogger(__name__)

NOISE = -1

# Clustering policy, tuned for Jaccard distances in [0, 1]
HAC_CLUSTERS = 3
DBSCAN_EPS = 0.21
DBSCAN_MIN_POINTS = 2


@dataclass(slots=True)
class HierarchyTree:
    """Arena-indexed agglomerative tree.

    Nodes ``0..n_leaves-1`` are leaves whose id is the original index of the
    point. Node ``n_leaves + k`` is the k-th merge and owns ``merges[k]``.
    """

    n_leaves: int
    merges: List[Tuple[int, int]] = field(default_factory=list)
    heights: List[float] = field(default_factory=list)

    @property
    def root(self) -> int:
        return self.n_leaves + len(self.merges) - 1 if self.merges else 0

    def is_leaf(self, node: int) -> bool:
        return node < self.n_leaves

    def children(self, node: int) -> Tuple[int, int]:
        if self.is_leaf(node):
            raise ValueError(f"node {node} is a leaf")
        return self.merges[node - self.n_leaves]

    def leaves(self, node: int) -> List[int]:
        """Original indices under ``node``, left to right."""
        found: List[int] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if self.is_leaf(current):
                found.append(current)
            else:
                left, right = self.children(current)
                stack.append(right)
                stack.append(left)
        return found

    def cut(self, n_clusters: int) -> List[int]:
        """Top-level nodes left after undoing the last ``n_clusters - 1`` merges."""
        if n_clusters <= 0:
            raise ValueError("n_clusters must be positive")
        if self.n_leaves == 0:
            return []

        nodes = [self.root]
        target = min(n_clusters, self.n_leaves)
        while len(nodes) < target:
            latest = max(node for node in nodes if not self.is_leaf(node))
            nodes.remove(latest)
            nodes.extend(self.children(latest))
        return sorted(nodes, key=lambda node: min(self.leaves(node)))


def _validate_matrix(matrix: np.ndarray | Sequence[Sequence[float]], size: int) -> np.ndarray:
    dist = np.asarray(matrix, dtype=np.float64)
    if dist.shape != (size, size):
        raise ValueError(f"distance matrix must be {size}x{size}, got {dist.shape}")
    if not np.all(np.isfinite(dist)):
        raise ValueError("distance matrix contains non-finite values")
    if np.any(dist < 0):
        raise ValueError("distance matrix must be non-negative")
    if not np.allclose(dist, dist.T):
        raise ValueError("distance matrix must be symmetric")
    return dist


def build_hierarchy(matrix: np.ndarray | Sequence[Sequence[float]]) -> HierarchyTree:
    """Ward-linkage hierarchy using ``matrix`` as the only distance source."""

    dist = np.asarray(matrix, dtype=np.float64)
    if dist.ndim != 2:
        raise ValueError("distance matrix must be 2-D")
    size = dist.shape[0]
    dist = _validate_matrix(dist, size)
    if size <= 1:
        return HierarchyTree(n_leaves=size)

    condensed = squareform(dist, checks=False)
    z = linkage(condensed, method="ward")
    merges = [(int(row[0]), int(row[1])) for row in z]
    heights = [float(row[2]) for row in z]
    return HierarchyTree(n_leaves=size, merges=merges, heights=heights)


def format_clusters(
    ids: Sequence[str],
    labels: Sequence[int],
    *,
    include_noise: bool = False,
) -> List[List[str]]:
    """Group IDs by label in first-seen label order.

    Noise (label ``-1``) is dropped unless ``include_noise`` is set, in which
    case it becomes one trailing group.
    """

    if len(ids) != len(labels):
        raise ValueError("ids and labels must have the same length")

    groups: Dict[int, List[str]] = {}
    noise: List[str] = []
    for identifier, label in zip(ids, labels):
        label = int(label)
        if label == NOISE:
            noise.append(identifier)
            continue
        groups.setdefault(label, []).append(identifier)

    grouped = list(groups.values())
    if include_noise and noise:
        grouped.append(noise)
    return grouped


def perform_hac(
    ids: Sequence[str],
    matrix: np.ndarray | Sequence[Sequence[float]],
) -> List[List[str]]:
    """Hierarchical clustering with Ward linkage cut into ``HAC_CLUSTERS`` groups."""

    if len(ids) == 0:
        return []

    try:
        tree = build_hierarchy(matrix)
        if tree.n_leaves != len(ids):
            raise ValueError(f"distance matrix covers {tree.n_leaves} points, expected {len(ids)}")
        assignments = [NOISE] * len(ids)
        for cluster_index, node in enumerate(tree.cut(HAC_CLUSTERS)):
            for leaf in tree.leaves(node):
                assignments[leaf] = cluster_index
    except Exception:
        logger.exception("HAC clustering failed for %d IDs", len(ids))
        return []

    return format_clusters(ids, assignments, include_noise=True)


def perform_dbscan(
    ids: Sequence[str],
    matrix: np.ndarray | Sequence[Sequence[float]],
) -> List[List[str]]:
    """Density-based clustering over the precomputed matrix; noise is dropped.

    ``min_samples`` counts the point itself, and neighbours lie within
    ``distance <= DBSCAN_EPS``.
    """

    if len(ids) == 0:
        return []

    try:
        dist = _validate_matrix(matrix, len(ids))
        clusterer = DBSCAN(eps=DBSCAN_EPS, min_samples=DBSCAN_MIN_POINTS, metric="precomputed")
        labels = clusterer.fit_predict(dist)
    except Exception:
        logger.exception("DBSCAN clustering failed for %d IDs", len(ids))
        return []

    noise = int(np.sum(labels == NOISE))
    if noise:
        logger.debug("DBSCAN left %d of %d IDs as noise", noise, len(ids))
    return format_clusters(ids, labels.tolist())
