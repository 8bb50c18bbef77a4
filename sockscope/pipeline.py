"""End-to-end correlation run: expand, measure, cluster."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from .cluster import perform_dbscan, perform_hac
from .correlate import CorrelationExpander, CorrelationReport, ProgressCallback
from .distance import distance_for
from .lookup import ThreadLookup
from .params import SockscopeConfig
from .utils import section

logger = logging.getLogger(__name__)


@dataclass
class ClusterResult:
    """Groupings produced by both strategies for one ID list."""

    ids: List[str]
    matrix: np.ndarray
    hac: List[List[str]] = field(default_factory=list)
    dbscan: List[List[str]] = field(default_factory=list)
    report: Optional[CorrelationReport] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ids": list(self.ids),
            "matrix": self.matrix.tolist(),
            "hac": self.hac,
            "dbscan": self.dbscan,
            "report": self.report.to_dict() if self.report else None,
        }


def cluster_ids(
    ids: Sequence[str],
    matrix: np.ndarray | Sequence[Sequence[float]],
) -> ClusterResult:
    """Run HAC and DBSCAN over a prepared distance matrix."""

    dist = np.asarray(matrix, dtype=np.float64)
    with section(f"clustering of {len(ids)} IDs"):
        hac = perform_hac(ids, dist)
        dbscan = perform_dbscan(ids, dist)
    logger.info("HAC produced %d groups, DBSCAN produced %d groups", len(hac), len(dbscan))
    return ClusterResult(ids=list(ids), matrix=dist, hac=hac, dbscan=dbscan)


def run_correlation(
    seed_key: str,
    lookup: ThreadLookup,
    config: Optional[SockscopeConfig] = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    progress: Optional[ProgressCallback] = None,
) -> ClusterResult:
    """Correlate a seed thread against its anchor's other threads and cluster the result."""

    config = config or SockscopeConfig()
    corr = config.correlation

    expander = CorrelationExpander(
        lookup, pace_seconds=corr.pace_seconds, sleep=sleep, progress=progress
    )
    report = expander.run(seed_key, anchor_index=corr.anchor_index)

    ids = list(report.keyset_map)
    matrix = distance_for(corr.metric, report.keyset_map, uniform_value=corr.uniform_value)
    result = cluster_ids(ids, matrix)
    result.report = report
    return result
