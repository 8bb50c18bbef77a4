"""Cross-thread expansion of a seed thread's poster IDs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .lookup import KnownPosts, LookupFailure, PostHistory, ThreadLookup, Unregistered
from .utils import section

logger = logging.getLogger(__name__)

STAGE_THREADS = "threads"
STAGE_KEYSETS = "keysets"

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class CorrelationReport:
    """Everything one correlation run learned, failures included."""

    seed_key: str
    seed_ids: List[str] = field(default_factory=list)
    anchor_id: Optional[str] = None
    other_keys: List[str] = field(default_factory=list)
    suspected_ids: List[str] = field(default_factory=list)
    keyset_map: Dict[str, List[str]] = field(default_factory=dict)
    errors: List[LookupFailure] = field(default_factory=list)
    unregistered: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "seed_key": self.seed_key,
            "seed_ids": list(self.seed_ids),
            "anchor_id": self.anchor_id,
            "other_keys": list(self.other_keys),
            "suspected_ids": list(self.suspected_ids),
            "keyset_map": {key: list(value) for key, value in self.keyset_map.items()},
            "errors": [error.to_dict() for error in self.errors],
            "unregistered": self.unregistered,
        }


def _as_failure(exc: Exception, target: str, stage: str) -> LookupFailure:
    if isinstance(exc, LookupFailure):
        return exc
    return LookupFailure(target, str(exc) or exc.__class__.__name__, stage=stage)


class CorrelationExpander:
    """Expand a seed thread into a suspected ID set and its key-set map.

    Lookups are issued one at a time with ``pace_seconds`` slept between
    successive external calls. Every stage appends failed lookups to the
    ``errors`` list it is given and treats that item as "no data"; a failed
    lookup never aborts the run.

    ``progress`` is called as ``progress(stage, done, total)`` before the first
    and after every lookup of the two per-item stages (``STAGE_THREADS`` and
    ``STAGE_KEYSETS``).
    """

    def __init__(
        self,
        lookup: ThreadLookup,
        *,
        pace_seconds: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        if pace_seconds < 0:
            raise ValueError("pace_seconds must be non-negative")
        self.lookup = lookup
        self.pace_seconds = float(pace_seconds)
        self._sleep = sleep
        self._progress = progress
        self._calls = 0

    def _pace(self) -> None:
        if self._calls and self.pace_seconds > 0:
            self._sleep(self.pace_seconds)
        self._calls += 1

    def _report_progress(self, stage: str, done: int, total: int) -> None:
        if self._progress is not None:
            self._progress(stage, done, total)

    def _history(self, identifier: str, errors: List[LookupFailure]) -> Optional[PostHistory]:
        """Posting history of one ID, or None when the lookup failed."""
        self._pace()
        try:
            history = self.lookup.threads_posted_in(identifier)
        except Exception as exc:
            failure = _as_failure(exc, identifier, "threads_posted_in")
            logger.warning("No posting history for %s: %s", identifier, failure.message)
            errors.append(failure)
            return None

        if not isinstance(history, (KnownPosts, Unregistered)):
            failure = LookupFailure(
                identifier,
                f"unexpected posting history result: {history!r}",
                stage="threads_posted_in",
            )
            logger.warning("No posting history for %s: %s", identifier, failure.message)
            errors.append(failure)
            return None
        return history

    def seed_ids(self, seed_key: str, errors: List[LookupFailure]) -> List[str]:
        """IDs posting in the seed thread, duplicates collapsed."""
        self._pace()
        try:
            ids = self.lookup.ids_in_thread(seed_key)
        except Exception as exc:
            failure = _as_failure(exc, seed_key, "ids_in_thread")
            logger.warning("Could not read seed thread %s: %s", seed_key, failure.message)
            errors.append(failure)
            return []
        return list(dict.fromkeys(ids))

    def other_threads(
        self,
        anchor_id: str,
        seed_key: str,
        errors: List[LookupFailure],
    ) -> PostHistory:
        """Threads the anchor posted in, excluding the seed thread itself.

        A failed lookup yields ``KnownPosts(())``.
        """
        history = self._history(anchor_id, errors)
        if history is None:
            return KnownPosts(())
        if isinstance(history, Unregistered):
            logger.info("%s: %s", anchor_id, history.message)
            return history
        return KnownPosts(tuple(key for key in dict.fromkeys(history.keys) if key != seed_key))

    def expand_suspected(
        self,
        origin: Sequence[str],
        other_keys: Sequence[str],
        errors: List[LookupFailure],
    ) -> List[str]:
        """Intersect ``origin`` with the union of IDs posting in ``other_keys``."""

        another_set = set()
        total = len(other_keys)
        self._report_progress(STAGE_THREADS, 0, total)
        for done, key in enumerate(other_keys, 1):
            self._pace()
            try:
                ids = self.lookup.ids_in_thread(key)
            except Exception as exc:
                failure = _as_failure(exc, key, "ids_in_thread")
                logger.warning("Skipping thread %s: %s", key, failure.message)
                errors.append(failure)
            else:
                another_set.update(ids)
                logger.debug("Thread %s contributed %d IDs", key, len(ids))
            self._report_progress(STAGE_THREADS, done, total)

        return [identifier for identifier in dict.fromkeys(origin) if identifier in another_set]

    def build_keyset_map(
        self,
        suspected: Sequence[str],
        errors: List[LookupFailure],
    ) -> Dict[str, List[str]]:
        """Map each suspected ID to the thread keys it is known to have posted in."""

        keyset_map: Dict[str, List[str]] = {}
        total = len(suspected)
        self._report_progress(STAGE_KEYSETS, 0, total)
        for done, identifier in enumerate(suspected, 1):
            history = self._history(identifier, errors)
            if isinstance(history, KnownPosts):
                keyset_map[identifier] = list(history.keys)
            else:
                keyset_map[identifier] = []
            self._report_progress(STAGE_KEYSETS, done, total)
        return keyset_map

    def run(self, seed_key: str, *, anchor_index: int = 0) -> CorrelationReport:
        """Full expansion for one seed thread."""

        report = CorrelationReport(seed_key=seed_key)
        self._calls = 0

        with section(f"seed extraction for {seed_key}"):
            report.seed_ids = self.seed_ids(seed_key, report.errors)
        if not report.seed_ids:
            logger.info("Seed thread %s has no IDs; nothing to correlate", seed_key)
            return report

        report.anchor_id = report.seed_ids[min(anchor_index, len(report.seed_ids) - 1)]

        with section(f"thread expansion for {report.anchor_id}"):
            history = self.other_threads(report.anchor_id, seed_key, report.errors)
            if isinstance(history, Unregistered):
                report.unregistered = history.message
            else:
                report.other_keys = list(history.keys)
            report.suspected_ids = self.expand_suspected(
                report.seed_ids, report.other_keys, report.errors
            )
        logger.info(
            "Suspected %d of %d seed IDs across %d threads",
            len(report.suspected_ids),
            len(report.seed_ids),
            len(report.other_keys),
        )

        with section("key-set map construction"):
            report.keyset_map = self.build_keyset_map(report.suspected_ids, report.errors)
        return report
