"""Lookup contract for thread and poster history sources."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, Union
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)

ID_PATTERN = re.compile(r"ID:([^<]+)<>")
THREAD_KEY_PATTERN = re.compile(r"\d+")
UNREGISTERED_MESSAGE = "This ID has no posts registered in the database yet."


@dataclass(frozen=True, slots=True)
class KnownPosts:
    """Thread keys an identifier is known to have posted in."""

    keys: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Unregistered:
    """No posting history is available for the identifier."""

    message: str = UNREGISTERED_MESSAGE


PostHistory = Union[KnownPosts, Unregistered]


class LookupFailure(Exception):
    """Raised (and recorded) when an external lookup cannot be completed."""

    def __init__(self, target: str, message: str, stage: str = "lookup") -> None:
        super().__init__(f"{stage} failed for {target}: {message}")
        self.target = target
        self.message = message
        self.stage = stage

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LookupFailure):
            return NotImplemented
        return (self.target, self.message, self.stage) == (other.target, other.message, other.stage)

    def __hash__(self) -> int:
        return hash((self.target, self.message, self.stage))

    def to_dict(self) -> Dict[str, str]:
        return {"stage": self.stage, "target": self.target, "message": self.message}


class ArchiveNotFoundError(FileNotFoundError):
    """Raised when an archive directory or posts index is absent."""


class ThreadLookup(Protocol):
    """External collaborator used by the correlation expander."""

    def ids_in_thread(self, thread_key: str) -> List[str]:
        ...

    def threads_posted_in(self, identifier: str) -> PostHistory:
        ...


def extract_thread_key(value: str) -> Optional[str]:
    """Thread key from a bare numeric key or a thread URL ending in one."""

    value = value.strip()
    if THREAD_KEY_PATTERN.fullmatch(value):
        return value
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        return None
    candidate = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    if THREAD_KEY_PATTERN.fullmatch(candidate):
        return candidate
    return None


def parse_dat_ids(text: str) -> List[str]:
    """Extract unique poster IDs from dat-file text in first-seen order."""

    seen: Dict[str, None] = {}
    for line in text.splitlines():
        match = ID_PATTERN.search(line)
        if match:
            seen.setdefault(match.group(1), None)
    return list(seen)


class ArchiveLookup:
    """Offline lookup over a directory of ``<key>.dat`` files and a posts index."""

    def __init__(
        self,
        dat_dir: Union[str, Path],
        posts_index: Optional[Union[str, Path]] = None,
        *,
        encoding: str = "utf-8",
    ) -> None:
        self.dat_dir = Path(dat_dir).expanduser().resolve()
        if not self.dat_dir.is_dir():
            raise ArchiveNotFoundError(f"Thread archive directory not found: {self.dat_dir}")
        self.posts_index = Path(posts_index).expanduser().resolve() if posts_index else None
        if self.posts_index is not None and not self.posts_index.exists():
            raise ArchiveNotFoundError(f"Posts index not found: {self.posts_index}")
        self.encoding = encoding
        self._posts: Optional[Dict[str, List[str]]] = None

    def ids_in_thread(self, thread_key: str) -> List[str]:
        path = self.dat_dir / f"{thread_key}.dat"
        if not path.exists():
            logger.info("Thread data not found for key: %s", thread_key)
            return []
        try:
            text = path.read_text(encoding=self.encoding, errors="replace")
        except OSError as exc:
            raise LookupFailure(thread_key, str(exc), stage="ids_in_thread") from exc
        return parse_dat_ids(text)

    def threads_posted_in(self, identifier: str) -> PostHistory:
        keys = self._load_posts().get(identifier)
        if not keys:
            return Unregistered()
        return KnownPosts(tuple(str(key) for key in keys))

    def _load_posts(self) -> Dict[str, List[str]]:
        if self._posts is not None:
            return self._posts
        if self.posts_index is None:
            self._posts = {}
            return self._posts

        try:
            with self.posts_index.open("r", encoding="utf-8") as handle:
                if self.posts_index.suffix.lower() == ".json":
                    data = json.load(handle)
                else:
                    data = yaml.safe_load(handle)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            raise LookupFailure(str(self.posts_index), str(exc), stage="threads_posted_in") from exc

        data = data or {}
        if not isinstance(data, dict):
            raise LookupFailure(
                str(self.posts_index),
                "posts index must map identifiers to lists of thread keys",
                stage="threads_posted_in",
            )
        posts: Dict[str, List[str]] = {}
        for identifier, keys in data.items():
            if keys is None:
                keys = []
            elif isinstance(keys, (str, int)):
                keys = [keys]
            elif not isinstance(keys, list):
                raise LookupFailure(
                    str(self.posts_index),
                    f"posts index must map identifiers to lists of thread keys, got {keys!r} for {identifier}",
                    stage="threads_posted_in",
                )
            posts[str(identifier)] = [str(key) for key in keys]
        self._posts = posts
        return self._posts
