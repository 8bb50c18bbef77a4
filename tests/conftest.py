"""Pytest configuration for the sockscope project."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests._helpers import MemoryLookup  # noqa: E402


@pytest.fixture
def memory_lookup() -> MemoryLookup:
    """The seed thread T0 scenario: X anchors, Y reappears in T1."""
    return MemoryLookup(
        threads={"T0": ["X", "Y", "Z"], "T1": ["Y", "W"]},
        posts={"X": ["T0", "T1"], "Y": ["T0", "T1", "T7"]},
    )


@pytest.fixture
def six_id_matrix() -> tuple[List[str], List[List[float]]]:
    ids = ["A", "B", "C", "D", "E", "F"]
    matrix = [
        [0.0, 0.1, 0.9, 0.8, 0.7, 0.7],
        [0.1, 0.0, 0.8, 0.9, 0.7, 0.7],
        [0.9, 0.8, 0.0, 0.1, 0.8, 0.8],
        [0.8, 0.9, 0.1, 0.0, 0.8, 0.8],
        [0.7, 0.7, 0.8, 0.8, 0.0, 0.2],
        [0.7, 0.7, 0.8, 0.8, 0.2, 0.0],
    ]
    return ids, matrix


@pytest.fixture
def archive_dir(tmp_path: Path) -> Path:
    """A small on-disk thread archive with a posts index."""
    dat_dir = tmp_path / "dat"
    dat_dir.mkdir()
    (dat_dir / "100.dat").write_text(
        "name<>mail<>2024/01/01 ID:aaa<>hello<>title\n"
        "name<>mail<>2024/01/01 ID:bbb<>hi<>\n"
        "name<>mail<>2024/01/01 ID:aaa<>again<>\n"
        "name<>mail<>2024/01/01 ID:ccc<>yo<>\n",
        encoding="utf-8",
    )
    (dat_dir / "200.dat").write_text(
        "name<>mail<>2024/01/02 ID:bbb<>x<>\n"
        "name<>mail<>2024/01/02 ID:ccc<>y<>\n"
        "name<>mail<>2024/01/02 ID:ddd<>z<>\n",
        encoding="utf-8",
    )
    (tmp_path / "posts.json").write_text(
        '{"aaa": ["100", "200"], "bbb": ["100", "200", "300"], "ccc": ["100", "200", "300"]}',
        encoding="utf-8",
    )
    return tmp_path
