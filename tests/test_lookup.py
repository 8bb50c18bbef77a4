"""Tests for dat parsing and the offline archive lookup."""

from __future__ import annotations

from pathlib import Path

import pytest

from sockscope.lookup import (
    ArchiveLookup,
    ArchiveNotFoundError,
    KnownPosts,
    LookupFailure,
    Unregistered,
    extract_thread_key,
    parse_dat_ids,
)


def test_parse_dat_ids_unique_in_order() -> None:
    text = (
        "n<>m<>2024/01/01 ID:q1w2<>body<>title\n"
        "n<>m<>2024/01/01 ID:zz9<>body<>\n"
        "n<>m<>2024/01/01 ID:q1w2<>body<>\n"
        "no id on this line\n"
    )
    assert parse_dat_ids(text) == ["q1w2", "zz9"]


def test_archive_lookup_ids(archive_dir: Path) -> None:
    lookup = ArchiveLookup(archive_dir / "dat", archive_dir / "posts.json")

    assert lookup.ids_in_thread("100") == ["aaa", "bbb", "ccc"]
    assert lookup.ids_in_thread("999") == []


def test_archive_lookup_posts(archive_dir: Path) -> None:
    lookup = ArchiveLookup(archive_dir / "dat", archive_dir / "posts.json")

    assert lookup.threads_posted_in("aaa") == KnownPosts(("100", "200"))
    result = lookup.threads_posted_in("nobody")
    assert isinstance(result, Unregistered)
    assert result.message


def test_archive_lookup_yaml_index(archive_dir: Path) -> None:
    index = archive_dir / "posts.yaml"
    index.write_text("aaa:\n  - '100'\nbbb: []\n", encoding="utf-8")
    lookup = ArchiveLookup(archive_dir / "dat", index)

    assert lookup.threads_posted_in("aaa") == KnownPosts(("100",))
    assert isinstance(lookup.threads_posted_in("bbb"), Unregistered)


def test_archive_lookup_without_index(archive_dir: Path) -> None:
    lookup = ArchiveLookup(archive_dir / "dat")
    assert isinstance(lookup.threads_posted_in("aaa"), Unregistered)


def test_archive_lookup_missing_paths(tmp_path: Path, archive_dir: Path) -> None:
    with pytest.raises(ArchiveNotFoundError):
        ArchiveLookup(tmp_path / "absent")
    with pytest.raises(FileNotFoundError):
        ArchiveLookup(archive_dir / "dat", archive_dir / "absent.json")


def test_archive_lookup_malformed_index(archive_dir: Path) -> None:
    index = archive_dir / "broken.json"
    index.write_text("{not json", encoding="utf-8")
    lookup = ArchiveLookup(archive_dir / "dat", index)

    with pytest.raises(LookupFailure) as excinfo:
        lookup.threads_posted_in("aaa")
    assert excinfo.value.stage == "threads_posted_in"


def test_archive_lookup_index_must_be_mapping(archive_dir: Path) -> None:
    index = archive_dir / "list.json"
    index.write_text('["aaa"]', encoding="utf-8")
    lookup = ArchiveLookup(archive_dir / "dat", index)

    with pytest.raises(LookupFailure, match="must map identifiers"):
        lookup.threads_posted_in("aaa")


def test_archive_lookup_wraps_scalar_keys(archive_dir: Path) -> None:
    index = archive_dir / "scalar.json"
    index.write_text('{"aaa": "200", "bbb": 300}', encoding="utf-8")
    lookup = ArchiveLookup(archive_dir / "dat", index)

    assert lookup.threads_posted_in("aaa") == KnownPosts(("200",))
    assert lookup.threads_posted_in("bbb") == KnownPosts(("300",))


def test_archive_lookup_rejects_nested_keys(archive_dir: Path) -> None:
    index = archive_dir / "nested.json"
    index.write_text('{"aaa": {"x": 1}}', encoding="utf-8")
    lookup = ArchiveLookup(archive_dir / "dat", index)

    with pytest.raises(LookupFailure, match="must map identifiers"):
        lookup.threads_posted_in("aaa")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://bbs.eddibb.cc/test/read.cgi/liveedge/1700000000/", "1700000000"),
        ("https://bbs.eddibb.cc/test/read.cgi/liveedge/1700000000", "1700000000"),
        (" 1700000000 ", "1700000000"),
        ("https://x.example/thread/abc", None),
        ("https://x.example/", None),
        ("liveedge/1700000000", None),
        ("not a url", None),
    ],
)
def test_extract_thread_key(value: str, expected) -> None:
    assert extract_thread_key(value) == expected
