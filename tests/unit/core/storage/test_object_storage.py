"""Tests for the filesystem object storage bucket."""

from __future__ import annotations

import pytest

from vitaldash.core.storage.objects import ObjectStorage, StorageError


@pytest.fixture
def storage(tmp_path):
    return ObjectStorage(tmp_path, "medical-reports")


def test_upload_and_download(storage, tmp_path):
    storage.upload("u1/1700000000000.pdf", b"%PDF-data")
    assert storage.download("u1/1700000000000.pdf") == b"%PDF-data"
    assert (tmp_path / "medical-reports" / "u1" / "1700000000000.pdf").is_file()
    assert storage.exists("u1/1700000000000.pdf")


def test_upload_never_overwrites(storage):
    storage.upload("u1/a.txt", b"one")
    with pytest.raises(StorageError, match="already exists"):
        storage.upload("u1/a.txt", b"two")
    assert storage.download("u1/a.txt") == b"one"


def test_download_missing(storage):
    with pytest.raises(StorageError, match="not found"):
        storage.download("u1/missing.pdf")


def test_remove_returns_only_existing(storage):
    storage.upload("u1/a.txt", b"x")
    assert storage.remove(["u1/a.txt", "u1/b.txt"]) == ["u1/a.txt"]
    assert not storage.exists("u1/a.txt")


@pytest.mark.parametrize("path", ["", "/etc/passwd", "../escape.txt", "u1/../../escape.txt"])
def test_invalid_paths_rejected(storage, path):
    with pytest.raises(StorageError, match="Invalid object path"):
        storage.upload(path, b"x")
