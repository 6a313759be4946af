"""
Tests for blob storage and the upload registry.
"""

import pytest

from transgrid.domain.ingestion.errors import NotFoundError
from transgrid.domain.uploads.blob_store import file_metadata, open_file
from transgrid.integrations import storage


def test_store_and_read_back(project, upload_file):
    record = upload_file(b"Source\nHello\n", "../../etc/strings.csv", "text/csv")

    assert record["file_size"] == len(b"Source\nHello\n")
    assert record["file_hash"]
    assert "/../" not in record["storage_path"]

    metadata = file_metadata(record["id"])
    assert metadata.project_id == project["id"]
    assert metadata.mime_type == "text/csv"
    assert metadata.original_name == "../../etc/strings.csv"
    assert open_file(record["id"]) == b"Source\nHello\n"


def test_unknown_file_id():
    with pytest.raises(NotFoundError):
        file_metadata("missing")
    with pytest.raises(NotFoundError):
        open_file("missing")


def test_missing_blob_is_not_found(upload_file, tmp_path, monkeypatch):
    record = upload_file(b"Hello", "lines.txt", "text/plain")
    monkeypatch.setattr(storage.settings, "storage_local_root", str(tmp_path))

    with pytest.raises(NotFoundError):
        open_file(record["id"])


def test_local_paths_cannot_escape_root():
    with pytest.raises(storage.StorageError):
        storage.upload_file(b"x", "../outside.txt")


def test_s3_backend_requires_credentials(monkeypatch):
    monkeypatch.setattr(storage.settings, "storage_provider", "b2")
    monkeypatch.setattr(storage.settings, "storage_access_key_id", "")
    with pytest.raises(storage.StorageConnectionError):
        storage.download_file("projects/p/f/strings.csv")
