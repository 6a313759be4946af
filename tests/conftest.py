"""
Pytest configuration and fixtures for Transgrid tests.

Points the application at a throwaway SQLite database and a temporary storage
directory before anything from ``transgrid`` is imported, then creates the
tables once per session.
"""

import os
import tempfile
import uuid

_TEST_ROOT = tempfile.mkdtemp(prefix="transgrid-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_ROOT, 'transgrid.db')}"
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["STORAGE_LOCAL_ROOT"] = os.path.join(_TEST_ROOT, "storage")
os.environ.setdefault("SKIP_DB_INIT", "1")

import pytest

from transgrid.db.projects import insert_project
from transgrid.domain.uploads.blob_store import store_upload
from transgrid.main import initialize_database


@pytest.fixture(scope="session", autouse=True)
def initialize_test_database():
    """Create every table once for the whole test session."""
    initialize_database()
    yield


@pytest.fixture
def project():
    """A freshly registered project, so segment keys never collide across tests."""
    return insert_project(f"Test project {uuid.uuid4().hex[:8]}")


@pytest.fixture
def upload_file(project):
    """Store bytes as an upload of ``project`` and return the uploaded_files record."""
    def _upload(content: bytes, file_name: str, content_type: str = None, project_id: str = None):
        return store_upload(project_id or project["id"], file_name, content, content_type)
    return _upload
