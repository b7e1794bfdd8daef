"""
Shared fixtures.

Run with: pytest services/api/tests -v
"""
import os
import sys
import tempfile

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# main.py builds its storage adapter at import time; point it somewhere
# disposable before anything imports it.
_BOOT_DIR = tempfile.mkdtemp(prefix="productsheet-tests-")
os.environ["DB_URL"] = f"sqlite:///{_BOOT_DIR}/boot.db"
os.environ["UPLOAD_DIR"] = os.path.join(_BOOT_DIR, "uploads")


@pytest.fixture
def storage(tmp_path):
    """Fresh SQLite database per test."""
    from adapters.sqlite import SqliteAdapter
    return SqliteAdapter.from_url(f"sqlite:///{tmp_path}/test.db")


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def api(storage, upload_dir, monkeypatch):
    """TestClient bound to the per-test database and upload folder."""
    from fastapi.testclient import TestClient
    import main
    from routers.variables import invalidate_variable_cache

    monkeypatch.setattr(main, "storage_adapter", storage)
    monkeypatch.setattr(main.settings, "upload_dir", str(upload_dir))
    invalidate_variable_cache()
    with TestClient(main.app) as client:
        yield client
    invalidate_variable_cache()
