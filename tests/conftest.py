"""
docstore Test Suite: Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import pytest

from docstore.documents.filestore import FileStore
from docstore.engine.config import DocStoreConfig, StorageConfig
from docstore.engine.storage import StorageEngine
from docstore.security.groups import GUESTS, MANAGERS, WORKERS
from docstore.security.users import User


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset module-level singletons between tests."""
    import docstore.engine.config as cfg_mod
    import docstore.engine.logging as log_mod

    cfg_mod._config = None
    log_mod._file_logger = None
    yield
    cfg_mod._config = None
    log_mod._file_logger = None


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / "store"
    root.mkdir()
    return root


@pytest.fixture
def file_store(storage_root):
    return FileStore(storage_root)


@pytest.fixture
def config(storage_root, tmp_path):
    return DocStoreConfig(
        storage=StorageConfig(root=str(storage_root)),
        logging={"directory": str(tmp_path / "logs")},
    )


@pytest.fixture
def engine(config):
    return StorageEngine(config=config)


@pytest.fixture
def manager():
    return User("user1", "qwerty", [MANAGERS])


@pytest.fixture
def worker():
    return User("user2", "12345", [WORKERS])


@pytest.fixture
def guest():
    return User("user3", "qwerty", [GUESTS])
