"""
Integration test fixtures: a full project tree with docstore.yaml on disk.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: exercises config, storage and audit log together")


@pytest.fixture
def integration_project(tmp_path):
    """
    Create a project root holding docstore.yaml, a storage root and a log
    directory. Returns the root Path.
    """
    root = tmp_path / "project"
    root.mkdir()

    (root / "docstore.yaml").write_text(
        "store:\n"
        "  name: IntegrationStore\n"
        "  environment: dev\n"
        "storage:\n"
        "  root: " + str(root / "documents") + "\n"
        "logging:\n"
        "  directory: " + str(root / ".docstore" / "logs") + "\n"
        "groups:\n"
        "  auditors: [update]\n",
        encoding="utf-8",
    )
    return root
