"""Unit tests for docstore.engine.config: DocStoreConfig and loading."""

import pytest

from docstore.engine.config import (
    DocStoreConfig,
    LoggingConfig,
    StorageConfig,
    get_config,
    load_config,
    reset_config,
)
from docstore.engine.errors import DocStoreConfigError
from docstore.security.groups import Capability, GroupKind


class TestDocStoreConfig:
    def test_defaults(self):
        cfg = DocStoreConfig()
        assert cfg.name == "docstore"
        assert cfg.environment == "dev"
        assert cfg.storage.root == "documents"
        assert cfg.storage.file_extension == ".data"
        assert cfg.storage.encoding == "utf-8"
        assert cfg.storage.recover_on_start is False
        assert cfg.logging.level == "INFO"
        assert cfg.logging.enabled is True
        assert cfg.groups == {}

    def test_invalid_environment(self):
        with pytest.raises(ValueError, match="dev/staging/prod"):
            DocStoreConfig(environment="test")

    def test_invalid_extension(self):
        with pytest.raises(ValueError, match="file_extension"):
            StorageConfig(file_extension="data")

    def test_unknown_encoding(self):
        with pytest.raises(ValueError, match="unknown encoding"):
            StorageConfig(encoding="no-such-codec")
        assert StorageConfig(encoding="latin-1").encoding == "latin-1"

    def test_custom_groups(self):
        cfg = DocStoreConfig(groups={"auditors": ["update"]})
        assert cfg.groups["auditors"] == [Capability.UPDATE]
        groups = cfg.build_groups()
        assert groups["auditors"].kind is GroupKind.CUSTOM
        assert "Managers" in groups

    def test_builtin_group_redefinition_rejected(self):
        with pytest.raises(ValueError, match="built in"):
            DocStoreConfig(groups={"Guests": ["insert"]})

    def test_unknown_capability_rejected(self):
        with pytest.raises(ValueError):
            DocStoreConfig(groups={"x": ["publish"]})

    def test_custom_logging(self):
        cfg = DocStoreConfig(logging=LoggingConfig(level="DEBUG", enabled=False))
        assert cfg.logging.level == "DEBUG"
        assert cfg.logging.enabled is False


class TestLoadConfig:
    def test_load_from_file(self, tmp_path):
        path = tmp_path / "docstore.yaml"
        path.write_text(
            "store:\n"
            "  name: Acme\n"
            "  environment: prod\n"
            "storage:\n"
            "  root: /srv/docs\n"
            "  recover_on_start: true\n"
            "groups:\n"
            "  editors: [insert, update]\n",
            encoding="utf-8",
        )
        cfg = load_config(str(path))
        assert cfg.name == "Acme"
        assert cfg.environment == "prod"
        assert cfg.storage.root == "/srv/docs"
        assert cfg.storage.recover_on_start is True
        assert cfg.groups["editors"] == [Capability.INSERT, Capability.UPDATE]

    def test_missing_file_returns_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "nonexistent.yaml"))
        assert cfg.name == "docstore"

    def test_empty_file_returns_defaults(self, tmp_path):
        path = tmp_path / "docstore.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)).storage.root == "documents"

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "docstore.yaml"
        path.write_text("storage: [unclosed\n", encoding="utf-8")
        with pytest.raises(DocStoreConfigError):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "docstore.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(DocStoreConfigError, match="mapping"):
            load_config(str(path))

    def test_auto_discovery(self, tmp_path, monkeypatch):
        (tmp_path / "docstore.yaml").write_text("name: Found\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_config().name == "Found"


class TestGetConfig:
    def test_cached(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first
