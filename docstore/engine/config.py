"""
docstore Configuration: Load and validate docstore.yaml.

Example docstore.yaml:

    store:
      name: Acme Documents
      environment: prod
    storage:
      root: /var/lib/docstore
      file_extension: .data
      recover_on_start: true
    logging:
      directory: /var/log/docstore
    groups:
      auditors: [update]

Usage:
    from docstore.engine.config import load_config, get_config
"""

from __future__ import annotations

import codecs
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from docstore.engine.errors import DocStoreConfigError
from docstore.security.groups import BUILTIN_GROUPS, Capability, Group, build_groups

CONFIG_FILE_NAME = "docstore.yaml"


class StorageConfig(BaseModel):
    root: str = "documents"
    file_extension: str = ".data"
    encoding: str = "utf-8"
    recover_on_start: bool = False

    @field_validator("file_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2 or "/" in v or "\\" in v:
            raise ValueError(f"file_extension must look like '.data', got '{v}'")
        return v

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"unknown encoding '{v}'")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".docstore/logs"
    enabled: bool = True


class DocStoreConfig(BaseModel):
    """Root model for docstore.yaml."""
    name: str = "docstore"
    environment: str = "dev"

    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
    groups: Dict[str, List[Capability]] = Field(default_factory=dict)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v

    @field_validator("groups")
    @classmethod
    def validate_groups(cls, v: Dict[str, List[Capability]]) -> Dict[str, List[Capability]]:
        builtin = {name.lower() for name in BUILTIN_GROUPS}
        for name in v:
            if name.lower() in builtin:
                raise ValueError(f"group '{name}' is built in and cannot be redefined")
        return v

    def build_groups(self) -> Dict[str, Group]:
        """Built-in groups plus the custom groups declared in this config."""
        return build_groups(self.groups)


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[DocStoreConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for docstore.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).exists():
            return parent
    return current


def load_config(config_path: Optional[str] = None) -> DocStoreConfig:
    """
    Load and validate docstore.yaml.

    Args:
        config_path: Explicit path to docstore.yaml. If None, auto-discovers.

    Returns:
        Validated DocStoreConfig instance. Defaults if the file does not exist.

    Raises:
        DocStoreConfigError: the file is not valid YAML or not a mapping.
        pydantic.ValidationError: a value fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILE_NAME)

    path = Path(config_path)
    if not path.exists():
        _config = DocStoreConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise DocStoreConfigError(f"Cannot parse {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise DocStoreConfigError(f"{path} must contain a mapping", path=str(path))

    # Identity keys may sit under a top-level "store" key
    store_data = raw.get("store", {}) or {}
    config_data = {
        "name": store_data.get("name", raw.get("name", "docstore")),
        "environment": store_data.get("environment", raw.get("environment", "dev")),
        "storage": raw.get("storage", {}) or {},
        "logging": raw.get("logging", {}) or {},
        "groups": raw.get("groups", {}) or {},
    }

    _config = DocStoreConfig(**config_data)
    return _config


def get_config() -> DocStoreConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached config so the next get_config() reloads it."""
    global _config
    _config = None
