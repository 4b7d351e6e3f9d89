"""
docstore Error Hierarchy: Structured exceptions for the document store.

Raised inside the file store and engine helpers, then converted into an
OperationResult at the public operation boundary. Every error carries its
context so it can be written to the JSONL audit log as-is.

Hierarchy:
    DocStoreError
    ├── DocStoreSecurityError   : Caller not connected or missing capability
    ├── DocStoreNotFoundError   : Document or file does not exist
    ├── DocStoreConflictError   : File already exists in the document
    ├── DocStoreValidationError : Illegal document or file name
    ├── DocStoreStorageError    : Filesystem operation failed
    └── DocStoreConfigError     : docstore.yaml unreadable
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class DocStoreError(Exception):
    """Base error for all docstore failures."""

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.document_name: Optional[str] = context.get("document_name")
        self.file_name: Optional[str] = context.get("file_name")
        self.user_name: Optional[str] = context.get("user_name")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for the audit log."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "document_name": self.document_name,
            "file_name": self.file_name,
            "user_name": self.user_name,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("document_name", "file_name", "user_name")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.document_name:
            parts.append(f"document={self.document_name}")
        if self.file_name:
            parts.append(f"file={self.file_name}")
        if self.user_name:
            parts.append(f"user={self.user_name}")
        return " | ".join(parts)


class DocStoreSecurityError(DocStoreError):
    """
    Access denied. Either the user has no session with the engine, or the
    user's groups do not grant the capability the operation needs.
    """

    def __init__(self, message: str, **context: Any):
        self.user_groups: Optional[list] = context.get("user_groups")
        self.required_capability: Optional[str] = context.get("required_capability")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["user_groups"] = self.user_groups
        d["required_capability"] = self.required_capability
        return d


class DocStoreNotFoundError(DocStoreError):
    """Referenced document or file does not exist."""
    pass


class DocStoreConflictError(DocStoreError):
    """Referenced file already exists where it must not."""
    pass


class DocStoreValidationError(DocStoreError):
    """Document or file name cannot be mapped onto the storage layout."""
    pass


class DocStoreStorageError(DocStoreError):
    """Filesystem operation on a storage location or blob failed."""

    def __init__(self, message: str, **context: Any):
        self.path: Optional[str] = context.get("path")
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["path"] = self.path
        d["operation"] = self.operation
        return d


class DocStoreConfigError(DocStoreError):
    """Configuration error: docstore.yaml missing keys or malformed."""
    pass
