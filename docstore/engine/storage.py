"""
docstore Storage Engine: Sessions, capability checks and document lifecycle.

Implements:
- Session registry: connect() admits users holding at least one capability
- Capability-gated file operations (insert / update / delete / read)
- Document creation on first insert and deletion when the last file goes
- Typed OperationResult per operation, with boolean wrappers on top
- Recovery of live documents from the on-disk layout

All state sits behind one reentrant lock. A file delete that empties its
document removes the document under that same lock.

Usage:
    engine = create_engine()
    engine.connect(user)
    engine.insert_file_to_document(user, "Doc1", "file1", "text")
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Set

from docstore.documents.filestore import FileStore
from docstore.documents.models import Document
from docstore.engine.config import DocStoreConfig, get_config, load_config
from docstore.engine.errors import (
    DocStoreConflictError,
    DocStoreError,
    DocStoreNotFoundError,
    DocStoreSecurityError,
    DocStoreStorageError,
    DocStoreValidationError,
)
from docstore.engine.logging import (
    init_logging,
    log,
    log_document_operation,
    log_security_event,
    log_session_event,
    log_system_event,
)
from docstore.security.groups import ALL_CAPABILITIES, Capability
from docstore.security.users import User

logger = logging.getLogger("docstore.engine.storage")


class Outcome(str, Enum):
    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    STORAGE_ERROR = "storage_error"


_OUTCOME_BY_ERROR = (
    (DocStoreSecurityError, Outcome.UNAUTHORIZED),
    (DocStoreNotFoundError, Outcome.NOT_FOUND),
    (DocStoreConflictError, Outcome.CONFLICT),
    (DocStoreValidationError, Outcome.INVALID),
    (DocStoreStorageError, Outcome.STORAGE_ERROR),
)


@dataclass(frozen=True)
class OperationResult:
    """
    Result of a store operation. Truthy only when the outcome is OK, so it
    can be used wherever the plain boolean answer is expected.
    """

    outcome: Outcome
    message: str = ""
    document_id: Optional[int] = None
    content: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def from_error(cls, error: DocStoreError) -> "OperationResult":
        for error_cls, outcome in _OUTCOME_BY_ERROR:
            if isinstance(error, error_cls):
                return cls(outcome=outcome, message=error.message)
        return cls(outcome=Outcome.STORAGE_ERROR, message=error.message)


class StorageEngine:
    """
    Process-wide registry of connected users and live documents.

    Every mutating operation requires the caller to be connected and to hold
    the matching capability. Failures never raise: they come back as an
    OperationResult (try_* methods) or False (boolean methods).
    """

    def __init__(
        self,
        config: Optional[DocStoreConfig] = None,
        file_store: Optional[FileStore] = None,
    ):
        self._config = config or get_config()
        storage = self._config.storage
        self._store = file_store or FileStore(
            storage.root,
            extension=storage.file_extension,
            encoding=storage.encoding,
        )
        self._users: Set[User] = set()
        self._documents: Dict[str, Document] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

        if storage.recover_on_start:
            self.recover()

    @property
    def file_store(self) -> FileStore:
        return self._store

    @property
    def connected_users(self) -> FrozenSet[User]:
        with self._lock:
            return frozenset(self._users)

    def is_connected(self, user: User) -> bool:
        with self._lock:
            return user in self._users

    def get_document(self, name: str) -> Optional[Document]:
        with self._lock:
            return self._documents.get(name)

    # -------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------

    def connect(self, user: User) -> bool:
        """Admit *user* if any of its groups grants a capability."""
        allowed = bool(user.capabilities & ALL_CAPABILITIES)
        if allowed:
            with self._lock:
                self._users.add(user)
            logger.info(f"Connected: {user.user_name}")
        else:
            logger.info(f"Connect refused, no capabilities: {user.user_name}")
        log(log_session_event("connect", user.user_name, user.group_names, success=allowed))
        return allowed

    def disconnect(self, user: User) -> None:
        with self._lock:
            if user not in self._users:
                return
            self._users.discard(user)
        logger.info(f"Disconnected: {user.user_name}")
        log(log_session_event("disconnect", user.user_name, user.group_names))

    def _require(self, user: User, capability: Optional[Capability]) -> None:
        """Raise DocStoreSecurityError unless *user* may perform the operation."""
        needed = capability.value if capability else None
        if user not in self._users:
            raise DocStoreSecurityError(
                f"{user.user_name} is not connected",
                user_name=user.user_name,
                user_groups=user.group_names,
                required_capability=needed,
            )
        if capability is not None and not user.has_capability(capability):
            raise DocStoreSecurityError(
                f"{user.user_name} lacks the {needed} capability",
                user_name=user.user_name,
                user_groups=user.group_names,
                required_capability=needed,
            )

    # -------------------------------------------------------------------
    # Document lifecycle
    # -------------------------------------------------------------------

    def _lookup(self, doc_name: str) -> Document:
        doc = self._documents.get(doc_name)
        if doc is None:
            raise DocStoreNotFoundError(
                f"Document {doc_name!r} does not exist", document_name=doc_name
            )
        return doc

    def _create_document(self, doc_name: str) -> Document:
        doc = Document(next(self._ids), doc_name, self._store)
        self._documents[doc_name] = doc
        logger.info(f"Created document {doc_name} (id={doc.id})")
        return doc

    def _remove_document(self, doc: Document) -> None:
        """Dispose *doc*; unregister it once it no longer lists any file."""
        try:
            doc.dispose()
        finally:
            if doc.is_empty:
                self._documents.pop(doc.name, None)

    # -------------------------------------------------------------------
    # Typed operations
    # -------------------------------------------------------------------

    def try_insert_file(
        self, user: User, doc_name: str, file_name: str, content: str
    ) -> OperationResult:
        """
        Add a new file to a document, creating the document if needed.

        Outcomes: UNAUTHORIZED, CONFLICT (file already listed), INVALID
        (unusable name), STORAGE_ERROR. A document created by a failed insert
        is removed again.
        """
        started = time.monotonic()
        doc_id = None
        with self._lock:
            try:
                self._require(user, Capability.INSERT)
                FileStore.validate_name(file_name, "file")
                doc = self._documents.get(doc_name)
                created = doc is None
                if created:
                    doc = self._create_document(doc_name)
                elif doc.has_file(file_name):
                    raise DocStoreConflictError(
                        f"File {file_name!r} already exists in {doc_name!r}",
                        document_name=doc_name,
                        file_name=file_name,
                    )
                doc_id = doc.id
                try:
                    doc.add_file(file_name, content)
                except DocStoreError:
                    if created:
                        self._remove_document(doc)
                    raise
                result = OperationResult(Outcome.OK, document_id=doc.id)
            except DocStoreError as e:
                result = OperationResult.from_error(e)
        self._audit("insert_file", user, doc_name, file_name, result, started,
                    Capability.INSERT, doc_id)
        return result

    def try_update_file(
        self, user: User, doc_name: str, file_name: str, content: str
    ) -> OperationResult:
        """Overwrite an existing file. NOT_FOUND if the document or file is missing."""
        started = time.monotonic()
        doc_id = None
        with self._lock:
            try:
                self._require(user, Capability.UPDATE)
                doc = self._lookup(doc_name)
                doc_id = doc.id
                if not doc.update_file(file_name, content):
                    raise DocStoreNotFoundError(
                        f"File {file_name!r} does not exist in {doc_name!r}",
                        document_name=doc_name,
                        file_name=file_name,
                    )
                result = OperationResult(Outcome.OK, document_id=doc.id)
            except DocStoreError as e:
                result = OperationResult.from_error(e)
        self._audit("update_file", user, doc_name, file_name, result, started,
                    Capability.UPDATE, doc_id)
        return result

    def try_delete_file(self, user: User, doc_name: str, file_name: str) -> OperationResult:
        """
        Delete a file. When it was the document's last file, the document is
        deleted as well.
        """
        started = time.monotonic()
        doc_id = None
        cascaded = False
        with self._lock:
            try:
                self._require(user, Capability.DELETE)
                doc = self._lookup(doc_name)
                doc_id = doc.id
                if not doc.delete_file(file_name):
                    raise DocStoreNotFoundError(
                        f"File {file_name!r} does not exist in {doc_name!r}",
                        document_name=doc_name,
                        file_name=file_name,
                    )
                if doc.is_empty:
                    cascaded = True
                    self._remove_document(doc)
                result = OperationResult(Outcome.OK, document_id=doc.id)
            except DocStoreError as e:
                result = OperationResult.from_error(e)
        self._audit("delete_file", user, doc_name, file_name, result, started,
                    Capability.DELETE, doc_id)
        if cascaded:
            self._audit("delete_document", user, doc_name, None, result, started,
                        Capability.DELETE, doc_id)
        return result

    def try_delete_document(self, user: User, doc_name: str) -> OperationResult:
        """Delete a document with all its files."""
        started = time.monotonic()
        doc_id = None
        with self._lock:
            try:
                self._require(user, Capability.DELETE)
                doc = self._lookup(doc_name)
                doc_id = doc.id
                self._remove_document(doc)
                result = OperationResult(Outcome.OK, document_id=doc.id)
            except DocStoreError as e:
                result = OperationResult.from_error(e)
        self._audit("delete_document", user, doc_name, None, result, started,
                    Capability.DELETE, doc_id)
        return result

    def try_read_file(self, user: User, doc_name: str, file_name: str) -> OperationResult:
        """Read a file's content. Needs a session but no capability."""
        with self._lock:
            try:
                self._require(user, None)
                doc = self._lookup(doc_name)
                content = doc.read_file(file_name)
                if content is None:
                    raise DocStoreNotFoundError(
                        f"File {file_name!r} does not exist in {doc_name!r}",
                        document_name=doc_name,
                        file_name=file_name,
                    )
                return OperationResult(Outcome.OK, document_id=doc.id, content=content)
            except DocStoreError as e:
                return OperationResult.from_error(e)

    # -------------------------------------------------------------------
    # Boolean operations
    # -------------------------------------------------------------------

    def insert_file_to_document(
        self, user: User, doc_name: str, file_name: str, content: str
    ) -> bool:
        return bool(self.try_insert_file(user, doc_name, file_name, content))

    def update_file_from_document(
        self, user: User, doc_name: str, file_name: str, content: str
    ) -> bool:
        return bool(self.try_update_file(user, doc_name, file_name, content))

    def delete_file_from_document(self, user: User, doc_name: str, file_name: str) -> bool:
        return bool(self.try_delete_file(user, doc_name, file_name))

    def delete_document(self, user: User, doc_name: str) -> bool:
        return bool(self.try_delete_document(user, doc_name))

    def read_file_from_document(
        self, user: User, doc_name: str, file_name: str
    ) -> Optional[str]:
        return self.try_read_file(user, doc_name, file_name).content

    # -------------------------------------------------------------------
    # Recovery
    # -------------------------------------------------------------------

    def recover(self) -> int:
        """
        Register every document found on disk that is not live yet.

        Each recovered document gets a fresh identifier. Returns the number of
        documents recovered.
        """
        recovered = 0
        with self._lock:
            for name, files in self._store.scan().items():
                if name in self._documents:
                    continue
                try:
                    FileStore.validate_name(name, "document")
                    for file_name in files:
                        FileStore.validate_name(file_name, "file")
                except DocStoreValidationError as e:
                    logger.warning(f"Skipping unrecoverable location {name!r}: {e.message}")
                    continue
                doc = self._create_document(name)
                for file_name in files:
                    doc.track_file(file_name)
                recovered += 1
        logger.info(f"Recovered {recovered} document(s) from {self._store.root}")
        log(log_system_event(
            "documents_recovered",
            details={"count": recovered, "root": str(self._store.root)},
        ))
        return recovered

    # -------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------

    def _audit(
        self,
        operation: str,
        user: User,
        doc_name: str,
        file_name: Optional[str],
        result: OperationResult,
        started: float,
        capability: Capability,
        doc_id: Optional[int],
    ) -> None:
        duration_ms = round((time.monotonic() - started) * 1000, 3)
        log(log_document_operation(
            operation=operation,
            document_name=doc_name,
            user_name=user.user_name,
            outcome=result.outcome.value,
            file_name=file_name,
            document_id=doc_id,
            duration_ms=duration_ms,
            error=None if result.ok else result.message,
        ))
        if result.outcome is Outcome.UNAUTHORIZED:
            log(log_security_event(
                event="access_denied",
                object_ref=doc_name if file_name is None else f"{doc_name}/{file_name}",
                object_type="documents" if file_name is None else "files",
                capability_needed=capability.value,
                user_name=user.user_name,
                user_groups=user.group_names,
            ))
        if not result.ok:
            logger.debug(f"{operation} {doc_name}/{file_name} by {user.user_name}: "
                         f"{result.outcome.value} ({result.message})")


def create_engine(
    config_path: Optional[str] = None,
    config: Optional[DocStoreConfig] = None,
) -> StorageEngine:
    """
    Build a StorageEngine from docstore.yaml.

    Applies the configured log level to the ``docstore`` logger hierarchy and
    starts the audit file logger when logging is enabled.
    """
    if config is None:
        config = load_config(config_path)

    logging.getLogger("docstore").setLevel(config.logging.level.upper())
    if config.logging.enabled:
        init_logging(config.logging.directory)

    engine = StorageEngine(config=config)
    log(log_system_event(
        "engine_started",
        details={
            "name": config.name,
            "environment": config.environment,
            "root": str(engine.file_store.root),
        },
    ))
    return engine
