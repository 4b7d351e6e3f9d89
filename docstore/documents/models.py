"""
docstore Document: A named collection of file entries backed by blobs.

The document keeps its ordered list of file names in memory and mirrors every
change to the file store immediately. Duplicate prevention and the
delete-when-empty rule belong to the StorageEngine, not to this class.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from docstore.documents.filestore import FileStore

logger = logging.getLogger("docstore.documents.models")


class Document:
    """
    A live document.

    Creating a Document creates its storage location. dispose() tears both the
    blobs and the location down again and may be called more than once.
    """

    def __init__(self, doc_id: int, name: str, file_store: FileStore):
        self._id = doc_id
        self._name = name
        self._store = file_store
        self._files: List[str] = []
        self._disposed = False
        self._store.create_location(name)

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def files(self) -> List[str]:
        return list(self._files)

    @property
    def file_count(self) -> int:
        return len(self._files)

    @property
    def is_empty(self) -> bool:
        return not self._files

    @property
    def disposed(self) -> bool:
        return self._disposed

    def has_file(self, file_name: str) -> bool:
        return file_name in self._files

    def __contains__(self, file_name: str) -> bool:
        return self.has_file(file_name)

    def track_file(self, file_name: str) -> None:
        """List a file whose blob is already on disk."""
        if file_name not in self._files:
            self._files.append(file_name)

    def add_file(self, file_name: str, content: str) -> None:
        """
        Write *content* to the file's blob and list the file.

        Unconditional: an already listed file is overwritten and stays listed
        once.
        """
        self._store.write_blob(self._name, file_name, content)
        self.track_file(file_name)

    def update_file(self, file_name: str, content: str) -> bool:
        """Overwrite a listed file. False if unlisted or its blob is missing."""
        if file_name not in self._files:
            return False
        if not self._store.blob_exists(self._name, file_name):
            logger.warning(f"Blob missing for listed file {self._name}/{file_name}")
            return False
        self._store.write_blob(self._name, file_name, content)
        return True

    def delete_file(self, file_name: str) -> bool:
        """Remove a listed file's blob (if present) and unlist it."""
        if file_name not in self._files:
            return False
        self._store.delete_blob(self._name, file_name)
        self._files.remove(file_name)
        return True

    def read_file(self, file_name: str) -> Optional[str]:
        if file_name not in self._files or not self._store.blob_exists(self._name, file_name):
            return None
        return self._store.read_blob(self._name, file_name)

    def dispose(self) -> None:
        """
        Delete every listed blob, then the storage location.

        Unlisted files found in the location are left alone, and so is the
        location that holds them.
        """
        if self._disposed:
            return
        for file_name in list(self._files):
            self._store.delete_blob(self._name, file_name)
            self._files.remove(file_name)
        if not self._store.remove_location(self._name):
            logger.warning(f"Document {self._name} disposed, unlisted files kept on disk")
        self._disposed = True
        logger.info(f"Disposed document {self._name} (id={self._id})")

    def __repr__(self) -> str:
        return f"Document(id={self._id}, name={self._name!r}, files={self._files})"
