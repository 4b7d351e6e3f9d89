"""
docstore File Store: Physical layout of documents on disk.

Physical storage:
    {root}/{document_name}/{file_name}{extension}

One directory per live document, one blob per file entry. There is no
manifest: which documents and files exist is read from the directory tree
itself (see scan()).

Every OSError, and every encoding failure, is re-raised as DocStoreStorageError
carrying the path and the operation that failed.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Union

from docstore.engine.errors import DocStoreStorageError, DocStoreValidationError

logger = logging.getLogger("docstore.documents.filestore")

_FORBIDDEN_CHARS = ("/", "\\", "\x00")


class FileStore:
    """Maps document and file names onto directories and blobs under a root."""

    def __init__(
        self,
        root: Union[str, Path],
        extension: str = ".data",
        encoding: str = "utf-8",
    ):
        self._root = Path(root)
        self._extension = extension
        self._encoding = encoding

    @property
    def root(self) -> Path:
        return self._root

    @property
    def extension(self) -> str:
        return self._extension

    # -------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------

    @staticmethod
    def validate_name(name: str, kind: str = "document") -> None:
        """
        Raise DocStoreValidationError unless *name* is usable as a single
        path component.
        """
        if not isinstance(name, str) or not name or name in (".", ".."):
            raise DocStoreValidationError(f"Invalid {kind} name: {name!r}")
        if any(ch in name for ch in _FORBIDDEN_CHARS):
            raise DocStoreValidationError(
                f"{kind.capitalize()} name may not contain path separators: {name!r}"
            )

    def location(self, document_name: str) -> Path:
        self.validate_name(document_name, "document")
        return self._root / document_name

    def blob_path(self, document_name: str, file_name: str) -> Path:
        self.validate_name(file_name, "file")
        return self.location(document_name) / f"{file_name}{self._extension}"

    # -------------------------------------------------------------------
    # Storage locations
    # -------------------------------------------------------------------

    def create_location(self, document_name: str) -> Path:
        path = self.location(document_name)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DocStoreStorageError(
                f"Cannot create storage location: {e}",
                document_name=document_name,
                path=str(path),
                operation="create_location",
            ) from e
        logger.debug(f"Ensured storage location: {path}")
        return path

    def remove_location(self, document_name: str) -> bool:
        """
        Remove a storage location.

        A missing location counts as removed. A location that still holds
        files this store does not list (left by an earlier run, or foreign)
        is kept and False is returned.
        """
        path = self.location(document_name)
        if not path.exists():
            return True
        try:
            if any(path.iterdir()):
                logger.warning(f"Keeping non-empty storage location: {path}")
                return False
            path.rmdir()
        except OSError as e:
            raise DocStoreStorageError(
                f"Cannot remove storage location: {e}",
                document_name=document_name,
                path=str(path),
                operation="remove_location",
            ) from e
        return True

    # -------------------------------------------------------------------
    # Blobs
    # -------------------------------------------------------------------

    def write_blob(self, document_name: str, file_name: str, content: str) -> Path:
        """
        Create or overwrite a blob with *content* exactly as given.

        The content is encoded before anything touches the disk and lands
        through a temporary sibling file, so a failed write leaves any
        previous content in place.
        """
        path = self.blob_path(document_name, file_name)
        try:
            data = content.encode(self._encoding)
        except (UnicodeError, LookupError) as e:
            raise DocStoreStorageError(
                f"Cannot encode content as {self._encoding}: {e}",
                document_name=document_name,
                file_name=file_name,
                path=str(path),
                operation="write_blob",
            ) from e

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".partial")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise DocStoreStorageError(
                f"Cannot write blob: {e}",
                document_name=document_name,
                file_name=file_name,
                path=str(path),
                operation="write_blob",
            ) from e
        return path

    def read_blob(self, document_name: str, file_name: str) -> str:
        path = self.blob_path(document_name, file_name)
        try:
            return path.read_bytes().decode(self._encoding)
        except (OSError, UnicodeError, LookupError) as e:
            raise DocStoreStorageError(
                f"Cannot read blob: {e}",
                document_name=document_name,
                file_name=file_name,
                path=str(path),
                operation="read_blob",
            ) from e

    def blob_exists(self, document_name: str, file_name: str) -> bool:
        return self.blob_path(document_name, file_name).is_file()

    def delete_blob(self, document_name: str, file_name: str) -> bool:
        """Delete a blob. Returns False if it was already gone."""
        path = self.blob_path(document_name, file_name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise DocStoreStorageError(
                f"Cannot delete blob: {e}",
                document_name=document_name,
                file_name=file_name,
                path=str(path),
                operation="delete_blob",
            ) from e
        return True

    # -------------------------------------------------------------------
    # Recovery
    # -------------------------------------------------------------------

    def _blob_names(self, location: Path) -> List[str]:
        ext = self._extension
        return sorted(
            p.name[: -len(ext)]
            for p in location.iterdir()
            if p.is_file() and p.name.endswith(ext) and len(p.name) > len(ext)
        )

    def scan(self) -> Dict[str, List[str]]:
        """
        Read the on-disk layout.

        Returns:
            {document_name: sorted file names} for every location under the
            root that holds at least one blob with this store's extension.
        """
        found: Dict[str, List[str]] = {}
        if not self._root.is_dir():
            return found

        try:
            for location in sorted(self._root.iterdir()):
                if not location.is_dir():
                    continue
                files = self._blob_names(location)
                if files:
                    found[location.name] = files
        except OSError as e:
            raise DocStoreStorageError(
                f"Cannot scan storage root: {e}",
                path=str(self._root),
                operation="scan",
            ) from e
        return found
