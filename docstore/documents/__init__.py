"""
docstore Documents: live documents and their on-disk layout.

Physical storage: {storage.root}/{document_name}/{file_name}.data
"""

from docstore.documents.filestore import FileStore
from docstore.documents.models import Document

__all__ = [
    "Document",
    "FileStore",
]
