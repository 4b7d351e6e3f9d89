"""
docstore: Role-gated document store.

Users belong to groups that grant capabilities (insert, update, delete).
Documents are named containers of text files, one file on disk per entry.

    from docstore import MANAGERS, User, create_engine

    engine = create_engine()
    alice = User("alice", "secret", [MANAGERS])
    engine.connect(alice)
    engine.insert_file_to_document(alice, "Doc1", "file1", "hello")
"""

__version__ = "1.0.0"

from docstore.documents import Document, FileStore  # noqa: E402
from docstore.engine.storage import (  # noqa: E402
    OperationResult,
    Outcome,
    StorageEngine,
    create_engine,
)
from docstore.security import (  # noqa: E402
    GUESTS,
    MANAGERS,
    WORKERS,
    Capability,
    Group,
    GroupKind,
    User,
)

__all__ = [
    "Capability",
    "Document",
    "FileStore",
    "GUESTS",
    "Group",
    "GroupKind",
    "MANAGERS",
    "OperationResult",
    "Outcome",
    "StorageEngine",
    "User",
    "WORKERS",
    "create_engine",
]
