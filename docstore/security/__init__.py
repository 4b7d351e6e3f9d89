"""docstore Security: capabilities, groups and users."""

from docstore.security.groups import (
    ALL_CAPABILITIES,
    BUILTIN_GROUPS,
    GUESTS,
    MANAGERS,
    WORKERS,
    Capability,
    Group,
    GroupKind,
    build_groups,
)
from docstore.security.users import User

__all__ = [
    "ALL_CAPABILITIES",
    "BUILTIN_GROUPS",
    "GUESTS",
    "MANAGERS",
    "WORKERS",
    "Capability",
    "Group",
    "GroupKind",
    "User",
    "build_groups",
]
