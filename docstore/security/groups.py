"""
docstore Groups: Capability model and the built-in group variants.

A group is an immutable, named bundle of capabilities. Users reference groups
(they never own them) and their effective capabilities are the union over all
referenced groups.

Built-in variants:
    Managers → insert, update, delete
    Workers  → insert
    Guests   → (nothing)

Custom groups can be declared with Group.custom() or from the ``groups``
section of docstore.yaml via build_groups().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, Mapping, Optional, Union

if TYPE_CHECKING:
    from docstore.security.users import User


class Capability(str, Enum):
    """Unit of authorization, required by every mutating operation."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


ALL_CAPABILITIES: FrozenSet[Capability] = frozenset(Capability)


class GroupKind(str, Enum):
    MANAGERS = "managers"
    WORKERS = "workers"
    GUESTS = "guests"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Group:
    """Immutable named set of capabilities."""

    name: str
    kind: GroupKind = GroupKind.CUSTOM
    capabilities: FrozenSet[Capability] = field(default_factory=frozenset)

    def has_capability(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def add_user(self, user: "User") -> None:
        """Make *user* a member of this group."""
        user.add_to_group(self)

    @classmethod
    def custom(cls, name: str, *capabilities: Union[Capability, str]) -> "Group":
        return cls(
            name=name,
            kind=GroupKind.CUSTOM,
            capabilities=frozenset(Capability(c) for c in capabilities),
        )

    def __repr__(self) -> str:
        caps = ",".join(sorted(c.value for c in self.capabilities)) or "-"
        return f"Group({self.name!r}, {self.kind.value}, caps={caps})"


MANAGERS = Group("Managers", GroupKind.MANAGERS, ALL_CAPABILITIES)
WORKERS = Group("Workers", GroupKind.WORKERS, frozenset({Capability.INSERT}))
GUESTS = Group("Guests", GroupKind.GUESTS, frozenset())

BUILTIN_GROUPS: Dict[str, Group] = {
    MANAGERS.name: MANAGERS,
    WORKERS.name: WORKERS,
    GUESTS.name: GUESTS,
}


def build_groups(
    definitions: Optional[Mapping[str, Iterable[Union[Capability, str]]]] = None,
) -> Dict[str, Group]:
    """
    Return the built-in groups plus one custom group per entry in *definitions*.

    Args:
        definitions: {group_name: [capability, ...]}, e.g. from docstore.yaml.

    Raises:
        ValueError: a definition reuses a built-in name (case-insensitive) or
            names an unknown capability.
    """
    groups = dict(BUILTIN_GROUPS)
    builtin_names = {name.lower() for name in BUILTIN_GROUPS}

    for name, caps in (definitions or {}).items():
        if name.lower() in builtin_names:
            raise ValueError(f"Group '{name}' is built in and cannot be redefined")
        groups[name] = Group.custom(name, *caps)

    return groups
