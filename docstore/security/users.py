"""
docstore Users: Pre-provisioned identities with group memberships.

Passwords are stored and compared as plain text. This is a known gap, kept
as-is: there is no hashing, no lockout and no strength check.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List, Optional

from docstore.security.groups import Capability, Group

logger = logging.getLogger("docstore.security.users")


class User:
    """
    A user known to the store.

    Users hash by identity so the engine can keep them in its session set
    even though the password is mutable.
    """

    def __init__(
        self,
        user_name: str,
        password: str,
        groups: Optional[Iterable[Group]] = None,
    ):
        self._user_name = user_name
        self._password = password
        self._groups: List[Group] = []
        for group in groups or ():
            self.add_to_group(group)

    @property
    def user_name(self) -> str:
        return self._user_name

    @property
    def groups(self) -> List[Group]:
        return list(self._groups)

    @property
    def group_names(self) -> List[str]:
        return [g.name for g in self._groups]

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        """Union of every group's capabilities, recomputed on each access."""
        caps: FrozenSet[Capability] = frozenset()
        for group in self._groups:
            caps = caps | group.capabilities
        return caps

    def authenticate(self, user_name: str, password: str) -> bool:
        return self._user_name == user_name and self._password == password

    def change_password(self, old_password: str, new_password: str) -> bool:
        """Replace the password if *old_password* matches the current one."""
        if old_password != self._password:
            logger.info(f"Password change rejected for {self._user_name}")
            return False
        self._password = new_password
        return True

    def has_capability(self, capability: Capability) -> bool:
        return any(g.has_capability(capability) for g in self._groups)

    def add_to_group(self, group: Group) -> None:
        """Add a membership. Adding the same group twice is a no-op."""
        if group not in self._groups:
            self._groups.append(group)

    def __repr__(self) -> str:
        return f"User({self._user_name!r}, groups={self.group_names})"
