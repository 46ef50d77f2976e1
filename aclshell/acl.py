# SPDX-License-Identifier: LGPL-3.0-or-later
"""
POSIX-style ACL value types.

AclEntry ordering is scope, type, then name, which is also the canonical
storage order: access entries before default entries, and within a scope
user, group, mask, other with the unnamed entry ahead of named ones.
"""

import dataclasses
import enum


class AclEntryScope(enum.IntEnum):
    ACCESS = 0
    DEFAULT = 1


class AclEntryType(enum.IntEnum):
    USER = 0
    GROUP = 1
    MASK = 2
    OTHER = 3

    @property
    def label(self):
        return self.name.lower()


class FsAction(enum.IntFlag):
    EXECUTE = 1
    WRITE = 2
    READ = 4

    @property
    def symbol(self):
        return ''.join(c if self & bit else '-' for bit, c in _PERM_CHARS)

    def implies(self, action):
        return (self & action) == action

    @classmethod
    def from_symbol(cls, s):
        """Decode a `rwx`-style triple.  Raises ValueError if `s` is not
        exactly three characters of the form [r-][w-][x-]."""
        if len(s) != len(_PERM_CHARS):
            raise ValueError(f'invalid permission: {s!r}')
        perm = cls(0)
        for ch, (bit, c) in zip(s, _PERM_CHARS):
            if ch == c:
                perm |= bit
            elif ch != '-':
                raise ValueError(f'invalid permission: {s!r}')
        return perm


_PERM_CHARS = (
    (FsAction.READ,    'r'),
    (FsAction.WRITE,   'w'),
    (FsAction.EXECUTE, 'x'),
)

BASE_TYPES = (AclEntryType.USER, AclEntryType.GROUP, AclEntryType.OTHER)


@dataclasses.dataclass(frozen=True, order=True, slots=True)
class AclEntry:
    scope: AclEntryScope
    type: AclEntryType
    name: str
    permission: FsAction

    @property
    def key(self):
        return (self.scope, self.type, self.name)

    @property
    def is_default(self):
        return self.scope == AclEntryScope.DEFAULT

    @property
    def is_base(self):
        """Unnamed user, group or other entry (mirrors the mode bits)."""
        return not self.name and self.type in BASE_TYPES

    def with_scope(self, scope):
        return dataclasses.replace(self, scope=scope)

    def __str__(self):
        prefix = 'default:' if self.is_default else ''
        return f'{prefix}{self.type.label}:{self.name}:{self.permission.symbol}'


@dataclasses.dataclass(frozen=True, slots=True)
class AclStatus:
    owner: str
    group: str
    sticky_bit: bool
    entries: tuple

    @property
    def trivial(self):
        """True when only the three access base entries are present."""
        return (len(self.entries) == 3 and
                all(e.is_base and not e.is_default for e in self.entries))
