# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Parser for setfacl-style ACL specifications.

A spec is a comma separated list of entries, each one of

    type:name:perm
    default:type:name:perm

Empty comma separated segments are skipped, so `user::rwx,,other::r--`
yields two entries.
"""

import enum

from .acl import AclEntry, AclEntryScope, AclEntryType, FsAction
from .exceptions import InvalidAclSpec, InvalidAclType, InvalidPermission


_DEFAULT = 'default'

_TYPE_FROM_STR = {t.label: t for t in AclEntryType}


class _State(enum.Enum):
    EXPECT_SCOPE_OR_TYPE = enum.auto()
    EXPECT_TYPE = enum.auto()
    EXPECT_NAME = enum.auto()
    EXPECT_PERM = enum.auto()
    DONE = enum.auto()


def _split_entries(spec):
    result = []
    for segment in spec.split(','):
        segment = segment.strip()
        if segment:
            result.append(segment)
    return result


def _parse_type(token, entry):
    try:
        return _TYPE_FROM_STR[token.lower()]
    except KeyError:
        raise InvalidAclType(token, entry) from None


def _parse_perm(token, entry):
    try:
        return FsAction.from_symbol(token)
    except ValueError:
        raise InvalidPermission(token, entry) from None


def parse_acl_entry(text):
    fields = text.split(':')
    if len(fields) not in (3, 4):
        raise InvalidAclSpec(text)

    scope = AclEntryScope.ACCESS
    entry_type = name = perm = None
    state = _State.EXPECT_SCOPE_OR_TYPE

    for field in fields:
        if state is _State.EXPECT_SCOPE_OR_TYPE:
            if len(fields) == 4:
                # The only 4-field shape is an explicit default scope.
                if field != _DEFAULT:
                    raise InvalidAclSpec(text)
                scope = AclEntryScope.DEFAULT
                state = _State.EXPECT_TYPE
                continue
            state = _State.EXPECT_TYPE

        if state is _State.EXPECT_TYPE:
            entry_type = _parse_type(field, text)
            state = _State.EXPECT_NAME
        elif state is _State.EXPECT_NAME:
            name = field
            state = _State.EXPECT_PERM
        elif state is _State.EXPECT_PERM:
            perm = _parse_perm(field, text)
            state = _State.DONE
        else:
            raise InvalidAclSpec(text)

    if state is not _State.DONE:
        raise InvalidAclSpec(text)

    return AclEntry(scope=scope, type=entry_type, name=name, permission=perm)


def parse_acl_spec(spec):
    """Parse a comma separated ACL spec into entries, in input order."""
    entries = [parse_acl_entry(s) for s in _split_entries(spec)]
    if not entries:
        raise InvalidAclSpec(spec)
    return entries
