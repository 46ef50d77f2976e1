# SPDX-License-Identifier: LGPL-3.0-or-later

import errno


class InvalidArguments(ValueError):
    """Wrong argument count or conflicting command flags."""


class InvalidAclSpec(ValueError):
    """Malformed ACL specification text.

    `token` holds the offending text; `entry` the full entry it came from
    when that differs.
    """

    reason = 'invalid ACL spec'

    def __init__(self, token, entry=None):
        self.token = token
        self.entry = entry
        if entry is None or entry == token:
            msg = f'{self.reason}: {token!r}'
        else:
            msg = f'{self.reason}: {token!r} in {entry!r}'
        super().__init__(msg)


class InvalidAclType(InvalidAclSpec):
    reason = 'invalid ACL entry type'


class InvalidPermission(InvalidAclSpec):
    reason = 'invalid ACL permission'


class FileSystemError(OSError):
    """Raised by filesystem collaborators for missing paths, denied access
    and ACLs that break filesystem-level invariants."""


def invalid_acl(msg):
    return FileSystemError(errno.EINVAL, f'Invalid ACL: {msg}')
