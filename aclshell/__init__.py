# SPDX-License-Identifier: LGPL-3.0-or-later

from .acl import AclEntry, AclEntryScope, AclEntryType, AclStatus, FsAction
from .aclspec import parse_acl_entry, parse_acl_spec
from .exceptions import (
    FileSystemError,
    InvalidAclSpec,
    InvalidAclType,
    InvalidArguments,
    InvalidPermission,
)
from .fs import AclFileSystem, MemoryFileSystem
from .localfs import LocalFileSystem

__all__ = [
    'AclEntry', 'AclEntryScope', 'AclEntryType', 'AclStatus', 'FsAction',
    'parse_acl_entry', 'parse_acl_spec',
    'FileSystemError', 'InvalidAclSpec', 'InvalidAclType',
    'InvalidArguments', 'InvalidPermission',
    'AclFileSystem', 'MemoryFileSystem', 'LocalFileSystem',
]
