# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Local Linux filesystem collaborator.

POSIX ACLs are read and written through the system.posix_acl_access and
system.posix_acl_default extended attributes.  Both use the kernel's
little-endian version 2 layout: a 4-byte version header followed by
8-byte (tag, perm, id) records sorted by tag, then id.
"""

import dataclasses
import errno
import grp
import os
import pwd
import stat
import struct

from . import transform
from .acl import AclEntry, AclEntryScope, AclEntryType, AclStatus, FsAction
from .exceptions import FileSystemError
from .fs import AclFileSystem


ACL_EA_ACCESS = 'system.posix_acl_access'
ACL_EA_DEFAULT = 'system.posix_acl_default'

_POSIX_ACL_XATTR_VERSION = 2
_POSIX_HDR = struct.Struct('<I')        # version
_POSIX_ACE = struct.Struct('<HHI')      # tag, perm, id
_SPECIAL_ID = 0xFFFFFFFF

_TAG_USER_OBJ = 0x01
_TAG_USER = 0x02
_TAG_GROUP_OBJ = 0x04
_TAG_GROUP = 0x08
_TAG_MASK = 0x10
_TAG_OTHER = 0x20

# (type, named) -> tag
_TAG_FROM_ENTRY = {
    (AclEntryType.USER, False):  _TAG_USER_OBJ,
    (AclEntryType.USER, True):   _TAG_USER,
    (AclEntryType.GROUP, False): _TAG_GROUP_OBJ,
    (AclEntryType.GROUP, True):  _TAG_GROUP,
    (AclEntryType.MASK, False):  _TAG_MASK,
    (AclEntryType.OTHER, False): _TAG_OTHER,
}
_ENTRY_FROM_TAG = {tag: key for key, tag in _TAG_FROM_ENTRY.items()}


# ── name resolution ───────────────────────────────────────────────────────────

def _name_of_uid(uid, numeric):
    if not numeric:
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            pass
    return str(uid)


def _name_of_gid(gid, numeric):
    if not numeric:
        try:
            return grp.getgrgid(gid).gr_name
        except KeyError:
            pass
    return str(gid)


def _resolve_uid(s):
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return pwd.getpwnam(s).pw_uid
    except KeyError:
        raise FileSystemError(errno.EINVAL, f'unknown user: {s!r}') from None


def _resolve_gid(s):
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return grp.getgrnam(s).gr_gid
    except KeyError:
        raise FileSystemError(errno.EINVAL, f'unknown group: {s!r}') from None


# ── xattr encoding ────────────────────────────────────────────────────────────

def encode_acl(entries):
    """Pack one scope's entries into posix_acl xattr bytes."""
    records = []
    for e in entries:
        tag = _TAG_FROM_ENTRY.get((e.type, bool(e.name)))
        if tag is None:
            raise FileSystemError(
                errno.EINVAL, f'Invalid ACL: cannot encode entry: {e}')
        if tag == _TAG_USER:
            qid = _resolve_uid(e.name)
        elif tag == _TAG_GROUP:
            qid = _resolve_gid(e.name)
        else:
            qid = _SPECIAL_ID
        records.append((tag, int(e.permission), qid))
    records.sort(key=lambda r: (r[0], r[2]))
    for prev, cur in zip(records, records[1:]):
        if (prev[0], prev[2]) == (cur[0], cur[2]):
            raise FileSystemError(
                errno.EINVAL, f'Invalid ACL: duplicate id {cur[2]} for tag '
                              f'{cur[0]:#x}')
    data = bytearray(_POSIX_HDR.pack(_POSIX_ACL_XATTR_VERSION))
    for record in records:
        data += _POSIX_ACE.pack(*record)
    return bytes(data)


def decode_acl(data, scope, numeric=False):
    """Unpack posix_acl xattr bytes into entries of the given scope."""
    if len(data) < _POSIX_HDR.size or \
            (len(data) - _POSIX_HDR.size) % _POSIX_ACE.size:
        raise FileSystemError(errno.EINVAL, 'malformed POSIX ACL xattr')
    version, = _POSIX_HDR.unpack_from(data, 0)
    if version != _POSIX_ACL_XATTR_VERSION:
        raise FileSystemError(
            errno.EINVAL, f'unsupported POSIX ACL xattr version: {version}')
    entries = []
    for off in range(_POSIX_HDR.size, len(data), _POSIX_ACE.size):
        tag, perm, qid = _POSIX_ACE.unpack_from(data, off)
        try:
            entry_type, named = _ENTRY_FROM_TAG[tag]
        except KeyError:
            raise FileSystemError(
                errno.EINVAL, f'unknown POSIX ACL tag: {tag:#x}') from None
        name = ''
        if named and entry_type == AclEntryType.USER:
            name = _name_of_uid(qid, numeric)
        elif named:
            name = _name_of_gid(qid, numeric)
        entries.append(AclEntry(scope, entry_type, name, FsAction(perm & 7)))
    return entries


# ── filesystem ────────────────────────────────────────────────────────────────

class LocalFileSystem(AclFileSystem):

    def __init__(self, numeric=False):
        self.numeric = numeric

    def _normalize_entries(self, entries):
        result = []
        for e in entries:
            if e.name and e.type == AclEntryType.USER:
                e = dataclasses.replace(
                    e, name=_name_of_uid(_resolve_uid(e.name), self.numeric))
            elif e.name and e.type == AclEntryType.GROUP:
                e = dataclasses.replace(
                    e, name=_name_of_gid(_resolve_gid(e.name), self.numeric))
            result.append(e)
        return result

    def _getxattr(self, path, attr):
        try:
            return os.getxattr(path, attr, follow_symlinks=False)
        except OSError as e:
            if e.errno == errno.ENODATA:
                return None
            raise

    def get_acl_status(self, path):
        st = os.lstat(path)
        data = self._getxattr(path, ACL_EA_ACCESS)
        if data is None:
            entries = transform.trivial_acl(st.st_mode)
        else:
            entries = decode_acl(data, AclEntryScope.ACCESS, self.numeric)
        if stat.S_ISDIR(st.st_mode):
            data = self._getxattr(path, ACL_EA_DEFAULT)
            if data is not None:
                entries += decode_acl(data, AclEntryScope.DEFAULT,
                                      self.numeric)
        return AclStatus(
            owner=_name_of_uid(st.st_uid, self.numeric),
            group=_name_of_gid(st.st_gid, self.numeric),
            sticky_bit=bool(st.st_mode & stat.S_ISVTX),
            entries=tuple(sorted(entries)),
        )

    def _is_dir(self, path):
        return stat.S_ISDIR(os.lstat(path).st_mode)

    def _write_acl(self, path, entries):
        access = [e for e in entries if not e.is_default]
        default = [e for e in entries if e.is_default]
        os.setxattr(path, ACL_EA_ACCESS, encode_acl(access),
                    follow_symlinks=False)
        if default:
            os.setxattr(path, ACL_EA_DEFAULT, encode_acl(default),
                        follow_symlinks=False)
        elif self._is_dir(path):
            try:
                os.removexattr(path, ACL_EA_DEFAULT, follow_symlinks=False)
            except OSError as e:
                if e.errno != errno.ENODATA:
                    raise

    def walk(self, path, onerror=None):
        yield path
        if not os.path.isdir(path) or os.path.islink(path):
            return
        st = os.lstat(path)
        for dirpath, dirnames, filenames in os.walk(path, onerror=onerror):
            keep = []
            for name in sorted(dirnames):
                full_path = os.path.join(dirpath, name)
                try:
                    child = os.lstat(full_path)
                except OSError as e:
                    if onerror is not None:
                        onerror(e)
                    continue
                # symlinks are skipped, other devices are not entered
                if stat.S_ISLNK(child.st_mode) or child.st_dev != st.st_dev:
                    continue
                keep.append(name)
                yield full_path
            dirnames[:] = keep
            for name in sorted(filenames):
                full_path = os.path.join(dirpath, name)
                if os.path.islink(full_path):
                    continue
                yield full_path
