# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Filesystem collaborators consumed by the getfacl/setfacl commands.

AclFileSystem implements the five mutations once on top of three storage
primitives (get_acl_status, _write_acl, _is_dir); each mutation is a single
read-transform-validate-write step for one path.
"""

import abc
import dataclasses
import errno
import posixpath

from . import transform
from .acl import AclStatus
from .exceptions import FileSystemError


class AclFileSystem(abc.ABC):

    @abc.abstractmethod
    def get_acl_status(self, path):
        """Return the AclStatus of `path`."""

    @abc.abstractmethod
    def walk(self, path, onerror=None):
        """Yield `path` and, if it is a directory, every path below it.

        Symlinks are not followed.  `onerror` is called with the OSError
        for directories that cannot be listed.
        """

    @abc.abstractmethod
    def _is_dir(self, path):
        ...

    @abc.abstractmethod
    def _write_acl(self, path, entries):
        """Store a validated, sorted entry tuple on `path`."""

    def _update(self, path, fn):
        entries = fn(list(self.get_acl_status(path).entries))
        acl = transform.build_acl(entries, self._is_dir(path))
        self._write_acl(path, acl)
        return acl

    def _normalize_entries(self, entries):
        """Return `entries` with names in the form get_acl_status() uses."""
        return list(entries)

    def remove_acl(self, path):
        return self._update(path, transform.strip_extended)

    def remove_default_acl(self, path):
        return self._update(path, transform.remove_default)

    def modify_acl_entries(self, path, entries):
        entries = self._normalize_entries(entries)
        return self._update(
            path, lambda cur: transform.modify_entries(cur, entries))

    def remove_acl_entries(self, path, entries):
        entries = self._normalize_entries(entries)
        return self._update(
            path, lambda cur: transform.remove_entries(cur, entries))

    def set_acl(self, path, entries):
        entries = self._normalize_entries(entries)
        return self._update(
            path, lambda cur: transform.replace_entries(entries))


@dataclasses.dataclass(slots=True)
class _Node:
    is_dir: bool
    owner: str
    group: str
    sticky_bit: bool
    entries: tuple
    immutable: bool = False


class MemoryFileSystem(AclFileSystem):
    """In-process tree of files and directories with POSIX-style ACLs."""

    def __init__(self):
        self._nodes = {}

    @staticmethod
    def _norm(path):
        return posixpath.normpath(path)

    def _add(self, path, is_dir, owner, group, mode, sticky, entries,
             immutable):
        path = self._norm(path)
        parent = posixpath.dirname(path)
        if parent not in ('', '/', path) and parent not in self._nodes:
            self.add_dir(parent, owner=owner, group=group)
        if entries is None:
            entries = transform.trivial_acl(mode)
        acl = transform.build_acl(list(entries), is_dir)
        self._nodes[path] = _Node(is_dir, owner, group, sticky, acl,
                                  immutable)
        return path

    def add_file(self, path, owner='root', group='root', mode=0o644,
                 entries=None, immutable=False):
        return self._add(path, False, owner, group, mode, False, entries,
                         immutable)

    def add_dir(self, path, owner='root', group='root', mode=0o755,
                sticky=False, entries=None, immutable=False):
        return self._add(path, True, owner, group, mode, sticky, entries,
                         immutable)

    def _node(self, path):
        try:
            return self._nodes[self._norm(path)]
        except KeyError:
            raise FileSystemError(
                errno.ENOENT, f'No such file or directory: {path!r}') from None

    def get_acl_status(self, path):
        node = self._node(path)
        return AclStatus(owner=node.owner, group=node.group,
                         sticky_bit=node.sticky_bit, entries=node.entries)

    def _is_dir(self, path):
        return self._node(path).is_dir

    def _write_acl(self, path, entries):
        node = self._node(path)
        if node.immutable:
            raise FileSystemError(
                errno.EPERM, f'Operation not permitted: {path!r}')
        node.entries = entries

    def walk(self, path, onerror=None):
        top = self._norm(path)
        yield path
        node = self._nodes.get(top)
        if node is None or not node.is_dir:
            return
        prefix = top.rstrip('/') + '/'
        for child in sorted(self._nodes):
            if child.startswith(prefix):
                yield child
