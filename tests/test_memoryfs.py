# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Tests for the filesystem collaborator contract using MemoryFileSystem.
"""

import errno

import pytest

from aclshell.aclspec import parse_acl_spec
from aclshell.exceptions import FileSystemError


def _texts(status):
    return [str(e) for e in status.entries]


def test_new_file_acl_from_mode(memory_fs):
    status = memory_fs.get_acl_status('/data/report.txt')
    assert status.owner == 'alice'
    assert status.group == 'staff'
    assert status.sticky_bit is False
    assert status.trivial
    assert _texts(status) == ['user::rw-', 'group::r--', 'other::---']


def test_sticky_dir(memory_fs):
    assert memory_fs.get_acl_status('/tmp').sticky_bit is True


def test_missing_path_raises_enoent(memory_fs):
    with pytest.raises(FileSystemError) as exc:
        memory_fs.get_acl_status('/nope')
    assert exc.value.errno == errno.ENOENT
    assert '/nope' in str(exc.value)


def test_paths_are_normalised(memory_fs):
    assert memory_fs.get_acl_status('/data//sub/') == \
        memory_fs.get_acl_status('/data/sub')


def test_add_file_creates_parents():
    from aclshell import MemoryFileSystem
    fs = MemoryFileSystem()
    fs.add_file('/a/b/c.txt')
    assert list(fs.walk('/a')) == ['/a', '/a/b', '/a/b/c.txt']


def test_modify_then_remove_entries(memory_fs):
    memory_fs.modify_acl_entries('/data/report.txt',
                                 parse_acl_spec('user:bob:rw-'))
    assert _texts(memory_fs.get_acl_status('/data/report.txt')) == [
        'user::rw-', 'user:bob:rw-', 'group::r--', 'mask::rw-', 'other::---']

    memory_fs.remove_acl_entries('/data/report.txt',
                                 parse_acl_spec('user:bob:---'))
    assert _texts(memory_fs.get_acl_status('/data/report.txt')) == [
        'user::rw-', 'group::r--', 'mask::r--', 'other::---']


def test_modify_is_idempotent(memory_fs):
    spec = parse_acl_spec('user:bob:rw-,default:group:dev:r-x')
    first = memory_fs.modify_acl_entries('/data', spec)
    second = memory_fs.modify_acl_entries('/data', spec)
    assert first == second


def test_remove_acl_strips_to_base(memory_fs):
    memory_fs.modify_acl_entries(
        '/data', parse_acl_spec('user:bob:rwx,default:user:bob:rwx'))
    memory_fs.remove_acl('/data')
    status = memory_fs.get_acl_status('/data')
    assert status.trivial
    assert _texts(status) == ['user::rwx', 'group::r-x', 'other::r-x']


def test_remove_default_acl(memory_fs):
    memory_fs.modify_acl_entries(
        '/data', parse_acl_spec('user:bob:rwx,default:user:bob:rwx'))
    memory_fs.remove_default_acl('/data')
    entries = memory_fs.get_acl_status('/data').entries
    assert not any(e.is_default for e in entries)
    assert 'user:bob:rwx' in [str(e) for e in entries]


def test_set_acl_replaces(memory_fs):
    memory_fs.modify_acl_entries('/data/report.txt',
                                 parse_acl_spec('user:bob:rw-'))
    memory_fs.set_acl('/data/report.txt',
                      parse_acl_spec('user::r--,group::---,other::---'))
    assert _texts(memory_fs.get_acl_status('/data/report.txt')) == [
        'user::r--', 'group::---', 'other::---']


def test_set_acl_missing_base_entry_rejected(memory_fs):
    before = memory_fs.get_acl_status('/data/report.txt')
    with pytest.raises(FileSystemError) as exc:
        memory_fs.set_acl('/data/report.txt',
                          parse_acl_spec('user::rwx,group::r--'))
    assert exc.value.errno == errno.EINVAL
    assert memory_fs.get_acl_status('/data/report.txt') == before


def test_default_acl_on_file_rejected(memory_fs):
    with pytest.raises(FileSystemError, match='only directories'):
        memory_fs.modify_acl_entries('/data/report.txt',
                                     parse_acl_spec('default:user:bob:r--'))


def test_removing_base_entry_rejected(memory_fs):
    with pytest.raises(FileSystemError, match='unnamed user entry'):
        memory_fs.remove_acl_entries('/data/report.txt',
                                     parse_acl_spec('user::---'))


def test_immutable_node_raises_eperm():
    from aclshell import MemoryFileSystem
    fs = MemoryFileSystem()
    fs.add_file('/locked', immutable=True)
    with pytest.raises(FileSystemError) as exc:
        fs.remove_acl('/locked')
    assert exc.value.errno == errno.EPERM


def test_walk_directory(memory_fs):
    assert list(memory_fs.walk('/data')) == [
        '/data', '/data/report.txt', '/data/sub', '/data/sub/notes.txt']


def test_walk_file_yields_only_itself(memory_fs):
    assert list(memory_fs.walk('/data/report.txt')) == ['/data/report.txt']


def test_walk_missing_path_yields_it_once(memory_fs):
    assert list(memory_fs.walk('/missing')) == ['/missing']
