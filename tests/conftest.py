# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Pytest fixtures for aclshell tests.

`memory_fs` builds a small in-memory tree and needs no filesystem access.
`posix_dir` yields a temporary directory on a filesystem with POSIX ACL
support; tests using it are skipped when the temporary filesystem does not
accept system.posix_acl_* extended attributes.
"""

import errno
import os

import pytest

from aclshell import MemoryFileSystem
from aclshell.localfs import ACL_EA_ACCESS, encode_acl
from aclshell.transform import trivial_acl


# ── POSIX ACL availability ───────────────────────────────────────────────────

def _posix_acl_supported(directory):
    probe = os.path.join(directory, '.acl_probe')
    fd = os.open(probe, os.O_WRONLY | os.O_CREAT, 0o644)
    os.close(fd)
    try:
        os.setxattr(probe, ACL_EA_ACCESS, encode_acl(trivial_acl(0o644)))
    except OSError as e:
        if e.errno not in (errno.EOPNOTSUPP, errno.ENOTSUP, errno.EPERM,
                           errno.EACCES):
            raise
        return False
    finally:
        os.unlink(probe)
    return True


@pytest.fixture(scope='function')
def posix_dir(tmp_path):
    """Temporary directory with POSIX ACL support, or skip."""
    if not _posix_acl_supported(str(tmp_path)):
        pytest.skip('POSIX ACLs not supported on the temporary filesystem')
    yield str(tmp_path)


# ── in-memory tree ────────────────────────────────────────────────────────────

@pytest.fixture(scope='function')
def memory_fs():
    """
    /data                 dir   owner alice, group staff, 0755
    /data/report.txt      file  0640
    /data/sub             dir   0750
    /data/sub/notes.txt   file  0600
    /tmp                  dir   sticky 01777
    """
    fs = MemoryFileSystem()
    fs.add_dir('/data', owner='alice', group='staff', mode=0o755)
    fs.add_file('/data/report.txt', owner='alice', group='staff', mode=0o640)
    fs.add_dir('/data/sub', owner='alice', group='staff', mode=0o750)
    fs.add_file('/data/sub/notes.txt', owner='alice', group='staff',
                mode=0o600)
    fs.add_dir('/tmp', mode=0o1777, sticky=True)
    return fs
