# SPDX-License-Identifier: LGPL-3.0-or-later

import argparse
import dataclasses
import json
import sys

from aclshell.acl import AclEntryScope, AclEntryType, FsAction
from aclshell.exceptions import InvalidArguments
from aclshell.localfs import LocalFileSystem


PROG = 'aclshell_getfacl'

_PERMS = (FsAction.READ, FsAction.WRITE, FsAction.EXECUTE)


@dataclasses.dataclass(frozen=True, slots=True)
class GetfaclOptions:
    path: str
    recursive: bool = False
    numeric: bool = False
    quiet: bool = False
    use_json: bool = False
    skip_base: bool = False


def _sticky_flag(status):
    """'t' when others may execute, 'T' otherwise (as ls(1) shows it)."""
    for entry in status.entries:
        if (entry.type == AclEntryType.OTHER and
                entry.scope == AclEntryScope.ACCESS and
                entry.permission.implies(FsAction.EXECUTE)):
            return 't'
    return 'T'


def _format_text(path, status, quiet):
    lines = []
    if not quiet:
        lines.append(f'# file: {path}')
        lines.append(f'# owner: {status.owner}')
        lines.append(f'# group: {status.group}')
        if status.sticky_bit:
            lines.append(f'# flags: --{_sticky_flag(status)}')
    for entry in status.entries:
        lines.append(str(entry))
    return '\n'.join(lines)


def _entry_to_dict(entry):
    return {
        'scope': entry.scope.name,
        'type': entry.type.name,
        'name': entry.name if entry.name else None,
        'perms': [p.name for p in _PERMS if entry.permission & p],
    }


def _format_json(path, status):
    return {
        'path': path,
        'owner': status.owner,
        'group': status.group,
        'sticky': status.sticky_bit,
        'trivial': status.trivial,
        'entries': [_entry_to_dict(e) for e in status.entries],
    }


def _process_path(fs, path, opts):
    status = fs.get_acl_status(path)
    if opts.skip_base and status.trivial:
        return
    if opts.use_json:
        print(json.dumps(_format_json(path, status)))
    else:
        print(_format_text(path, status, opts.quiet))
        print()


def _build_parser():
    ap = argparse.ArgumentParser(
        prog=PROG,
        description='Display the ACL entries of a file or directory. '
                    'If a directory has a default ACL, it is shown too.',
    )
    ap.add_argument('-R', '--recursive', action='store_true',
                    help='List the ACLs of all files and directories '
                         'recursively; does not follow symlinks or cross '
                         'device boundaries')
    ap.add_argument('-n', '--numeric', action='store_true',
                    help='Display numeric UIDs/GIDs')
    ap.add_argument('-q', '--quiet', action='store_true',
                    help='Omit comment headers (text mode only)')
    ap.add_argument('-s', '--skip-base', action='store_true',
                    help='Skip files that only have the base ACL entries')
    ap.add_argument('-j', '--json', dest='use_json', action='store_true',
                    help='Output ACLs as JSONL (one object per line)')
    ap.add_argument('path', nargs='*', help='File or directory to list')
    return ap


def _parse_options(ap, argv=None):
    args = ap.parse_args(argv)
    if not args.path:
        raise InvalidArguments('<path> is missing')
    if len(args.path) > 1:
        raise InvalidArguments(
            f'too many arguments: {" ".join(args.path[1:])}')
    return GetfaclOptions(
        path=args.path[0],
        recursive=args.recursive,
        numeric=args.numeric,
        quiet=args.quiet,
        use_json=args.use_json,
        skip_base=args.skip_base,
    )


def main(argv=None, fs=None):
    ap = _build_parser()
    try:
        opts = _parse_options(ap, argv)
    except InvalidArguments as e:
        ap.error(str(e))

    if fs is None:
        fs = LocalFileSystem(numeric=opts.numeric)

    rc = 0

    def _report(path, e):
        nonlocal rc
        print(f'{PROG}: {path}: {e}', file=sys.stderr)
        rc = 1

    if opts.recursive:
        paths = fs.walk(opts.path,
                        onerror=lambda e: _report(e.filename, e))
    else:
        paths = [opts.path]

    for path in paths:
        try:
            _process_path(fs, path, opts)
        except OSError as e:
            _report(path, e)

    sys.exit(rc)


if __name__ == '__main__':
    main()
