# SPDX-License-Identifier: LGPL-3.0-or-later

import argparse
import dataclasses
import enum
import sys

from aclshell.aclspec import parse_acl_spec
from aclshell.exceptions import InvalidAclSpec, InvalidArguments
from aclshell.localfs import LocalFileSystem


PROG = 'aclshell_setfacl'


class Operation(enum.Enum):
    STRIP = '-b'
    REMOVE_DEFAULT = '-k'
    MODIFY = '-m'
    REMOVE = '-x'
    SET = '--set'


_NEEDS_SPEC = (Operation.MODIFY, Operation.REMOVE, Operation.SET)


@dataclasses.dataclass(frozen=True, slots=True)
class SetfaclOptions:
    operation: Operation
    path: str
    entries: tuple = ()
    recursive: bool = False


# ── validation ────────────────────────────────────────────────────────────────

def _validate_flags(args):
    """Return the single Operation selected by the parsed flags."""
    remove_ops = [op for op, on in ((Operation.STRIP, args.strip),
                                    (Operation.REMOVE_DEFAULT,
                                     args.remove_default)) if on]
    modify_ops = [op for op, on in ((Operation.MODIFY, args.modify),
                                    (Operation.REMOVE, args.remove)) if on]

    if len(remove_ops) > 1:
        raise InvalidArguments('-b and -k are mutually exclusive')
    if len(modify_ops) > 1:
        raise InvalidArguments('-m and -x are mutually exclusive')
    if remove_ops and modify_ops:
        raise InvalidArguments(f'{remove_ops[0].value} cannot be combined '
                               f'with {modify_ops[0].value}')
    if args.set_acl:
        if remove_ops or modify_ops:
            other = (remove_ops + modify_ops)[0]
            raise InvalidArguments(f'--set cannot be combined with '
                                   f'{other.value}')
        return Operation.SET

    selected = remove_ops + modify_ops
    if not selected:
        raise InvalidArguments('one of -b, -k, -m, -x or --set is required')
    return selected[0]


def _parse_options(ap, argv=None):
    args = ap.parse_intermixed_args(argv)
    operation = _validate_flags(args)

    tokens = list(args.args)
    entries = ()
    if operation in _NEEDS_SPEC:
        if len(tokens) < 2:
            raise InvalidArguments('<acl_spec> is missing')
        entries = tuple(parse_acl_spec(tokens.pop(0)))

    if not tokens:
        raise InvalidArguments('<path> is missing')
    if len(tokens) > 1:
        raise InvalidArguments(f'too many arguments: {" ".join(tokens[1:])}')

    return SetfaclOptions(operation=operation, path=tokens[0],
                          entries=entries, recursive=args.recursive)


# ── dispatch ──────────────────────────────────────────────────────────────────

def _apply(fs, opts, path):
    op = opts.operation
    if op is Operation.STRIP:
        fs.remove_acl(path)
    elif op is Operation.REMOVE_DEFAULT:
        fs.remove_default_acl(path)
    elif op is Operation.MODIFY:
        fs.modify_acl_entries(path, list(opts.entries))
    elif op is Operation.REMOVE:
        fs.remove_acl_entries(path, list(opts.entries))
    elif op is Operation.SET:
        fs.set_acl(path, list(opts.entries))


# ── main ──────────────────────────────────────────────────────────────────────

def _build_parser():
    ap = argparse.ArgumentParser(
        prog=PROG,
        usage=f'{PROG} [-R] [{{-b|-k}} {{-m|-x <acl_spec>}} <path>]'
              f'|[--set <acl_spec> <path>]',
        description='Set the ACL of a file or directory.',
    )
    ap.add_argument('-R', '--recursive', action='store_true',
                    help='Apply the operation to all files and directories '
                         'recursively; does not follow symlinks or cross '
                         'device boundaries')
    ap.add_argument('-b', dest='strip', action='store_true',
                    help='Remove all but the base ACL entries; the user, '
                         'group and other entries are retained')
    ap.add_argument('-k', dest='remove_default', action='store_true',
                    help='Remove the default ACL')
    ap.add_argument('-m', dest='modify', action='store_true',
                    help='Modify the ACL: entries in <acl_spec> are added '
                         'or replace existing ones, others are retained')
    ap.add_argument('-x', dest='remove', action='store_true',
                    help='Remove the entries named in <acl_spec>; others '
                         'are retained')
    ap.add_argument('--set', dest='set_acl', action='store_true',
                    help='Fully replace the ACL; <acl_spec> must include '
                         'the user, group and other entries')
    ap.add_argument('args', nargs='*', metavar='<acl_spec>|<path>',
                    help='Comma separated ACL entries, then the file or '
                         'directory to modify')
    return ap


def main(argv=None, fs=None):
    ap = _build_parser()
    try:
        opts = _parse_options(ap, argv)
    except (InvalidArguments, InvalidAclSpec) as e:
        ap.error(str(e))

    if fs is None:
        fs = LocalFileSystem()

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

    for idx, path in enumerate(paths):
        try:
            _apply(fs, opts, path)
        except OSError as e:
            _report(path, e)
            if idx == 0:
                # nothing below a failed root is touched
                break

    sys.exit(rc)


if __name__ == '__main__':
    main()
