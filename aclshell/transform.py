# SPDX-License-Identifier: LGPL-3.0-or-later
"""
ACL transformations behind the five setfacl operations.

All functions are pure: they take and return lists of AclEntry.  Filesystem
collaborators read the current entries, apply one transformation, pass the
result through build_acl() and store it.
"""

from .acl import AclEntry, AclEntryScope, AclEntryType, BASE_TYPES, FsAction
from .exceptions import invalid_acl


def _mode_to_perm(bits):
    p = FsAction(0)
    if bits & 4:
        p |= FsAction.READ
    if bits & 2:
        p |= FsAction.WRITE
    if bits & 1:
        p |= FsAction.EXECUTE
    return p


def trivial_acl(mode):
    """Return the three access base entries synthesised from mode bits."""
    return [
        AclEntry(AclEntryScope.ACCESS, AclEntryType.USER, '',
                 _mode_to_perm((mode >> 6) & 7)),
        AclEntry(AclEntryScope.ACCESS, AclEntryType.GROUP, '',
                 _mode_to_perm((mode >> 3) & 7)),
        AclEntry(AclEntryScope.ACCESS, AclEntryType.OTHER, '',
                 _mode_to_perm(mode & 7)),
    ]


def _split_scopes(entries):
    access = [e for e in entries if not e.is_default]
    default = [e for e in entries if e.is_default]
    return access, default


def _is_named(entry):
    return bool(entry.name) and entry.type in (AclEntryType.USER,
                                               AclEntryType.GROUP)


# ── mask handling ─────────────────────────────────────────────────────────────

def recalc_mask(entries):
    def _process_section(section, scope):
        has_named = any(_is_named(e) for e in section)
        has_mask = any(e.type == AclEntryType.MASK for e in section)
        if not has_named and not has_mask:
            return section
        # Union of all named entries plus the owning group.
        mask_perm = FsAction(0)
        for e in section:
            if _is_named(e) or (e.type == AclEntryType.GROUP and not e.name):
                mask_perm |= e.permission
        result = [e for e in section if e.type != AclEntryType.MASK]
        result.append(AclEntry(scope, AclEntryType.MASK, '', mask_perm))
        return result

    access, default = _split_scopes(entries)
    return (_process_section(access, AclEntryScope.ACCESS) +
            _process_section(default, AclEntryScope.DEFAULT))


def _ensure_mask(entries):
    """Seed a mask from the group entry where named entries lack one."""
    def _process_section(section, scope):
        has_named = any(_is_named(e) for e in section)
        has_mask = any(e.type == AclEntryType.MASK for e in section)
        if not has_named or has_mask:
            return section
        group_perm = next(
            (e.permission for e in section
             if e.type == AclEntryType.GROUP and not e.name),
            FsAction(0),
        )
        return section + [AclEntry(scope, AclEntryType.MASK, '', group_perm)]

    access, default = _split_scopes(entries)
    return (_process_section(access, AclEntryScope.ACCESS) +
            _process_section(default, AclEntryScope.DEFAULT))


def _apply_masks(entries, new_entries):
    """Recalculate each section's mask unless `new_entries` set it."""
    explicit = {e.scope for e in new_entries if e.type == AclEntryType.MASK}
    access, default = _split_scopes(entries)
    result = []
    for scope, section in ((AclEntryScope.ACCESS, access),
                           (AclEntryScope.DEFAULT, default)):
        if scope in explicit:
            result.extend(_ensure_mask(section))
        else:
            result.extend(recalc_mask(section))
    return result


def copy_default_base(entries):
    """Fill a partial default section with the access base entries."""
    access, default = _split_scopes(entries)
    if not default:
        return list(entries)
    result = list(entries)
    for entry_type in BASE_TYPES:
        if any(e.type == entry_type and not e.name for e in default):
            continue
        base = next((e for e in access
                     if e.type == entry_type and not e.name), None)
        if base is not None:
            result.append(base.with_scope(AclEntryScope.DEFAULT))
    return result


# ── operations ────────────────────────────────────────────────────────────────

def strip_extended(entries):
    return [e for e in entries if e.is_base and not e.is_default]


def remove_default(entries):
    return [e for e in entries if not e.is_default]


def modify_entries(entries, new_entries):
    result = list(entries)
    for new_entry in new_entries:
        found = -1
        for i, entry in enumerate(result):
            if entry.key == new_entry.key:
                found = i
                break
        if found >= 0:
            result[found] = new_entry
        else:
            result.append(new_entry)
    result = copy_default_base(result)
    return _apply_masks(result, new_entries)


def remove_entries(entries, specs):
    keys = {s.key for s in specs}
    result = [e for e in entries if e.key not in keys]
    return recalc_mask(result)


def replace_entries(new_entries):
    result = copy_default_base(list(new_entries))
    return _apply_masks(result, new_entries)


# ── validation ────────────────────────────────────────────────────────────────

def build_acl(entries, is_dir):
    """Validate `entries` and return them as a tuple in storage order.

    Raises FileSystemError(EINVAL) naming the first violated rule.
    """
    seen = set()
    for e in entries:
        if e.key in seen:
            raise invalid_acl(f'duplicate entry: {e}')
        seen.add(e.key)
        if e.name and e.type in (AclEntryType.MASK, AclEntryType.OTHER):
            raise invalid_acl(f'{e.type.label} entry must not have a name: {e}')

    access, default = _split_scopes(entries)
    if default and not is_dir:
        raise invalid_acl('only directories may have a default ACL')

    for label, section in (('access', access), ('default', default)):
        if label == 'default' and not section:
            continue
        for entry_type in BASE_TYPES:
            if not any(e.type == entry_type and not e.name for e in section):
                raise invalid_acl(f'the {label} ACL requires an unnamed '
                                  f'{entry_type.label} entry')
        if (any(_is_named(e) for e in section) and
                not any(e.type == AclEntryType.MASK for e in section)):
            raise invalid_acl(f'the {label} ACL requires a mask entry')

    return tuple(sorted(entries))
