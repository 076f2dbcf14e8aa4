"""Diagnostic text for destination open failures."""

from __future__ import annotations

import errno
import grp
import os
import pwd


def _user_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return "?"


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return "?"


def _describe(path: str, missing: str, *, kind: str = "") -> str:
    try:
        st = os.stat(path)
    except OSError as exc:
        return f"missing {missing} perm: {path}, stat failed: {exc.strerror}"
    return (
        f"missing {missing} perm: {path}, "
        f"{kind}owned by {st.st_uid}:{st.st_gid} mode=0{st.st_mode & 0o7777:o}"
    )


def permission_denied_message(func: str, path: str) -> str:
    """Explain an ``EACCES`` from creating or connecting to ``path``.

    Names the process identity and the first path component that lacks
    the permission needed, so the operator knows which directory or file
    to fix.
    """
    euid, egid = os.geteuid(), os.getegid()
    identity = f"euid={euid}({_user_name(euid)}) egid={egid}({_group_name(egid)})"

    parent = os.path.dirname(os.path.abspath(path)) or "/"
    if os.path.lexists(path):
        if not os.access(path, os.W_OK):
            reason = _describe(path, "+w")
        else:
            reason = _describe(parent, "+x", kind="dir ")
    elif not os.path.isdir(parent):
        reason = f"directory {parent} does not exist"
    elif not os.access(parent, os.X_OK):
        reason = _describe(parent, "+x", kind="dir ")
    else:
        reason = _describe(parent, "+w", kind="dir ")
    return f"{func}({path}) failed: Permission denied ({identity} {reason})"


def open_failure_message(func: str, path: str, error: OSError) -> str:
    """Return the one-line diagnostic for a failed open or connect."""
    if error.errno == errno.EACCES:
        return permission_denied_message(func, path)
    return f"{func}({path}) failed: {error.strerror or error}"


def write_failure_message(path: str, error: OSError | None) -> str:
    detail = (error.strerror or str(error)) if error is not None else "output closed"
    return f"write({path}): {detail}"


__all__ = [
    "open_failure_message",
    "permission_denied_message",
    "write_failure_message",
]
