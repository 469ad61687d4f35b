"""Lexical path resolution against a fixed project root."""

import os
from pathlib import Path, PurePath


def resolve_path(base_path: str | os.PathLike, user_path: str | os.PathLike) -> Path:
    """
    Resolve a user-supplied path against base_path without touching disk.

    Absolute user paths come back unchanged. Relative ones are joined to
    the base, `.` segments are dropped and each `..` pops the previous
    retained segment; a `..` with nothing left to pop is discarded.

        resolve_path("/a/b", "../c")    -> /a/c
        resolve_path("/a", "../../x")   -> /x
    """
    user = PurePath(user_path)
    if user.is_absolute():
        return Path(user_path)

    joined = PurePath(base_path) / user
    anchor = joined.anchor
    kept: list[str] = []
    for segment in joined.parts[1 if anchor else 0 :]:
        if segment == ".":
            continue
        if segment == "..":
            if kept:
                kept.pop()
            continue
        kept.append(segment)

    return Path(anchor, *kept)


def is_within(base_path: str | os.PathLike, path: str | os.PathLike) -> bool:
    """True when path (already resolved) lies under base_path."""
    base = PurePath(os.path.abspath(base_path))
    target = PurePath(path)
    return target == base or base in target.parents
