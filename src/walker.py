"""
Deterministic filesystem walker for the CLI.

- Iterates multiple roots lazily.
- Respects: ignore_hidden, follow_symlinks, include_ext.
- Directories and files are visited in sorted order, so the same tree always
  produces the same entry order (and therefore the same snapshots).
- Best-effort cycle guard when following symlinks (tracks (st_dev, st_ino)).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Set, Tuple

from errors import InvalidPathError


def _resolve_roots(roots: Iterable[Path]) -> List[Path]:
    resolved: List[Path] = []
    for r in roots:
        rp = r.expanduser().resolve()
        if not rp.exists():
            raise InvalidPathError(f"Root not found: {rp}")
        if not rp.is_dir():
            raise InvalidPathError(f"Not a directory: {rp}")
        resolved.append(rp)
    return resolved


def iter_media_files(
    roots: Iterable[Path],
    *,
    include_ext: Iterable[str],
    ignore_hidden: bool = True,
    follow_symlinks: bool = False,
) -> Iterator[Path]:
    """
    Yield absolute paths of files whose extension is in include_ext.

    Raises:
        InvalidPathError: if any root is missing or not a directory.
    """
    roots_norm = _resolve_roots(roots)
    include = {ext.lower() for ext in include_ext}
    visited: Set[Tuple[int, int]] = set()

    for root in roots_norm:
        for dirpath, dirnames, filenames in os.walk(root, followlinks=follow_symlinks):
            pdir = Path(dirpath)

            if ignore_hidden:
                dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            dirnames.sort()

            if follow_symlinks:
                try:
                    st = os.stat(pdir, follow_symlinks=True)
                except OSError:
                    dirnames[:] = []
                    continue
                key = (st.st_dev, st.st_ino)
                if key in visited:
                    dirnames[:] = []
                    continue
                visited.add(key)

            for name in sorted(filenames):
                if ignore_hidden and name.startswith("."):
                    continue
                if Path(name).suffix.lower() in include:
                    yield pdir / name
