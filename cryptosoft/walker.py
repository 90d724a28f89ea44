from __future__ import annotations

import os
from pathlib import Path
from typing import AbstractSet, Iterable, List, Set, Union

from .constants import ALLOWED_EXTENSIONS, EXCLUDED_DIRS
from .errors import PathNotFoundError


class DirectoryWalker:
    """Enumerates the files of a tree that are eligible for transformation.

    A file is eligible when no directory between the root and the file is in
    ``excluded_dirs`` and its lowercase extension is in ``extensions``. This is
    the only place that decides eligibility.

    Args:
        excluded_dirs: Directory names to skip (exact match).
        extensions: Allowed extensions including the leading dot, lowercase.
        follow_symlinks: When False (default), symlinked files are skipped and
            symlinked directories are not descended into. When True, both are
            followed unless they resolve inside the root; each real directory
            and file is visited at most once.
    """

    def __init__(
        self,
        *,
        excluded_dirs: Iterable[str] = EXCLUDED_DIRS,
        extensions: Iterable[str] = ALLOWED_EXTENSIONS,
        follow_symlinks: bool = False,
    ):
        self.excluded_dirs: AbstractSet[str] = frozenset(excluded_dirs)
        self.extensions: AbstractSet[str] = frozenset(e.lower() for e in extensions)
        self.follow_symlinks = follow_symlinks

    def has_allowed_extension(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self.extensions

    def is_eligible(self, path: Union[str, os.PathLike], root: Union[str, os.PathLike]) -> bool:
        """Apply the filter to ``path`` relative to ``root``.

        Only the segments between ``root`` and the file's parent are checked
        against the exclusion set; directories above ``root`` do not count.
        """
        rel = Path(os.path.relpath(path, root))
        if any(part in self.excluded_dirs for part in rel.parts[:-1]):
            return False
        return self.has_allowed_extension(rel.name)

    def walk(self, root: Union[str, os.PathLike]) -> List[Path]:
        """Return every eligible file under ``root``, sorted by full path.

        With ``follow_symlinks`` a link that resolves inside ``root`` is
        skipped; the real entry is reached (or filtered) under its own name.
        A link to a directory whose real name is excluded is not descended.
        """
        top = Path(root)
        if not top.is_dir():
            raise PathNotFoundError(top)
        real_top = os.path.realpath(top)
        found: List[Path] = []
        # Real paths already visited; a linked directory or file is only
        # transformed once, otherwise a second pass would undo the first.
        seen_dirs: Set[str] = {real_top}
        seen_files: Set[str] = set()
        for dirpath, dirnames, filenames in os.walk(str(top), followlinks=self.follow_symlinks):
            kept = []
            for d in sorted(dirnames):
                if d in self.excluded_dirs:
                    continue
                sub = os.path.join(dirpath, d)
                real = os.path.realpath(sub)
                if os.path.islink(sub):
                    if not self.follow_symlinks or _within(real, real_top):
                        continue
                    if os.path.basename(real) in self.excluded_dirs:
                        continue
                if real in seen_dirs:
                    continue
                seen_dirs.add(real)
                kept.append(d)
            # prune in place so os.walk does not descend into skipped dirs
            dirnames[:] = kept
            for f in sorted(filenames):
                full = os.path.join(dirpath, f)
                real = os.path.realpath(full)
                if os.path.islink(full) and (not self.follow_symlinks or _within(real, real_top)):
                    continue
                if not os.path.isfile(full):
                    continue
                if not self.is_eligible(full, top):
                    continue
                if real in seen_files:
                    continue
                seen_files.add(real)
                found.append(Path(full))
        found.sort(key=str)
        return found


def _within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False
