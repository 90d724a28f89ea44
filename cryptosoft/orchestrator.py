from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from .constants import CHUNK_SIZE
from .errors import CryptoSoftError, IoFailureError, PathNotFoundError
from .keystream import KeyStream
from .transform import FileTransformer
from .walker import DirectoryWalker


PathLike = Union[str, os.PathLike]

KIND_FILE = "file"
KIND_DIRECTORY = "directory"
KIND_ABSENT = "absent"

# on_result(index, total, result), index counting from 1
ResultCallback = Callable[[int, int, "FileResult"], None]


@dataclass(frozen=True)
class FileTarget:
    path: Path
    kind: str

    @classmethod
    def resolve(cls, path: PathLike) -> "FileTarget":
        p = Path(path)
        if p.is_file():
            return cls(p, KIND_FILE)
        if p.is_dir():
            return cls(p, KIND_DIRECTORY)
        return cls(p, KIND_ABSENT)


@dataclass(frozen=True)
class FileResult:
    """Outcome for one file: elapsed seconds, or the error that stopped it."""

    path: Path
    elapsed: Optional[float] = None
    error: Optional[CryptoSoftError] = None
    destination: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TransformReport:
    target: Path
    kind: str
    results: List[FileResult] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def succeeded(self) -> List[FileResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[FileResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed * 1000)


class TransformOrchestrator:
    """Runs the transform over a single file or every eligible file of a tree.

    Files are processed one after another; each swap completes before the next
    file is opened. In directory mode a failing file is recorded in its
    :class:`FileResult` and the batch continues with the next file.

    Args:
        key: 64-bit key used for every file of every run.
        walker: Eligibility filter for directory mode. Defaults to a
            :class:`DirectoryWalker` with the standard exclusion and extension sets.
        chunk_size: Read size of the streaming pipeline.
    """

    def __init__(self, key: int, *, walker: Optional[DirectoryWalker] = None, chunk_size: int = CHUNK_SIZE):
        self.key_stream = KeyStream(key)
        self.walker = walker if walker is not None else DirectoryWalker()
        self.transformer = FileTransformer(self.key_stream, chunk_size=chunk_size)

    @property
    def key(self) -> int:
        return self.key_stream.key

    def resolve(self, path: PathLike) -> FileTarget:
        return FileTarget.resolve(path)

    def transform_file(self, path: PathLike, destination: Optional[PathLike] = None) -> FileResult:
        """Transform one file in place, or into ``destination`` when given.

        Raises:
            PathNotFoundError: ``path`` is not a file.
            IoFailureError: The transform failed; the original is untouched.
        """
        p = Path(path)
        if destination is None:
            elapsed = self.transformer.transform_in_place(p)
            return FileResult(p, elapsed=elapsed)
        dst = Path(destination)
        elapsed = self.transformer.transform_to_destination(p, dst)
        return FileResult(p, elapsed=elapsed, destination=dst)

    def iter_directory(
        self,
        root: PathLike,
        destination: Optional[PathLike] = None,
        *,
        files: Optional[List[Path]] = None,
    ) -> Iterator[FileResult]:
        """Yield one result per eligible file under ``root``, in walk order.

        Args:
            root: Directory to process.
            destination: When given, each file is written to the same relative
                path under ``destination`` and the tree under ``root`` is left as is.
            files: Result of an earlier ``self.walker.walk(root)``; walked now if None.
        """
        top = Path(root)
        if files is None:
            files = self.walker.walk(top)
        for fp in files:
            dst = None
            if destination is not None:
                dst = Path(destination) / fp.relative_to(top)
            try:
                yield self.transform_file(fp, dst)
            except (IoFailureError, PathNotFoundError) as exc:
                yield FileResult(fp, error=exc, destination=dst)

    def run(
        self,
        path: PathLike,
        destination: Optional[PathLike] = None,
        *,
        on_result: Optional[ResultCallback] = None,
    ) -> TransformReport:
        """Resolve ``path`` and transform it.

        Args:
            path: File or directory to process.
            destination: Output file, or output root for a directory.
            on_result: Called as ``on_result(index, total, result)`` after each
                file, with ``index`` counting from 1.

        Returns:
            A report of every file attempted. Its elapsed time covers the
            directory walk as well as the transforms. A single-file run that
            fails raises instead of returning a failed report.

        Raises:
            PathNotFoundError: Neither a file nor a directory exists at ``path``.
            IoFailureError: Single-file mode only; see :meth:`transform_file`.
        """
        target = self.resolve(path)
        if target.kind == KIND_ABSENT:
            raise PathNotFoundError(target.path)
        report = TransformReport(target.path, target.kind)
        t0 = time.monotonic()
        if target.kind == KIND_FILE:
            res = self.transform_file(target.path, destination)
            report.results.append(res)
            if on_result is not None:
                on_result(1, 1, res)
        else:
            files = self.walker.walk(target.path)
            for i, res in enumerate(self.iter_directory(target.path, destination, files=files), start=1):
                report.results.append(res)
                if on_result is not None:
                    on_result(i, len(files), res)
        report.elapsed = time.monotonic() - t0
        return report

    # XOR is self-inverse: both directions are the same pass over the data.
    def encrypt(self, path: PathLike, destination: Optional[PathLike] = None, **kwargs) -> TransformReport:
        return self.run(path, destination, **kwargs)

    def decrypt(self, path: PathLike, destination: Optional[PathLike] = None, **kwargs) -> TransformReport:
        return self.run(path, destination, **kwargs)
