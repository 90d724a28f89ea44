from __future__ import annotations

import os
import sys
import tempfile
import time
from pathlib import Path
from typing import BinaryIO, Union

from .constants import CHUNK_SIZE, TEMP_PREFIX, TEMP_SUFFIX
from .errors import IoFailureError, PathNotFoundError
from .keystream import KeyStream


PathLike = Union[str, os.PathLike]


def _safe_copymode(src: Path, dst: str) -> None:
    """Best-effort copy of permission bits that never raises.

    Args:
        src: File whose mode is copied.
        dst: Temporary file about to replace (or become) the destination.
    """
    try:
        mode = os.stat(src).st_mode & 0o7777
        os.chmod(dst, mode)
    except OSError as exc:
        print(f"Warning: failed to preserve mode of {src}: {exc}", file=sys.stderr)


def _discard_temp(temp_path: str) -> None:
    try:
        os.unlink(temp_path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        print(f"Warning: failed to remove temporary file {temp_path}: {exc}", file=sys.stderr)


class FileTransformer:
    """Streams one file through the key stream, chunk by chunk.

    Output is always written to a temporary file in the directory of the final
    path and moved into place with ``os.replace``, which is atomic on the same
    filesystem. Until that move, the file at the final path is never touched.
    """

    def __init__(self, key_stream: KeyStream, *, chunk_size: int = CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.key_stream = key_stream
        self.chunk_size = chunk_size

    def _pump(self, src: BinaryIO, dst: BinaryIO) -> int:
        offset = 0
        while True:
            chunk = src.read(self.chunk_size)
            if not chunk:
                break
            dst.write(self.key_stream.apply(chunk, offset))
            offset += len(chunk)
        dst.flush()
        os.fsync(dst.fileno())
        return offset

    def _stream_via_temp(self, source: Path, final: Path, operation: str) -> int:
        """Transform ``source`` into a temp file beside ``final``, then swap it in.

        ``operation`` describes the step for error messages, e.g. "transform".
        """
        try:
            fd, temp_path = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, dir=str(final.parent))
        except OSError as exc:
            raise IoFailureError(final, f"create temporary file to {operation}", exc) from exc
        try:
            with os.fdopen(fd, "wb") as dst, open(source, "rb") as src:
                size = self._pump(src, dst)
            _safe_copymode(source, temp_path)
            os.replace(temp_path, str(final))
        except OSError as exc:
            _discard_temp(temp_path)
            raise IoFailureError(final, operation, exc) from exc
        except BaseException:
            _discard_temp(temp_path)
            raise
        return size

    def transform_in_place(self, path: PathLike) -> float:
        """Rewrite ``path`` with its transformed content.

        Returns:
            Elapsed seconds.

        Raises:
            PathNotFoundError: ``path`` is not an existing regular file.
            IoFailureError: Any step failed; the original is unmodified.
        """
        p = Path(path)
        if not p.is_file():
            raise PathNotFoundError(p)
        if p.is_symlink():
            # rewrite the link target; replacing the link itself would drop it
            p = Path(os.path.realpath(p))
        t0 = time.monotonic()
        self._stream_via_temp(p, p, "transform")
        return time.monotonic() - t0

    def transform_to_destination(self, source: PathLike, destination: PathLike) -> float:
        """Write the transformed content of ``source`` to ``destination``.

        Missing parent directories of ``destination`` are created. An existing
        destination is replaced only once the new content is complete. The
        source is never modified.

        Returns:
            Elapsed seconds.
        """
        src = Path(source)
        dst = Path(destination)
        if not src.is_file():
            raise PathNotFoundError(src)
        if dst.exists() and os.path.samefile(src, dst):
            return self.transform_in_place(src)
        t0 = time.monotonic()
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IoFailureError(dst.parent, "create destination directory", exc) from exc
        self._stream_via_temp(src, dst, f"write transformed copy of {src} to")
        return time.monotonic() - t0
