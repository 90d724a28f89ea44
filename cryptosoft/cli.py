from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from cryptosoft import __version__
from cryptosoft.config import Settings, load_settings, parse_key
from cryptosoft.constants import DEFAULT_KEY, EXIT_IO_FAILURE, OPERATIONS, OP_ENCRYPT
from cryptosoft.errors import (
    ArgumentCountError,
    CryptoSoftError,
    InvalidOperationError,
    PathNotFoundError,
)
from cryptosoft.orchestrator import KIND_ABSENT, KIND_DIRECTORY, KIND_FILE, FileResult, TransformOrchestrator, TransformReport
from cryptosoft.walker import DirectoryWalker


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting on bad arity/options."""

    def error(self, message: str):
        raise ArgumentCountError(message)


def _past_tense(operation: str) -> str:
    return "encrypted" if operation == OP_ENCRYPT else "decrypted"


def _print_result(res: FileResult, index: int, total: int, operation: str, root: Path) -> None:
    try:
        shown = res.path.relative_to(root)
    except ValueError:
        shown = res.path
    if res.ok:
        print(f" {_past_tense(operation):>9}: {index:>4}/{total:<4} {shown}")
    else:
        print(f" {'FAILED':>9}: {index:>4}/{total:<4} {shown}")
        print(f"  {res.error}", file=sys.stderr)


def cmd_transform(
    operation: str,
    path: str,
    *,
    settings: Optional[Settings] = None,
    output: Optional[str] = None,
    quiet: bool = False,
) -> TransformReport:
    """Encrypt or decrypt a file or a directory tree.

    Args:
        operation: "encrypt" or "decrypt" (case-insensitive). Both run the same
            transform.
        path: File or directory to process in place.
        settings: Key and walk options; loaded from appsettings.json if None.
        output: Write results here instead of rewriting ``path``. For a
            directory, the relative layout is mirrored under ``output``.
        quiet: Limit output to the final summary.

    Returns:
        The report of every file attempted.

    Raises:
        InvalidOperationError: Unknown operation.
        PathNotFoundError: ``path`` does not exist.
        IoFailureError: Single-file mode failed.
    """
    op = operation.lower()
    if op not in OPERATIONS:
        raise InvalidOperationError(operation)
    if settings is None:
        settings = load_settings()

    orch = TransformOrchestrator(
        settings.key,
        walker=DirectoryWalker(follow_symlinks=settings.follow_symlinks),
    )
    target = orch.resolve(path)
    if target.kind == KIND_ABSENT:
        raise PathNotFoundError(target.path)
    shown_root = target.path.parent if target.kind == KIND_FILE else target.path

    def on_result(index: int, total: int, res: FileResult) -> None:
        if index == 1 and target.kind == KIND_DIRECTORY and not quiet:
            print(f"Found {total} files to process...")
        if not quiet or not res.ok:
            _print_result(res, index, total, op, shown_root)

    run = orch.encrypt if op == OP_ENCRYPT else orch.decrypt
    report = run(target.path, output, on_result=on_result)
    if not report.results and not quiet:
        print("Found 0 files to process...")

    print(
        f"Done: {_past_tense(op)} {len(report.succeeded)}/{len(report.results)} file(s) "
        f"in {report.elapsed_ms} ms; failed={len(report.failed)}"
    )
    return report


def build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog="cryptosoft",
        description="Repeating-key XOR of files and directory trees, rewritten in place",
        epilog=(
            "Exit status: elapsed milliseconds on success; -1 bad arguments, "
            "-2 invalid operation, -3 path not found, -4 I/O failure. "
            "XOR obfuscation is not encryption in any security sense."
        ),
    )
    ap.add_argument("operation", help="encrypt or decrypt (identical transform)")
    ap.add_argument("path", help="File or directory to process")
    ap.add_argument("--key", help="64-bit key, 0x-prefixed hex or decimal (overrides the config file)")
    ap.add_argument("--config", help="Settings file (default: ./appsettings.json)")
    ap.add_argument("--output", "-o", help="Write to this file/directory instead of rewriting in place")
    ap.add_argument("--follow-symlinks", action="store_true", help="Follow symbolic links in directory mode")
    ap.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def main(argv: List[str] | None = None) -> int:
    """Run the CLI and return its exit status.

    Returns:
        Elapsed milliseconds on success, or a negative error code.
    """
    ap = build_parser()
    try:
        args = ap.parse_args(argv)
    except ArgumentCountError as e:
        ap.print_usage(sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    if args.config and not Path(args.config).exists():
        print(f"Warning: configuration file not found: {args.config}; using defaults", file=sys.stderr)
    try:
        settings = load_settings(args.config)
        if args.key is not None:
            key = parse_key(args.key, default=-1)
            if key < 0:
                print(f"Warning: cannot parse key {args.key!r}; using the default key", file=sys.stderr)
                key = DEFAULT_KEY
            settings = Settings(key=key, follow_symlinks=settings.follow_symlinks)
        if args.follow_symlinks:
            settings = Settings(key=settings.key, follow_symlinks=True)
        report = cmd_transform(args.operation, args.path, settings=settings, output=args.output, quiet=args.quiet)
    except CryptoSoftError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_IO_FAILURE

    if not report.ok:
        print(f"Error: {len(report.failed)} file(s) failed under {report.target}", file=sys.stderr)
        return EXIT_IO_FAILURE
    return report.elapsed_ms


if __name__ == "__main__":
    sys.exit(main())
