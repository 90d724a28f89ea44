from __future__ import annotations

import io
import json
import os
import re
import subprocess
import sys
import tempfile
import time
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from typing import List, Tuple
from unittest import mock

from cryptosoft.cli import main
from cryptosoft.constants import (
    EXIT_ARGUMENT_COUNT,
    EXIT_INVALID_OPERATION,
    EXIT_IO_FAILURE,
    EXIT_PATH_NOT_FOUND,
)
from cryptosoft.walker import DirectoryWalker


def _build_fixture_tree(root: Path) -> None:
    (root / "docs").mkdir()
    (root / "docs" / "readme.md").write_bytes(b"# readme\n" * 20)
    (root / "docs" / "empty.txt").write_bytes(b"")
    (root / "src").mkdir()
    (root / "src" / "main.py").write_bytes(b"print('hello')\n" * 500)
    (root / "src" / "logo.png").write_bytes(os.urandom(256))
    (root / ".git").mkdir()
    (root / ".git" / "config.txt").write_bytes(b"[core]\n")


def _snapshot(root: Path):
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


class CLIMainTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.root = Path(self.tmp.name)

    def call(self, args: List[str]) -> Tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(args)
        return code, out.getvalue(), err.getvalue()

    def test_directory_roundtrip(self):
        tree = self.root / "tree"
        tree.mkdir()
        _build_fixture_tree(tree)
        before = _snapshot(tree)

        code, out, err = self.call(["encrypt", str(tree), "--key", "0x1122334455667788"])
        self.assertGreaterEqual(code, 0, err)
        self.assertIn("Found 3 files to process...", out)
        self.assertIn("Done: encrypted 3/3", out)
        after = _snapshot(tree)
        self.assertNotEqual(after["src/main.py"], before["src/main.py"])
        self.assertEqual(after["docs/empty.txt"], b"")
        self.assertEqual(after["src/logo.png"], before["src/logo.png"])
        self.assertEqual(after[".git/config.txt"], before[".git/config.txt"])

        code, out, err = self.call(["DECRYPT", str(tree), "--key", "0x1122334455667788", "--quiet"])
        self.assertGreaterEqual(code, 0, err)
        self.assertNotIn("main.py", out)
        self.assertEqual(_snapshot(tree), before)

    def test_single_file_with_config(self):
        cfg = self.root / "settings.json"
        cfg.write_text(json.dumps({"EncryptionSettings": {"Key": "0x00000000000000FF"}}), encoding="utf-8")
        f = self.root / "a.txt"
        f.write_bytes(b"hello")

        code, _out, err = self.call(["encrypt", str(f), "--config", str(cfg)])
        self.assertGreaterEqual(code, 0, err)
        self.assertEqual(f.read_bytes(), bytes([ord("h") ^ 0xFF]) + b"ello")

        code, _out, err = self.call(["decrypt", str(f), "--config", str(cfg)])
        self.assertGreaterEqual(code, 0, err)
        self.assertEqual(f.read_bytes(), b"hello")

    def test_key_flag_overrides_config(self):
        cfg = self.root / "settings.json"
        cfg.write_text(json.dumps({"EncryptionSettings": {"Key": "0xFF"}}), encoding="utf-8")
        f = self.root / "a.txt"
        f.write_bytes(b"\x00")
        self.call(["encrypt", str(f), "--config", str(cfg), "--key", "1"])
        self.assertEqual(f.read_bytes(), b"\x01")

    def test_output_option(self):
        f = self.root / "a.txt"
        f.write_bytes(b"hello")
        out_file = self.root / "out" / "a.enc"
        code, _out, err = self.call(["encrypt", str(f), "--key", "255", "--output", str(out_file)])
        self.assertGreaterEqual(code, 0, err)
        self.assertEqual(f.read_bytes(), b"hello")
        self.assertEqual(out_file.read_bytes(), bytes([ord("h") ^ 0xFF]) + b"ello")

    def test_path_not_found(self):
        code, _out, err = self.call(["encrypt", str(self.root / "missing")])
        self.assertEqual(code, EXIT_PATH_NOT_FOUND)
        self.assertIn("Path not found", err)

    def test_invalid_operation(self):
        f = self.root / "a.txt"
        f.write_bytes(b"hello")
        code, _out, err = self.call(["scramble", str(f)])
        self.assertEqual(code, EXIT_INVALID_OPERATION)
        self.assertIn("scramble", err)
        self.assertEqual(f.read_bytes(), b"hello")

    def test_argument_count(self):
        self.assertEqual(self.call([])[0], EXIT_ARGUMENT_COUNT)
        self.assertEqual(self.call(["encrypt"])[0], EXIT_ARGUMENT_COUNT)
        code, _out, err = self.call(["encrypt", "a", "b"])
        self.assertEqual(code, EXIT_ARGUMENT_COUNT)
        self.assertIn("usage:", err)

    def test_directory_failures_reported_after_batch(self):
        tree = self.root / "tree"
        tree.mkdir()
        _build_fixture_tree(tree)
        before = _snapshot(tree)
        with mock.patch("cryptosoft.transform.tempfile.mkstemp", side_effect=OSError(13, "Permission denied")):
            code, out, err = self.call(["encrypt", str(tree), "--key", "0xFF"])
        self.assertEqual(code, EXIT_IO_FAILURE)
        self.assertEqual(out.count("FAILED"), 3)
        self.assertIn("failed=3", out)
        self.assertIn("3 file(s) failed", err)
        self.assertEqual(_snapshot(tree), before)

    def test_single_file_failure(self):
        f = self.root / "a.txt"
        f.write_bytes(b"hello")
        with mock.patch("cryptosoft.transform.os.replace", side_effect=OSError(16, "Device or resource busy")):
            code, _out, err = self.call(["encrypt", str(f), "--key", "0xFF"])
        self.assertEqual(code, EXIT_IO_FAILURE)
        self.assertIn(str(f), err)
        self.assertEqual(f.read_bytes(), b"hello")

    def test_exit_value_includes_walk_time(self):
        tree = self.root / "tree"
        tree.mkdir()
        _build_fixture_tree(tree)
        real_walk = DirectoryWalker.walk

        def slow_walk(walker, root):
            time.sleep(0.25)
            return real_walk(walker, root)

        with mock.patch.object(DirectoryWalker, "walk", autospec=True, side_effect=slow_walk):
            code, out, err = self.call(["encrypt", str(tree), "--key", "0xFF"])
        self.assertGreaterEqual(code, 250, err)
        ms = int(re.search(r"in (\d+) ms", out).group(1))
        self.assertGreaterEqual(ms, 250)
        self.assertEqual(code, ms)

    def test_quiet_prints_only_summary(self):
        tree = self.root / "tree"
        tree.mkdir()
        _build_fixture_tree(tree)
        code, out, err = self.call(["encrypt", str(tree), "--key", "0xFF", "--quiet"])
        self.assertGreaterEqual(code, 0, err)
        self.assertNotIn("Found", out)
        lines = out.splitlines()
        self.assertEqual(len(lines), 1)
        self.assertTrue(lines[0].startswith("Done: encrypted 3/3"))

    def test_empty_directory_reports_zero_files(self):
        tree = self.root / "empty"
        tree.mkdir()
        code, out, err = self.call(["encrypt", str(tree)])
        self.assertGreaterEqual(code, 0, err)
        self.assertIn("Found 0 files to process...", out)
        self.assertIn("Done: encrypted 0/0", out)

    def test_follow_symlinks_flag_and_config(self):
        outside = tempfile.TemporaryDirectory()
        self.addCleanup(outside.cleanup)
        ext = Path(outside.name)
        remote = ext / "remote.txt"
        remote.write_bytes(b"remote")
        tree = self.root / "tree"
        tree.mkdir()
        (tree / "local.txt").write_bytes(b"local")
        try:
            os.symlink(str(ext), tree / "linked")
        except (OSError, NotImplementedError, AttributeError):
            self.skipTest("symlinks not supported")
        flipped = bytes([ord("r") ^ 0xFF]) + b"emote"

        code, out, err = self.call(["encrypt", str(tree), "--key", "0xFF"])
        self.assertGreaterEqual(code, 0, err)
        self.assertIn("Done: encrypted 1/1", out)
        self.assertEqual(remote.read_bytes(), b"remote")

        code, out, err = self.call(["encrypt", str(tree), "--key", "0xFF", "--follow-symlinks"])
        self.assertGreaterEqual(code, 0, err)
        self.assertIn("Done: encrypted 2/2", out)
        self.assertEqual(remote.read_bytes(), flipped)
        self.assertTrue((tree / "linked").is_symlink())

        cfg = self.root / "settings.json"
        cfg.write_text(
            json.dumps({"EncryptionSettings": {"Key": "0xFF", "FollowSymlinks": True}}), encoding="utf-8"
        )
        code, out, err = self.call(["decrypt", str(tree), "--config", str(cfg)])
        self.assertGreaterEqual(code, 0, err)
        self.assertIn("Done: decrypted 2/2", out)
        self.assertEqual(remote.read_bytes(), b"remote")
        # local.txt went through three passes, remote.txt through two
        self.assertEqual((tree / "local.txt").read_bytes(), bytes([ord("l") ^ 0xFF]) + b"ocal")


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "cryptosoft"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        return subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )

    def test_module_roundtrip_with_appsettings(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "appsettings.json").write_text(
                json.dumps({"EncryptionSettings": {"Key": "0x00000000000000FF"}}), encoding="utf-8"
            )
            work = root / "work"
            work.mkdir()
            (work / "a.txt").write_bytes(b"hello")
            (work / "b.bin").write_bytes(b"binary")
            (work / "node_modules").mkdir()
            (work / "node_modules" / "c.txt").write_bytes(b"skip")

            proc = self.run_cli(["encrypt", "work"], cwd=root)
            self.assertIn("Done: encrypted 1/1", proc.stdout, proc.stderr)
            self.assertEqual((work / "a.txt").read_bytes(), bytes([ord("h") ^ 0xFF]) + b"ello")
            self.assertEqual((work / "b.bin").read_bytes(), b"binary")
            self.assertEqual((work / "node_modules" / "c.txt").read_bytes(), b"skip")

            proc = self.run_cli(["decrypt", "work"], cwd=root)
            self.assertIn("Done: decrypted 1/1", proc.stdout, proc.stderr)
            self.assertEqual((work / "a.txt").read_bytes(), b"hello")

    @unittest.skipIf(os.name == "nt", "POSIX exit status truncation")
    def test_negative_exit_status(self):
        with tempfile.TemporaryDirectory() as tmp:
            proc = self.run_cli(["encrypt", str(Path(tmp) / "missing")])
            self.assertEqual(proc.returncode, EXIT_PATH_NOT_FOUND & 0xFF)
            self.assertIn("Path not found", proc.stderr)


if __name__ == "__main__":
    unittest.main()
