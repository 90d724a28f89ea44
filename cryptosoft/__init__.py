"""
CryptoSoft — streaming repeating-key XOR over files and directory trees.

Features:

- 64-bit key expanded into an 8-byte little-endian key stream, applied by
  absolute byte offset so chunking never shifts the alignment.
- Chunked read/XOR/write pipeline with atomic in-place replacement: output goes
  to a temporary file beside the target and is swapped in with ``os.replace``.
- Directory mode with a single eligibility filter (build/VCS directories are
  skipped, only text/source extensions are processed).
- Encrypt and decrypt are the same operation; running it twice with the same
  key restores the original bytes.

XOR with a repeating key is obfuscation, not security. Do not use it to protect
anything that matters.
"""

__version__ = "1.0.0"

__all__ = [
    "constants",
    "errors",
    "keystream",
    "transform",
    "walker",
    "orchestrator",
    "config",
    "cli",
]

# Programmatic API: cryptosoft.orchestrator.TransformOrchestrator, or the CLI
# entry point cryptosoft.cli.main(argv) which returns the process exit status.
