# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hashing utilities for rpbuild.

The publisher uses these to prove the published library is byte-identical to
the one cargo produced. Files are read in chunks so a large debug-symbol-laden
library never has to sit in memory at once.
"""

import hashlib
from pathlib import Path

HASH_BUFFER_SIZE = 65536  # 64 KiB


def compute_sha256(file_path: Path) -> str:
    """
    Compute the SHA256 hex digest of a file.

    Args:
        file_path: Path to the file to hash.

    Returns:
        Lowercase hex string of the SHA256 digest.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(HASH_BUFFER_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def verify_checksum(file_path: Path, expected_hash: str) -> bool:
    """Check whether a file's SHA256 matches the expected hash."""
    return compute_sha256(file_path) == expected_hash.lower()
