# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Safe filesystem operations for rpbuild.

Publishing overwrites a file that other processes may be importing at the same
moment, so the copy must be atomic: readers see either the old library or the
new one, never a half-written file.

Atomic copies work by streaming into a temporary file in the same directory as
the target, then renaming it over the target. A rename within one filesystem
is atomic on POSIX, and Path.replace overwrites on Windows too.
"""

import shutil
import tempfile
from pathlib import Path

_TEMP_PREFIX = ".rpbuild_tmp_"


def atomic_copy(source_path: Path, target_path: Path) -> None:
    """
    Copy a file to target_path atomically, preserving its permission bits.

    The target's parent directory must already exist. We never create it:
    publishing into a directory that isn't there is a configuration mistake,
    not something to paper over.

    If anything goes wrong (disk full, permissions, crash) the target is never
    touched. Either the full new content lands or the old content stays.

    Args:
        source_path: File to copy.
        target_path: Where the copy should end up.

    Raises:
        FileNotFoundError: If the source or the target directory is missing.
        OSError: If the copy or rename fails.
    """
    temp_fd = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=str(target_path.parent),
        prefix=_TEMP_PREFIX,
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        with open(source_path, "rb") as src:
            shutil.copyfileobj(src, temp_fd)
        temp_fd.flush()
        temp_fd.close()
        shutil.copymode(str(source_path), str(temp_path))
        temp_path.replace(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def safe_delete(file_path: Path) -> bool:
    """
    Delete a file if it exists. Returns whether anything was actually deleted.

    Raises:
        OSError: If the file exists but can't be deleted (permissions, etc).
    """
    if file_path.exists():
        file_path.unlink()
        return True
    return False
