# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Path utilities for rpbuild.

Every path the pipeline touches is derived from one anchor: the checkout
directory. Build output lives under it, the published library sits beside it.
Relative config values are always resolved against the checkout, never against
whatever directory the process happened to start in.
"""

from pathlib import Path


def resolve_checkout(checkout: Path | None = None) -> Path:
    """
    Turn the requested checkout into an absolute directory path.

    Defaults to the current working directory, which is how the pipeline is
    normally run: from inside the crate's working copy.

    Raises:
        NotADirectoryError: If the path doesn't exist or isn't a directory.
    """
    root = (checkout if checkout is not None else Path.cwd()).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"Checkout directory not found: {root}")
    return root


def resolve_under(checkout: Path, relative: str | Path) -> Path:
    """Resolve a config path against the checkout. Absolute paths pass through."""
    candidate = Path(relative)
    if candidate.is_absolute():
        return candidate.resolve()
    return (checkout / candidate).resolve()


def resolve_destination(checkout: Path, destination_dir: str, file_name: str) -> Path:
    """
    Compute the published artifact path.

    The file name must be a bare name. Anything with a separator would let a
    config file scatter the library into arbitrary subdirectories.

    Raises:
        ValueError: If file_name contains a path separator or is empty.
    """
    if not file_name or Path(file_name).name != file_name:
        raise ValueError(
            f"Published file name must be a bare file name, got {file_name!r}"
        )
    return resolve_under(checkout, destination_dir) / file_name
