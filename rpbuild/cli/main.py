# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for rpbuild.

Run with no arguments from inside the crate's checkout and it does what it has
always done: update the toolchain, pull, build in release mode, and publish the
library one directory up. Every option is optional and only adjusts that.

Usage:
    rpbuild
    rpbuild --dry-run
    rpbuild --config rpbuild.yaml --log-level DEBUG
    rpbuild --checkout ~/src/rectangular-promotion
"""

import argparse
import sys

from rpbuild.cli.commands import handle_run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpbuild",
        description=(
            "Update the Rust toolchain, pull the checkout, build the "
            "rectangular_promotion library in release mode and publish it."
        ),
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file. Defaults reproduce the fixed pipeline.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (overrides the config file).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Log the commands and paths each step would use, without running anything.",
    )
    parser.add_argument(
        "--checkout",
        type=str,
        default=None,
        help="Path to the crate's working copy (default: current directory).",
    )
    return parser


def main() -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    Parses the (optional) flags, runs the pipeline, and exits with its code.
    """
    args = build_parser().parse_args()
    sys.exit(handle_run(args))


if __name__ == "__main__":
    main()
