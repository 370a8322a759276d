# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Command handler for the rpbuild CLI.

Loads config, bootstraps, runs the pipeline and turns the outcome into an exit
code. No print() calls. Everything goes through the structured logger.
"""

import argparse
from pathlib import Path

from rpbuild.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR
from rpbuild.config.exceptions import ConfigError
from rpbuild.config.loader import default_config, load_config
from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import PipelineLockedError
from rpbuild.pipeline.models import PipelineResult
from rpbuild.pipeline.orchestrator import execute
from rpbuild.runtime.bootstrap import bootstrap
from rpbuild.utils.paths import resolve_checkout


def exit_code_for(result: PipelineResult) -> int:
    """
    Process exit code for a finished run.

    A failed command's own status passes through; a failure without one
    becomes RUNTIME_ERROR.
    """
    if result.success:
        return SUCCESS
    status = result.exit_status
    return status if status else RUNTIME_ERROR


def handle_run(args: argparse.Namespace) -> int:
    """Update, sync, build and publish. Returns the process exit code."""
    logger = get_logger("rpbuild.cli", log_level=args.log_level or "INFO")

    try:
        checkout = resolve_checkout(Path(args.checkout) if args.checkout else None)
    except NotADirectoryError as err:
        logger.error("Invalid checkout", extra={"error": str(err)})
        return USER_ERROR

    try:
        config = load_config(Path(args.config)) if args.config else default_config()
    except ConfigError as err:
        logger.error("Configuration error", extra={"error": str(err)})
        return CONFIG_ERROR

    try:
        bootstrap(config, checkout, log_level_override=args.log_level, dry_run=args.dry_run)
        result = execute(config, checkout, dry_run=args.dry_run)
    except PipelineLockedError as err:
        logger.error("Pipeline locked", extra={"error": str(err), "lock": err.lock_path})
        return USER_ERROR
    except ValueError as err:
        logger.error("Configuration error", extra={"error": str(err)})
        return CONFIG_ERROR
    except Exception as err:
        logger.error("Runtime error", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR

    return exit_code_for(result)
