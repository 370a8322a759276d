# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for rpbuild.

The one-time setup that happens before the pipeline touches anything:
  1. Validate the Python version
  2. Apply the configured log level and log file (skipped on a dry run)
     to every rpbuild logger
  3. Log system information and which external tools are on PATH
"""

from pathlib import Path
from typing import Optional

from rpbuild import __version__
from rpbuild.config.schema import PipelineConfig
from rpbuild.logging.logger import configure_logging, get_logger
from rpbuild.runtime.environment import check_minimum_python, get_system_info, locate_tools
from rpbuild.utils.paths import resolve_under


def bootstrap(
    config: PipelineConfig,
    checkout: Path,
    log_level_override: Optional[str] = None,
    dry_run: bool = False,
) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated pipeline config.
        checkout: The resolved checkout directory; a relative log_file is
                  placed under it.
        log_level_override: --log-level from the command line, which wins
                            over the config file.
        dry_run: A dry run writes nothing, so the log file is not opened.
    """
    check_minimum_python()

    log_level = log_level_override or config.global_config.log_level
    log_file = None
    if config.global_config.log_file is not None and not dry_run:
        log_file = resolve_under(checkout, config.global_config.log_file)

    logger = get_logger("rpbuild.runtime", log_level=log_level, log_file=log_file)
    configure_logging(log_level, log_file)

    system_info = get_system_info()
    logger.info(
        "rpbuild bootstrap complete",
        extra={
            "rpbuild_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "checkout": str(checkout),
        },
    )

    tools = locate_tools(
        [config.toolchain.command, config.source.command, config.build.command]
    )
    for tool in tools:
        if tool.found:
            logger.debug("Tool found", extra={"tool": tool.name, "path": tool.path})
        else:
            logger.warning("Tool not on PATH", extra={"tool": tool.name})
