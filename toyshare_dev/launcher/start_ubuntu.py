#
# Imports
#

# Standard library
import argparse
import logging
import os
import sys
from typing import Optional, Sequence

# Config
from toyshare_dev import config

# Paths
from toyshare_dev.context import install_context
from toyshare_dev.paths import PathBundle

# Launcher
from toyshare_dev.launcher.start import Mode, build_environment, resolve_mode, select_command
from toyshare_dev.launcher.supervisor import run_supervised

# Configure logging
logger = logging.getLogger(__name__)

#
# Helper Functions
#


def run_command(command: Sequence[str], env: dict[str, str], cwd) -> int:
    """
    Run one command to completion, collapsing any failure to status 1.

    @param command (Sequence[str]): Program and arguments
    @param env (dict): Child environment
    @param cwd: Working directory
    @returns int - 0 on success, 1 otherwise
    """

    logger.info(f"Running: {' '.join(command)}")
    try:
        status = run_supervised(command, env=env, cwd=cwd)
    except OSError as e:
        logger.error(f"Command failed: {e}")
        return 1

    if status != 0:
        logger.error(f"Command failed: {command[0]} exited with status {status}")
        return 1
    return 0


def ensure_dependencies(
    paths: PathBundle,
    env: dict[str, str],
    install_command: Optional[Sequence[str]] = None,
) -> int:
    """
    Install node dependencies when node_modules is missing.

    @returns int - 0 when present or installed, 1 when installation failed
    """

    if (paths.root / "node_modules").exists():
        return 0

    logger.info("Installing dependencies...")
    return run_command(install_command or config.INSTALL_COMMAND, env, paths.root)


#
# Handler Functions
#


def start_ubuntu(
    paths: PathBundle,
    base_env: Optional[dict[str, str]] = None,
    install_command: Optional[Sequence[str]] = None,
) -> int:
    """
    Install dependencies if needed, then run the server for the current mode.

    @param paths (PathBundle): Project paths
    @param base_env (Optional[dict]): Starting environment (defaults to os.environ)
    @param install_command (Optional[Sequence[str]]): Dependency installer override
    @returns int - 0 on success, 1 on any failure
    """

    base = dict(os.environ if base_env is None else base_env)
    mode = resolve_mode(base)

    logger.info("Starting ToyShare application on Ubuntu...")
    logger.info(f"Working directory: {paths.root}")

    # Installer sees the exported paths too
    install_env = {**base, **paths.as_env()}
    if ensure_dependencies(paths, install_env, install_command) != 0:
        return 1

    extra = None
    if mode is Mode.DEVELOPMENT:
        extra = {"NODE_OPTIONS": config.UBUNTU_NODE_OPTIONS}

    logger.info(f"Starting in {mode.value} mode...")
    env = build_environment(mode, paths, base=base, extra=extra)
    return run_command(select_command(mode, paths), env, paths.root)


def main() -> int:
    parser = argparse.ArgumentParser(description="Start ToyShare on Ubuntu")
    parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    context = install_context()
    return start_ubuntu(context.paths)


if __name__ == "__main__":
    sys.exit(main())
