#
# Imports
#

# Standard library
import argparse
import enum
import logging
import os
import sys
from typing import Optional

# Config
from toyshare_dev import config

# Paths
from toyshare_dev.context import install_context
from toyshare_dev.paths import PathBundle

# Supervision
from toyshare_dev.launcher.supervisor import run_supervised

# Configure logging
logger = logging.getLogger(__name__)

#
# Types
#


class Mode(enum.Enum):
    DEVELOPMENT = config.DEVELOPMENT
    PRODUCTION = config.PRODUCTION


#
# Helper Functions
#


def resolve_mode(env: Optional[dict[str, str]] = None) -> Mode:
    """Production only when the mode flag says so exactly, development otherwise"""
    if config.get_mode_flag(env) == config.PRODUCTION:
        return Mode.PRODUCTION
    return Mode.DEVELOPMENT


def select_command(mode: Mode, paths: PathBundle) -> list[str]:
    """
    Pick the command for a mode.

    Development runs the TypeScript server through the interpreter; production
    runs the bundled bootstrap. The two never mix.

    @param mode (Mode): Launch mode
    @param paths (PathBundle): Project paths
    @returns list[str] - Program and arguments
    """

    if mode is Mode.PRODUCTION:
        program, entry = config.PROD_COMMAND
    else:
        program, entry = config.DEV_COMMAND
    return [program, str(paths.root / entry)]


def build_environment(
    mode: Mode,
    paths: PathBundle,
    base: Optional[dict[str, str]] = None,
    extra: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """
    Build the child's environment snapshot.

    @param mode (Mode): Launch mode, written to the mode flag
    @param paths (PathBundle): Paths exported as ROOT_DIR, CLIENT_DIR, ...
    @param base (Optional[dict]): Starting environment (defaults to os.environ)
    @param extra (Optional[dict]): Additional overrides applied last
    @returns dict[str, str] - New environment, base is left untouched
    """

    env = dict(os.environ if base is None else base)
    env.update(paths.as_env())
    env[config.MODE_VAR] = mode.value
    env[config.VITE_CONFIG_VAR] = config.VITE_CONFIG_PATH
    if extra:
        env.update(extra)
    return env


#
# Handler Functions
#


def launch(mode: Mode, paths: PathBundle, base_env: Optional[dict[str, str]] = None) -> int:
    """
    Launch the ToyShare server and wait for it.

    @param mode (Mode): Development or production
    @param paths (PathBundle): Project paths
    @param base_env (Optional[dict]): Starting environment (defaults to os.environ)
    @returns int - Exit status to propagate
    """

    logger.info(f"Starting ToyShare in {mode.value} mode...")
    logger.info(f"Working directory: {paths.root}")

    command = select_command(mode, paths)
    env = build_environment(mode, paths, base=base_env)

    try:
        return run_supervised(command, env=env, cwd=paths.root)
    except OSError as e:
        logger.error(f"Failed to start {command[0]}: {e}")
        return 1


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Start ToyShare (NODE_ENV=production runs the bundled build)"
    )
    parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    context = install_context()
    return launch(resolve_mode(), context.paths)


if __name__ == "__main__":
    sys.exit(main())
