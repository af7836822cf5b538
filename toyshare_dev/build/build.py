#
# Imports
#

# Standard library
import argparse
import json
import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

# Config
from toyshare_dev import config

# Paths
from toyshare_dev.context import install_context
from toyshare_dev.paths import PathBundle

# Exit codes
from toyshare_dev.launcher.supervisor import exit_status

# Configure logging
logger = logging.getLogger(__name__)

#
# Constants
#

# Production bootstrap written next to the bundled server (dist/index.js)
BOOTSTRAP_NAME = "app.js"

BOOTSTRAP_TEMPLATE = """\
// Production entry point: restore CommonJS-style globals, then start the server
import { fileURLToPath } from 'url';
import { dirname } from 'path';
import { createRequire } from 'module';

globalThis.__filename = fileURLToPath(import.meta.url);
globalThis.__dirname = dirname(globalThis.__filename);
globalThis.require = createRequire(import.meta.url);

await import('./index.js');
"""

# Manifest that marks dist/ as an ES module package
PRODUCTION_MANIFEST = {
    "name": "toyshare-production",
    "version": "1.0.0",
    "type": "module",
    "main": BOOTSTRAP_NAME,
    "scripts": {"start": f"NODE_ENV=production node {BOOTSTRAP_NAME}"},
}


#
# Errors
#


class BuildError(Exception):
    """A build step failed; returncode is what the build exits with"""

    def __init__(self, step: str, returncode: int, message: str):
        super().__init__(message)
        self.step = step
        self.returncode = returncode


#
# Helper Functions
#


def render_bootstrap() -> str:
    """Bootstrap source: globals are set before the server module is imported"""
    return BOOTSTRAP_TEMPLATE


def run_step(name: str, command: Sequence[str], cwd: Path) -> None:
    """
    Run one bundler synchronously with inherited stdio.

    @param name (str): Step name for messages
    @param command (Sequence[str]): Program and arguments
    @param cwd (Path): Working directory
    @raises BuildError - Non-zero exit or the program could not be started
    """

    logger.info(f"Building {name}...")
    try:
        result = subprocess.run(list(command), cwd=cwd)
    except OSError as e:
        raise BuildError(name, 1, f"Could not run {command[0]}: {e}") from e

    if result.returncode != 0:
        status = exit_status(result.returncode)
        raise BuildError(name, status, f"{name} build failed with exit code {status}")


def write_production_files(dist_dir: Path) -> list[str]:
    """Write the bootstrap and the production manifest, return their paths"""
    dist_dir.mkdir(parents=True, exist_ok=True)

    bootstrap = dist_dir / BOOTSTRAP_NAME
    bootstrap.write_text(render_bootstrap())

    manifest = dist_dir / "package.json"
    manifest.write_text(json.dumps(PRODUCTION_MANIFEST, indent=2) + "\n")

    return [str(bootstrap), str(manifest)]


#
# Handler Functions
#


def build_all(
    paths: PathBundle,
    frontend_command: Optional[Sequence[str]] = None,
    server_command: Optional[Sequence[str]] = None,
) -> dict[str, Any]:
    """
    Build the frontend, then the server, then write the production entry point

    @param paths (PathBundle): Project paths
    @param frontend_command (Optional[Sequence[str]]): Asset bundler override
    @param server_command (Optional[Sequence[str]]): Server bundler override
    @returns Dict[str, Any] - Response with status and results
    """

    logger.info("Building ToyShare for production...")

    # A bootstrap left from an earlier build must not outlive a failed one
    stale = paths.dist / BOOTSTRAP_NAME
    if stale.exists():
        stale.unlink()

    steps = [
        ("frontend", frontend_command or config.FRONTEND_BUILD_COMMAND),
        ("backend", server_command or config.SERVER_BUILD_COMMAND),
    ]

    completed = []
    try:
        for name, command in steps:
            run_step(name, command, paths.root)
            completed.append(name)
    except BuildError as e:
        logger.error(str(e))
        return {
            "status": "error",
            "message": str(e),
            "step": e.step,
            "returncode": e.returncode,
            "steps_completed": completed,
        }

    logger.info("Creating production entry point...")
    files = write_production_files(paths.dist)

    logger.info("Build completed successfully!")
    logger.info(f"To run in production: NODE_ENV=production node {config.BOOTSTRAP_ENTRY}")
    return {
        "status": "success",
        "message": "Build completed successfully",
        "steps_completed": completed,
        "files_written": files,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Build ToyShare for production")
    parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    context = install_context()
    result = build_all(context.paths)
    print(json.dumps(result, indent=2))
    return 0 if result["status"] == "success" else result["returncode"]


if __name__ == "__main__":
    sys.exit(main())
