#
# Imports
#

# Standard library
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Paths
from toyshare_dev.context import install_context

# Configure logging
logger = logging.getLogger(__name__)

#
# Constants
#

# Hosting-specific Vite plugins that production installs don't need
PACKAGES_TO_REMOVE = [
    "@replit/vite-plugin-cartographer",
    "@replit/vite-plugin-runtime-error-modal",
    "@replit/vite-plugin-shadcn-theme-json",
]

DEPLOY_MANIFEST_NAME = "package.json.deploy"

DEPLOYMENT_INSTRUCTIONS = [
    "1. Build the application: toyshare-build",
    "2. Ensure all environment variables are set in .env file",
    "3. Start the application: NODE_ENV=production toyshare-dev",
]


#
# Helper Functions
#


def strip_packages(manifest: dict[str, Any], packages: list[str]) -> list[str]:
    """Remove packages from dependencies and devDependencies in place, return what was removed"""
    removed = []
    for section in ("dependencies", "devDependencies"):
        deps = manifest.get(section) or {}
        for package in packages:
            if package in deps:
                del deps[package]
                removed.append(f"{section}:{package}")
                logger.info(f"Removed {section} entry: {package}")
    return removed


#
# Handler Functions
#


def prepare_deployment(root: Path) -> dict[str, Any]:
    """
    Write a deployment copy of package.json without hosting-specific packages

    @param root (Path): Project root containing package.json
    @returns Dict[str, Any] - Response with status and results
    """

    logger.info("Preparing ToyShare for deployment...")

    package_json = Path(root) / "package.json"
    try:
        manifest = json.loads(package_json.read_text())
    except (OSError, ValueError) as e:
        logger.error(f"Error preparing for deployment: {e}")
        return {"status": "error", "message": f"Error preparing for deployment: {e}"}

    removed = strip_packages(manifest, PACKAGES_TO_REMOVE)

    response: dict[str, Any] = {"status": "success", "packages_removed": len(removed)}

    if removed:
        deploy_path = Path(root) / DEPLOY_MANIFEST_NAME
        deploy_path.write_text(json.dumps(manifest, indent=2))
        logger.info(f"Created deployment-ready package.json at {deploy_path}")
        logger.info(f"To use it for deployment: mv {DEPLOY_MANIFEST_NAME} package.json")
        response["message"] = f"Wrote {DEPLOY_MANIFEST_NAME}"
        response["deploy_manifest"] = str(deploy_path)
    else:
        logger.info("No hosting-specific packages found in package.json")
        response["message"] = "Nothing to remove"

    logger.info("Deployment Instructions:")
    for line in DEPLOYMENT_INSTRUCTIONS:
        logger.info(line)

    return response


def main() -> int:
    parser = argparse.ArgumentParser(description="Prepare package.json for deployment")
    parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    context = install_context()
    result = prepare_deployment(context.paths.root)
    print(json.dumps(result, indent=2))
    return 0 if result["status"] == "success" else 1


if __name__ == "__main__":
    sys.exit(main())
