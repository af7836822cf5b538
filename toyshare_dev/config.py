#
# Imports
#

# Standard library
import os
from typing import Optional

# Environment variables
from dotenv import load_dotenv
load_dotenv()


#
# Constants
#

# Environment variable names
MODE_VAR = "NODE_ENV"
VITE_CONFIG_VAR = "VITE_CONFIG_PATH"
DATABASE_URL_VAR = "DATABASE_URL"

# Mode flag values
DEVELOPMENT = "development"
PRODUCTION = "production"

# Bundler config handed to the dev server
VITE_CONFIG_PATH = "./vite.config.mjs"

# Server entry points (relative to the project root)
SERVER_ENTRY = "server/index.ts"
BOOTSTRAP_ENTRY = "dist/app.js"

# External commands
DEV_COMMAND = ["tsx", SERVER_ENTRY]
PROD_COMMAND = ["node", BOOTSTRAP_ENTRY]
INSTALL_COMMAND = ["npm", "install"]
FRONTEND_BUILD_COMMAND = ["vite", "build", "--config", "vite.config.mjs"]
SERVER_BUILD_COMMAND = [
    "esbuild",
    SERVER_ENTRY,
    "--platform=node",
    "--packages=external",
    "--bundle",
    "--format=esm",
    "--outdir=dist",
]
GENERATE_MIGRATIONS_COMMAND = [
    "npx",
    "drizzle-kit",
    "generate:pg",
    "--schema=./shared/schema.ts",
]

# Node flags the Ubuntu wrapper adds in development
UBUNTU_NODE_OPTIONS = "--experimental-json-modules --experimental-vm-modules"


#
# Helper Functions
#


def get_mode_flag(env: Optional[dict[str, str]] = None) -> Optional[str]:
    """Read the mode flag from env (defaults to the process environment)"""
    source = os.environ if env is None else env
    return source.get(MODE_VAR)


def get_database_url() -> Optional[str]:
    """Read the database connection string, empty values count as unset"""
    return os.getenv(DATABASE_URL_VAR) or None
