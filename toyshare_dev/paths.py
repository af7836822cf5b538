#
# Imports
#

# Standard library
import enum
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

#
# Types
#


class Invocation(enum.Enum):
    """How the running program was started"""

    MODULE = "module"  # python -m, or imported by another program
    SCRIPT = "script"  # python path/to/file.py, console scripts


@dataclass(frozen=True)
class PathBundle:
    """
    Absolute project paths derived from a single root.

    Paths are computed, never checked: a directory that does not exist yet
    (dist before the first build, for example) is still a valid entry.
    """

    root: Path
    client: Path
    client_src: Path
    shared: Path
    assets: Path
    dist: Path
    dist_public: Path
    migrations: Path

    def as_dict(self) -> dict[str, str]:
        """Symbolic name → absolute path string"""
        return {
            "root": str(self.root),
            "client": str(self.client),
            "client_src": str(self.client_src),
            "shared": str(self.shared),
            "assets": str(self.assets),
            "dist": str(self.dist),
            "dist_public": str(self.dist_public),
            "migrations": str(self.migrations),
        }

    def as_env(self) -> dict[str, str]:
        """Path variables exported to child processes"""
        return {
            "ROOT_DIR": str(self.root),
            "CLIENT_DIR": str(self.client),
            "CLIENT_SRC": str(self.client_src),
            "SHARED_DIR": str(self.shared),
            "ASSETS_DIR": str(self.assets),
        }


#
# Helper Functions
#


def locate(
    invocation: Invocation,
    module_file: Optional[str] = None,
    argv0: Optional[str] = None,
) -> Path:
    """
    Resolve the running program's own location.

    @param invocation (Invocation): How the program was started
    @param module_file (Optional[str]): Module file (defaults to this module's __file__)
    @param argv0 (Optional[str]): Script path (defaults to sys.argv[0])
    @returns Path - Absolute path of the file that is running
    """

    if invocation is Invocation.SCRIPT:
        script = argv0 if argv0 is not None else sys.argv[0]
        return Path(script).resolve()

    return Path(module_file if module_file is not None else __file__).resolve()


def resolve_paths(location: Path) -> PathBundle:
    """
    Build the path bundle for a file living one directory below the root.

    @param location (Path): File whose parent directory sits directly under the root
    @returns PathBundle - Root and derived project paths
    """

    # <root>/toyshare_dev/paths.py → toyshare_dev → root
    root = Path(location).resolve().parent.parent

    return PathBundle(
        root=root,
        client=root / "client",
        client_src=root / "client" / "src",
        shared=root / "shared",
        assets=root / "attached_assets",
        dist=root / "dist",
        dist_public=root / "dist" / "public",
        migrations=root / "migrations",
    )


#
# Path Constants
#

# Computed once from this module's own file, identical under either invocation
PATHS = resolve_paths(locate(Invocation.MODULE))

# Project root (toyshare_dev/paths.py → toyshare_dev → project root)
PROJECT_ROOT = PATHS.root

# Client sources
CLIENT_DIR = PATHS.client
CLIENT_SRC = PATHS.client_src

# Shared schema and static assets
SHARED_DIR = PATHS.shared
ASSETS_DIR = PATHS.assets

# Build output
DIST_DIR = PATHS.dist
DIST_PUBLIC_DIR = PATHS.dist_public

# Database migrations generated from shared/schema.ts
MIGRATIONS_DIR = PATHS.migrations
