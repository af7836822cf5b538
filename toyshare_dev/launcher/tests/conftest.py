#
# Imports
#

# Standard library
import sys

# Third party
import pytest

# Paths
from toyshare_dev.paths import resolve_paths


#
# Helpers
#


def python_command(code: str) -> list[str]:
    """Command running a snippet in a fresh interpreter"""
    return [sys.executable, "-c", code]


#
# Fixtures
#


@pytest.fixture
def project_paths(tmp_path):
    """Path bundle rooted at tmp_path"""
    return resolve_paths(tmp_path / "toyshare_dev" / "paths.py")


@pytest.fixture
def exit_with():
    """Factory for a command that exits with the given status"""
    return lambda status: python_command(f"import sys; sys.exit({status})")


@pytest.fixture
def touch_command():
    """Factory for a command that creates a marker file"""
    return lambda path: python_command(f"open({str(path)!r}, 'w').close()")
