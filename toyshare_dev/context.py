#
# Imports
#

# Standard library
import importlib.util
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Optional

# Paths
from toyshare_dev.paths import Invocation, PathBundle, locate, resolve_paths

# Configure logging
logger = logging.getLogger(__name__)


#
# Runtime Context
#


@dataclass(frozen=True)
class RuntimeContext:
    """
    Process facts resolved once at startup.

    Replaces process-wide globals: components that need the program's own
    location, the project paths or a source loader receive this value (or
    read it through current_context()) instead of mutating shared state.
    """

    filename: Path
    dirname: Path
    invocation: Invocation
    paths: PathBundle
    _loaded: dict = field(default_factory=dict, repr=False, compare=False)

    def require(self, relative_path: str) -> ModuleType:
        """
        Load a Python source file relative to the context directory.

        Repeated calls for the same file return the same module object.

        @param relative_path (str): Path relative to dirname (absolute paths pass through)
        @returns ModuleType - The executed module
        """

        target = (self.dirname / relative_path).resolve()
        key = str(target)
        if key in self._loaded:
            return self._loaded[key]

        if not target.is_file():
            raise FileNotFoundError(f"Cannot load module, no such file: {target}")

        spec = importlib.util.spec_from_file_location(target.stem, target)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load module from {target}")

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        self._loaded[key] = module
        logger.debug("Loaded %s", target)
        return module


#
# Helper Functions
#

# The single context for this process, set by install_context()
_CONTEXT: Optional[RuntimeContext] = None


def detect_invocation() -> Invocation:
    """MODULE when __main__ came from a module spec (python -m)"""
    main = sys.modules.get("__main__")
    if main is None or getattr(main, "__spec__", None) is not None:
        return Invocation.MODULE
    # Interactive sessions and embedded interpreters have no __file__
    if getattr(main, "__file__", None) is None:
        return Invocation.MODULE
    return Invocation.SCRIPT


def main_module_file() -> Optional[Path]:
    """Resolved __main__.__file__, None for interactive or embedded interpreters"""
    main_file = getattr(sys.modules.get("__main__"), "__file__", None)
    return Path(main_file).resolve() if main_file else None


def build_context(invocation: Invocation, location: Optional[Path] = None) -> RuntimeContext:
    """
    Build a context without installing it.

    @param invocation (Invocation): How the program was started
    @param location (Optional[Path]): Program location. If None, MODULE uses the
        running __main__ file and SCRIPT uses argv[0]
    @returns RuntimeContext - Fresh context
    """

    if location is not None:
        filename = Path(location).resolve()
    elif invocation is Invocation.MODULE:
        filename = main_module_file() or locate(invocation)
    else:
        filename = locate(invocation)

    # Project paths always come from the resolver module, whatever was run
    paths = resolve_paths(locate(Invocation.MODULE))

    return RuntimeContext(
        filename=filename,
        dirname=filename.parent,
        invocation=invocation,
        paths=paths,
    )


def install_context(invocation: Optional[Invocation] = None) -> RuntimeContext:
    """
    Install the process context once and return it.

    Later calls return the already installed value unchanged.

    @param invocation (Optional[Invocation]): Override detection (first call only)
    @returns RuntimeContext - The process context
    """

    global _CONTEXT

    if _CONTEXT is None:
        resolved = invocation if invocation is not None else detect_invocation()
        _CONTEXT = build_context(resolved)
        logger.debug("Runtime context installed (%s, %s)", resolved.value, _CONTEXT.dirname)

    return _CONTEXT


def current_context() -> RuntimeContext:
    """Accessor for the process context, installing it on first use"""
    return install_context()
