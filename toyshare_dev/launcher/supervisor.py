#
# Imports
#

# Standard library
import logging
import signal
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

# Configure logging
logger = logging.getLogger(__name__)

#
# Constants
#

# Signals relayed to the child: interrupt everywhere, terminate where it exists
RELAYED_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)) if sig
)


#
# Helper Functions
#


def exit_status(returncode: int) -> int:
    """
    Map a child return code to a process exit status.

    A child killed by signal N reports -N; shells report that as 128 + N.
    """
    if returncode < 0:
        return 128 + abs(returncode)
    return returncode


#
# Supervised Child
#


class SupervisedChild:
    """
    One child process: spawn it, wait for it, signal it.

    stdin/stdout/stderr are inherited so the child's output reaches the operator.
    """

    def __init__(self, command: Sequence[str]):
        self.command = list(command)
        self._process: Optional[subprocess.Popen] = None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None

    def spawn(
        self,
        env: Optional[dict[str, str]] = None,
        cwd: Optional[Union[str, Path]] = None,
    ) -> "SupervisedChild":
        """
        Start the child.

        @param env (Optional[dict]): Complete environment for the child
        @param cwd (Optional[str | Path]): Working directory for the child
        @returns SupervisedChild - self, for chaining
        @raises OSError - The command could not be started (missing executable, ...)
        """

        if self._process is not None:
            raise RuntimeError(f"Child already spawned (pid={self._process.pid})")

        logger.debug("Spawning %s", " ".join(self.command))
        self._process = subprocess.Popen(self.command, env=env, cwd=cwd)
        return self

    def wait(self) -> int:
        """Block until the child exits and return its raw return code"""
        if self._process is None:
            raise RuntimeError("Child was never spawned")
        return self._process.wait()

    def send_signal(self, sig: int) -> bool:
        """Deliver sig to the child if it is running, False when it is not"""
        if self._process is None or self._process.poll() is not None:
            return False
        self._process.send_signal(sig)
        return True


#
# Signal Relay
#


class SignalRelay:
    """
    Forward termination signals received by this process to a child.

    Installing replaces this process's handlers for the relayed signals;
    uninstall() puts the previous ones back. Signals that arrive before the
    child is running are held until flush().
    """

    def __init__(self, child, signals: Sequence[int] = RELAYED_SIGNALS):
        self.child = child
        self.signals = tuple(signals)
        self.received: list[int] = []
        self.pending: list[int] = []
        self._previous: dict[int, object] = {}

    def forward(self, signum: int, frame=None) -> None:
        """Signal handler: record and pass the signal on"""
        self.received.append(signum)
        if signum == getattr(signal, "SIGINT", None):
            logger.info("Stopping server...")
        if not self.child.send_signal(signum):
            self.pending.append(signum)

    def flush(self) -> None:
        """Deliver signals held while the child was not yet running"""
        pending, self.pending = self.pending, []
        for signum in pending:
            self.child.send_signal(signum)

    def install(self) -> "SignalRelay":
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self.forward)
        return self

    def uninstall(self) -> None:
        for sig, handler in self._previous.items():
            # None means the handler was set outside Python and cannot be restored
            if handler is not None:
                signal.signal(sig, handler)
        self._previous.clear()

    def __enter__(self) -> "SignalRelay":
        return self.install()

    def __exit__(self, *exc) -> None:
        self.uninstall()


def run_supervised(
    command: Sequence[str],
    env: Optional[dict[str, str]] = None,
    cwd: Optional[Union[str, Path]] = None,
) -> int:
    """
    Spawn command, relay termination signals to it, and wait for it.

    @param command (Sequence[str]): Program and arguments
    @param env (Optional[dict]): Environment for the child
    @param cwd (Optional[str | Path]): Working directory for the child
    @returns int - Exit status (signal deaths mapped to 128 + N)
    @raises OSError - The command could not be started
    """

    child = SupervisedChild(command)
    with SignalRelay(child) as relay:
        child.spawn(env=env, cwd=cwd)
        relay.flush()
        returncode = child.wait()

    logger.info(f"{command[0]} exited with code {returncode}")
    return exit_status(returncode)
