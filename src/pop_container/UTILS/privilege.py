"""
Re-invocation of the command line with root privileges.
"""
import logging
import os
import sys
from typing import Callable, List, Optional, Sequence

from .config_loader import ENV_PREFIX
from .identity import INVOKING_USER_ENV

logger = logging.getLogger(__name__)


def is_root() -> bool:
    return os.geteuid() == 0


def escalate_if_needed(user: str,
                       argv: Optional[Sequence[str]] = None,
                       execvpe: Callable = os.execvpe) -> None:
    """
    Replaces the current process with the same command run through sudo.
    Returns without doing anything when already root.

    :param user: Invoking user, exported to the new process as ``POP_CONTAINER_USER``.
    :param argv: Command line to re-run. Defaults to ``sys.argv``.
    :param execvpe: Process replacement function.
    """
    if is_root():
        return

    argv = list(sys.argv if argv is None else argv)
    env = os.environ.copy()
    env[INVOKING_USER_ENV] = user
    # sudo resets the environment; keep configuration overrides too
    preserved = sorted(name for name in env if name.startswith(ENV_PREFIX))
    command: List[str] = ["sudo", f"--preserve-env={','.join(preserved)}", sys.executable, *argv]
    logger.info("Root privileges are required; re-running with sudo.")
    execvpe("sudo", command, env)
