"""
Population of an empty root filesystem with a minimal base system.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..RUNNERS.command_runner import CommandRunner


class Bootstrapper(ABC):
    """
    Installs a minimal base operating system into a target directory.
    """

    @abstractmethod
    def bootstrap(self, mount_path: str, codename: str, mirror_url: str, variant: str = "minbase") -> None:
        """
        Populates ``mount_path`` from ``mirror_url``.

        :raises CommandError: If the bootstrap fails.
        """


class Debootstrap(Bootstrapper):
    """
    Bootstrapper using ``debootstrap``. Progress lines are streamed to the
    runner's line handler while the bootstrap runs.
    """
    def __init__(self, runner: Optional[CommandRunner] = None, executable: str = "debootstrap"):
        self.runner = runner or CommandRunner()
        self.executable = executable

    def bootstrap(self, mount_path: str, codename: str, mirror_url: str, variant: str = "minbase") -> None:
        self.runner.watch([
            self.executable,
            f"--variant={variant}",
            codename,
            mount_path,
            mirror_url,
        ])
