# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Package-manager operations executed inside a chroot.
"""
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from ..MODELS.repository import RepositoryDescriptor
from ..RUNNERS.command_runner import CommandRunner
from .chroot_mounts import ChrootMounts

logger = logging.getLogger(__name__)


class ChrootPackageManager(ABC):
    """
    Package-manager operations scoped to one root filesystem. Used as a
    context manager so the chroot environment exists only while in use.
    """

    def __enter__(self) -> "ChrootPackageManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    @abstractmethod
    def set_env(self, key: str, value: str) -> None:
        """Sets an environment variable for every later command."""

    @abstractmethod
    def install(self, names: Iterable[str]) -> None:
        """Installs packages. Already installed packages are not an error."""

    @abstractmethod
    def remove(self, names: Iterable[str]) -> None:
        """Removes packages."""

    @abstractmethod
    def add_key(self, keyring_paths: List[str], keyserver: str, key_id: str) -> None:
        """Imports ``key_id`` from ``keyserver`` into each keyring."""

    @abstractmethod
    def add_repository(self, descriptors: Iterable[RepositoryDescriptor]) -> None:
        """Registers repositories in the given order, keeping existing ones."""

    @abstractmethod
    def update_index(self) -> None:
        """Refreshes the package index."""

    @abstractmethod
    def upgrade(self) -> None:
        """Upgrades every installed package."""


class AptChroot(ChrootPackageManager):
    """
    ChrootPackageManager driving apt through ``chroot``.
    """
    def __init__(self,
                 root: str,
                 runner: Optional[CommandRunner] = None,
                 mounts: Optional[ChrootMounts] = None):
        """
        Initializes the apt chroot.

        :param root: Mounted root filesystem to operate on.
        :param runner: Command runner for chroot invocations.
        :param mounts: Host filesystems to bind into the root while in use.
        """
        self.root = root
        self.runner = runner or CommandRunner()
        self.mounts = mounts if mounts is not None else ChrootMounts(root)
        self.env: Dict[str, str] = {"DEBIAN_FRONTEND": "noninteractive"}

    def __enter__(self) -> "AptChroot":
        self.mounts.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.mounts.__exit__(exc_type, exc, tb)

    def set_env(self, key: str, value: str) -> None:
        self.env[key] = value

    def _command(self, *args: str) -> None:
        env = os.environ.copy()
        env.update(self.env)
        self.runner.watch(["chroot", self.root, *args], env=env)

    def install(self, names: Iterable[str]) -> None:
        names = sorted(set(names))
        if not names:
            return
        logger.debug("apt install: %s", " ".join(names))
        self._command("apt-get", "install", "-y", *names)

    def remove(self, names: Iterable[str]) -> None:
        names = sorted(set(names))
        if not names:
            return
        logger.debug("apt remove: %s", " ".join(names))
        self._command("apt-get", "remove", "-y", "--purge", *names)
        self._command("apt-get", "autoremove", "-y", "--purge")

    def add_key(self, keyring_paths: List[str], keyserver: str, key_id: str) -> None:
        for path in keyring_paths:
            self._command("apt-key", "--keyring", path, "adv", "--keyserver", keyserver, "--recv-keys", key_id)

    def add_repository(self, descriptors: Iterable[RepositoryDescriptor]) -> None:
        for descriptor in descriptors:
            self._command("add-apt-repository", "--yes", "--no-update", descriptor.source_line())

    def update_index(self) -> None:
        self._command("apt-get", "update")

    def upgrade(self) -> None:
        self._command("apt-get", "full-upgrade", "-y")
