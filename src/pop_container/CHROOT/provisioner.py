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
Configuration of a freshly bootstrapped root filesystem from inside a chroot.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..MODELS.build_config import BuildConfig
from ..MODELS.repository import RepositoryDescriptor, TrustKey
from .package_manager import AptChroot, ChrootPackageManager

logger = logging.getLogger(__name__)


class ChrootProvisioner:
    """
    Brings a bootstrapped root up to a profile's package set.

    Steps run strictly in order and the first failure propagates:
    environment, build tooling, trust key, repositories, update and upgrade,
    install, then cleanup removal.
    """
    def __init__(self,
                 chroot_factory: Callable[[str], ChrootPackageManager] = AptChroot,
                 chroot_env: Optional[Dict[str, str]] = None,
                 build_packages: Optional[List[str]] = None):
        """
        Initializes the provisioner.

        :param chroot_factory: Creates a package manager for a mount path.
        :param chroot_env: Environment set inside the chroot before any command.
        :param build_packages: Packages needed to manage repositories.
        """
        self.chroot_factory = chroot_factory
        defaults = BuildConfig()
        self.chroot_env = dict(chroot_env if chroot_env is not None else defaults.chroot_env)
        self.build_packages = list(build_packages if build_packages is not None else defaults.build_packages)

    def provision(self,
                  mount_path: str,
                  repositories: List[RepositoryDescriptor],
                  trust_key: TrustKey,
                  install_set: Iterable[str],
                  cleanup_set: Iterable[str],
                  extra_packages: Iterable[str] = ()) -> None:
        """
        Configures repositories and installs packages inside ``mount_path``.

        :param mount_path: Root filesystem, already bootstrapped.
        :param repositories: Repositories to register, in order.
        :param trust_key: Key that signs the repositories.
        :param install_set: The profile's mandatory packages.
        :param cleanup_set: Packages removed after installation; may be empty.
        :param extra_packages: Caller-requested packages installed after the mandatory set.
        """
        cleanup_set = list(cleanup_set)
        extra_packages = list(extra_packages)

        with self.chroot_factory(mount_path) as chroot:
            for key, value in self.chroot_env.items():
                chroot.set_env(key, value)

            logger.info("Installing build packages.")
            chroot.install(self.build_packages)

            logger.info("Importing key %s from %s.", trust_key.key_id, trust_key.keyserver)
            chroot.add_key(trust_key.keyring_paths, trust_key.keyserver, trust_key.key_id)

            logger.info("Adding %d repositories.", len(repositories))
            for descriptor in repositories:
                logger.debug("  %s", descriptor.source_line())
            chroot.add_repository(repositories)

            logger.info("Installing updates.")
            chroot.update_index()
            chroot.upgrade()

            logger.info("Installing profile packages.")
            chroot.install(install_set)
            if extra_packages:
                logger.info("Installing extra packages: %s", ", ".join(extra_packages))
                chroot.install(extra_packages)

            if cleanup_set:
                logger.info("Removing build packages.")
                chroot.remove(cleanup_set)
