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
Builder driving a container image from creation to exported archive.
"""
import logging
import os
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from ..BACKENDS.bootstrapper import Bootstrapper, Debootstrap
from ..BACKENDS.image_backend import BuildahBackend, ImageBackend
from ..CHROOT.provisioner import ChrootProvisioner
from ..MODELS.build_config import BuildConfig
from ..MODELS.pipeline_state import PipelineState, Stage
from ..MODELS.profile import ContainerProfile
from ..MODELS.repository import TrustKey
from ..PROFILES import package_registry
from ..REPOSITORIES.repository_set import RepositorySet
from ..UTILS.errors import PipelineError

logger = logging.getLogger(__name__)


class ImageBuilder:
    """
    Owns the lifecycle of one container image: create, mount, bootstrap,
    provision, commit and export.

    Every stage runs once. The first failure aborts the build with a
    PipelineError naming the stage; images or mounts created before the
    failure are left in place for inspection.
    """
    def __init__(self,
                 config: Optional[BuildConfig] = None,
                 backend: Optional[ImageBackend] = None,
                 bootstrapper: Optional[Bootstrapper] = None,
                 provisioner: Optional[ChrootProvisioner] = None):
        """
        Initializes the ImageBuilder.

        :param config: Build configuration.
        :param backend: Image backend. Defaults to buildah.
        :param bootstrapper: Base system bootstrapper. Defaults to debootstrap.
        :param provisioner: Chroot provisioner.
        """
        self.config = config or BuildConfig()
        self.backend = backend or BuildahBackend()
        self.bootstrapper = bootstrapper or Debootstrap()
        self.provisioner = provisioner or ChrootProvisioner(
            chroot_env=self.config.chroot_env,
            build_packages=self.config.build_packages,
        )
        self.repository_set = RepositorySet(self.config)
        self.state = PipelineState()

    @property
    def trust_key(self) -> TrustKey:
        return TrustKey(
            keyserver=self.config.keyserver,
            key_id=self.config.key_id,
            keyring_paths=self.config.keyring_paths,
        )

    @contextmanager
    def _stage(self, stage: Stage, message: str) -> Iterator[None]:
        logger.info(message)
        try:
            yield
        except Exception as e:
            error = PipelineError(stage, e)
            logger.error("%s", error)
            if self.state.image_id and self.state.committed_name is None:
                logger.error("Working container %s was left in place for inspection.", self.state.image_id)
            raise error from e
        self.state.completed = stage

    def build(self,
              profile: ContainerProfile,
              extra_repos: Iterable[str] = (),
              extra_packages: Iterable[str] = ()) -> str:
        """
        Builds and exports an image for ``profile``.

        :param profile: The container profile to build.
        :param extra_repos: Staging branch names registered after the base repositories.
        :param extra_packages: Packages installed alongside the profile's set.
        :return: Path of the exported archive.
        :raises PipelineError: If any stage fails.
        """
        install_set, cleanup_set = package_registry.resolve(profile)
        if cleanup_set:
            # configured build tooling is removed along with the profile cleanup
            cleanup_set = cleanup_set | frozenset(self.config.build_packages)
        repositories = self.repository_set.resolve(extra_repos)
        extra_packages = list(extra_packages)
        image_name = profile.image_name(self.config.archive_prefix)
        archive_path = os.path.join(self.config.output_dir, profile.archive_name(self.config.archive_prefix))
        self.state = PipelineState()

        with self._stage(Stage.CREATE, "Creating container."):
            self.state.image_id = self.backend.create_empty()

        with self._stage(Stage.MOUNT, f"Mounting container {self.state.image_id}."):
            self.state.mount_path = self.backend.mount(self.state.image_id)

        with self._stage(Stage.BOOTSTRAP, f"Adding {self.config.bootstrap_variant} to container."):
            self.bootstrapper.bootstrap(
                self.state.mount_path,
                self.config.codename,
                self.config.bootstrap_mirror,
                variant=self.config.bootstrap_variant,
            )

        with self._stage(Stage.PROVISION, "Adding Pop!_OS specific changes to the container."):
            self.provisioner.provision(
                self.state.mount_path,
                repositories,
                self.trust_key,
                install_set,
                cleanup_set,
                extra_packages=extra_packages,
            )
            self.state.provisioned = True

        with self._stage(Stage.COMMIT, f"Committing container as {image_name}."):
            self.state.committed_name = self.backend.commit(self.state.image_id, image_name, squash=True, remove_working=True)

        with self._stage(Stage.EXPORT, f"Exporting {self.state.committed_name} to {archive_path}."):
            self.backend.export(self.state.committed_name, archive_path)
            self.backend.remove_tag(self.state.committed_name)
            self.state.archive_path = archive_path

        logger.info("Image written to %s.", archive_path)
        return archive_path
