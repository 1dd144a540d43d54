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
Container image operations backed by buildah and podman.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..RUNNERS.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class ImageBackend(ABC):
    """
    Creates, mounts, commits and exports container filesystem images.
    """

    @abstractmethod
    def create_empty(self) -> str:
        """Creates a working container from scratch and returns its identifier."""

    @abstractmethod
    def mount(self, image_id: str) -> str:
        """Mounts the working container and returns the mount path."""

    @abstractmethod
    def commit(self, image_id: str, new_name: str, squash: bool = True, remove_working: bool = True) -> str:
        """Commits the working container as an image and returns its name."""

    @abstractmethod
    def export(self, committed_id: str, archive_path: str) -> None:
        """Saves a committed image to an archive file."""

    @abstractmethod
    def remove_tag(self, committed_id: str) -> None:
        """Removes a committed image from local storage."""


class BuildahBackend(ImageBackend):
    """
    ImageBackend that shells out to ``buildah``, and to ``podman`` for export.
    """

    def __init__(self, runner: Optional[CommandRunner] = None,
                 buildah: str = "buildah", podman: str = "podman"):
        """
        Initialize the backend.

        Args:
            runner: Command runner. Defaults to a new CommandRunner.
            buildah: buildah executable.
            podman: podman executable.
        """
        self.runner = runner or CommandRunner()
        self.buildah = buildah
        self.podman = podman

    def create_empty(self) -> str:
        return self.runner.run([self.buildah, "from", "scratch"])

    def mount(self, image_id: str) -> str:
        return self.runner.run([self.buildah, "mount", image_id])

    def commit(self, image_id: str, new_name: str, squash: bool = True, remove_working: bool = True) -> str:
        command = [self.buildah, "commit"]
        if squash:
            command.append("--squash")
        if remove_working:
            command.append("--rm")
        command += [image_id, new_name]
        self.runner.watch(command)
        return new_name

    def export(self, committed_id: str, archive_path: str) -> None:
        self.runner.watch([self.podman, "save", "-o", archive_path, committed_id])

    def remove_tag(self, committed_id: str) -> None:
        self.runner.watch([self.buildah, "rmi", committed_id])
