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
Shared fakes for the pipeline collaborators. Every fake appends to a common
call log so tests can assert ordering across collaborators.
"""
import pytest
from pop_container.BACKENDS.bootstrapper import Bootstrapper
from pop_container.BACKENDS.image_backend import ImageBackend
from pop_container.BUILDERS.image_builder import ImageBuilder
from pop_container.CHROOT.package_manager import ChrootPackageManager
from pop_container.CHROOT.provisioner import ChrootProvisioner
from pop_container.MODELS.build_config import BuildConfig
from pop_container.UTILS.errors import CommandError


def _maybe_fail(fail_on, name):
    if name in fail_on:
        raise CommandError(["fake", name], 1)


class FakeBackend(ImageBackend):
    """Records image operations."""

    def __init__(self, calls, fail_on=()):
        self.calls = calls
        self.fail_on = set(fail_on)

    def create_empty(self):
        self.calls.append(("create_empty",))
        _maybe_fail(self.fail_on, "create_empty")
        return "working-container"

    def mount(self, image_id):
        self.calls.append(("mount", image_id))
        _maybe_fail(self.fail_on, "mount")
        return "/var/lib/containers/storage/overlay/abc/merged"

    def commit(self, image_id, new_name, squash=True, remove_working=True):
        self.calls.append(("commit", image_id, new_name, squash, remove_working))
        _maybe_fail(self.fail_on, "commit")
        return new_name

    def export(self, committed_id, archive_path):
        self.calls.append(("export", committed_id, archive_path))
        _maybe_fail(self.fail_on, "export")

    def remove_tag(self, committed_id):
        self.calls.append(("remove_tag", committed_id))
        _maybe_fail(self.fail_on, "remove_tag")


class FakeBootstrapper(Bootstrapper):
    """Records bootstrap calls."""

    def __init__(self, calls, fail_on=()):
        self.calls = calls
        self.fail_on = set(fail_on)

    def bootstrap(self, mount_path, codename, mirror_url, variant="minbase"):
        self.calls.append(("bootstrap", mount_path, codename, mirror_url, variant))
        _maybe_fail(self.fail_on, "bootstrap")


class FakeChroot(ChrootPackageManager):
    """Records package-manager calls made inside the chroot."""

    def __init__(self, root, calls, fail_on=()):
        self.root = root
        self.calls = calls
        self.fail_on = set(fail_on)
        self.env = {}

    def __enter__(self):
        self.calls.append(("enter", self.root))
        return self

    def __exit__(self, exc_type, exc, tb):
        self.calls.append(("exit", self.root))

    def set_env(self, key, value):
        self.env[key] = value
        self.calls.append(("set_env", key, value))

    def install(self, names):
        self.calls.append(("install", frozenset(names)))
        _maybe_fail(self.fail_on, "install")

    def remove(self, names):
        self.calls.append(("remove", frozenset(names)))
        _maybe_fail(self.fail_on, "remove")

    def add_key(self, keyring_paths, keyserver, key_id):
        self.calls.append(("add_key", tuple(keyring_paths), keyserver, key_id))
        _maybe_fail(self.fail_on, "add_key")

    def add_repository(self, descriptors):
        self.calls.append(("add_repository", list(descriptors)))
        _maybe_fail(self.fail_on, "add_repository")

    def update_index(self):
        self.calls.append(("update_index",))
        _maybe_fail(self.fail_on, "update_index")

    def upgrade(self):
        self.calls.append(("upgrade",))
        _maybe_fail(self.fail_on, "upgrade")


@pytest.fixture
def calls():
    return []


@pytest.fixture
def config(tmp_path):
    return BuildConfig(output_dir=str(tmp_path), escalate=False)


@pytest.fixture
def make_provisioner(calls):
    """Builds a provisioner whose chroot fails on the named operations."""
    def make(fail_on=()):
        return ChrootProvisioner(chroot_factory=lambda root: FakeChroot(root, calls, fail_on))
    return make


@pytest.fixture
def make_builder(calls, config):
    """Builds an ImageBuilder from fakes that fail on the named operations."""
    def make(fail_on=(), build_config=None):
        build_config = build_config or config
        return ImageBuilder(
            config=build_config,
            backend=FakeBackend(calls, fail_on),
            bootstrapper=FakeBootstrapper(calls, fail_on),
            provisioner=ChrootProvisioner(
                chroot_factory=lambda root: FakeChroot(root, calls, fail_on),
                chroot_env=build_config.chroot_env,
                build_packages=build_config.build_packages,
            ),
        )
    return make
