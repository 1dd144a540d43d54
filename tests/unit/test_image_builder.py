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
Unit tests for the image lifecycle and the pipeline driver.
"""
import os
import pytest
from pop_container.BUILDERS.pipeline import PipelineDriver
from pop_container.MODELS.build_config import BuildConfig
from pop_container.MODELS.pipeline_state import Stage
from pop_container.MODELS.profile import ContainerProfile
from pop_container.PROFILES import package_registry
from pop_container.REPOSITORIES.repository_set import RepositorySet
from pop_container.UTILS.errors import ErrorKind, PipelineError

MOUNT = "/var/lib/containers/storage/overlay/abc/merged"


def names(calls):
    return [call[0] for call in calls]


def find(calls, name):
    return [call for call in calls if call[0] == name]


class TestImageBuilder:
    """Tests for ImageBuilder."""

    def test_runtime_scenario(self, calls, config, make_builder, tmp_path):
        """Test a runtime build with no extras."""
        archive = make_builder().build(ContainerProfile.RUNTIME)

        assert archive == os.path.join(str(tmp_path), "pop-container-runtime.tar")
        installs = [call[1] for call in find(calls, "install")]
        assert installs[1] == package_registry.RUNTIME
        assert len(installs) == 2
        assert find(calls, "remove") == [("remove", package_registry.RUNTIME_CLEANUP)]
        registered = find(calls, "add_repository")[0][1]
        assert registered == RepositorySet(config).base_descriptors()

    def test_interactive_scenario(self, calls, make_builder):
        """Test an interactive build with an extra package."""
        archive = make_builder().build(ContainerProfile.INTERACTIVE, extra_packages=["firefox"])

        assert archive.endswith("pop-container-interactive.tar")
        installed = frozenset().union(*[call[1] for call in find(calls, "install")[1:]])
        assert installed == package_registry.INTERACTIVE | {"firefox"}
        assert find(calls, "remove") == []

    def test_extra_repository_scenario(self, calls, config, make_builder):
        """Test a staging branch is registered after the base repositories."""
        make_builder().build(ContainerProfile.RUNTIME, extra_repos=["staging-branch"])

        registered = find(calls, "add_repository")[0][1]
        base = RepositorySet(config).base_descriptors()
        assert registered[:-1] == base
        assert registered[-1].url == "http://apt.pop-os.org/staging/staging-branch"
        assert registered[-1].suite == config.codename

    def test_cleanup_includes_configured_build_packages(self, calls, make_builder, tmp_path):
        """Test overridden build tooling is removed from a runtime image."""
        build_config = BuildConfig(output_dir=str(tmp_path), build_packages=["apt-manage"])
        make_builder(build_config=build_config).build(ContainerProfile.RUNTIME)

        assert find(calls, "install")[0] == ("install", frozenset(["apt-manage"]))
        removed = find(calls, "remove")[0][1]
        assert "apt-manage" in removed
        assert package_registry.RUNTIME_CLEANUP <= removed

    def test_interactive_keeps_build_packages(self, calls, make_builder, tmp_path):
        """Test build tooling stays installed when the profile has no cleanup."""
        build_config = BuildConfig(output_dir=str(tmp_path), build_packages=["apt-manage"])
        make_builder(build_config=build_config).build(ContainerProfile.INTERACTIVE)
        assert find(calls, "remove") == []

    def test_duplicate_extra_package(self, calls, make_builder):
        """Test an extra package already in the profile set is harmless."""
        make_builder().build(ContainerProfile.RUNTIME, extra_packages=["curl"])
        assert find(calls, "install")[-1] == ("install", frozenset(["curl"]))

    def test_lifecycle_order(self, calls, make_builder):
        """Test backend and bootstrap calls surround provisioning."""
        make_builder().build(ContainerProfile.RUNTIME)
        order = names(calls)
        assert order[:3] == ["create_empty", "mount", "bootstrap"]
        assert order[-3:] == ["commit", "export", "remove_tag"]
        assert order.index("enter") > order.index("bootstrap")
        assert order.index("exit") < order.index("commit")

    def test_collaborator_arguments(self, calls, config, make_builder, tmp_path):
        """Test handles flow from one stage to the next."""
        make_builder().build(ContainerProfile.RUNTIME)
        assert find(calls, "mount") == [("mount", "working-container")]
        assert find(calls, "bootstrap") == [
            ("bootstrap", MOUNT, "jammy", "http://archive.ubuntu.com/ubuntu/", "minbase")
        ]
        assert find(calls, "enter") == [("enter", MOUNT)]
        assert find(calls, "commit") == [("commit", "working-container", "pop-container-runtime", True, True)]
        archive = os.path.join(str(tmp_path), "pop-container-runtime.tar")
        assert find(calls, "export") == [("export", "pop-container-runtime", archive)]
        assert find(calls, "remove_tag") == [("remove_tag", "pop-container-runtime")]

    def test_state_records_handles(self, make_builder):
        """Test the pipeline state holds every produced handle."""
        builder = make_builder()
        archive = builder.build(ContainerProfile.RUNTIME)
        state = builder.state
        assert state.image_id == "working-container"
        assert state.mount_path == MOUNT
        assert state.provisioned
        assert state.committed_name == "pop-container-runtime"
        assert state.archive_path == archive
        assert state.completed == Stage.EXPORT

    def test_bootstrap_failure(self, calls, make_builder):
        """Test a failed bootstrap stops before provisioning and commit."""
        with pytest.raises(PipelineError) as excinfo:
            make_builder(fail_on={"bootstrap"}).build(ContainerProfile.RUNTIME)

        assert excinfo.value.stage == Stage.BOOTSTRAP
        assert excinfo.value.kind == ErrorKind.COLLABORATOR
        assert "bootstrap" in str(excinfo.value)
        assert names(calls) == ["create_empty", "mount", "bootstrap"]

    @pytest.mark.parametrize("failing,stage", [
        ("create_empty", Stage.CREATE),
        ("mount", Stage.MOUNT),
        ("bootstrap", Stage.BOOTSTRAP),
        ("add_key", Stage.PROVISION),
        ("install", Stage.PROVISION),
        ("commit", Stage.COMMIT),
        ("export", Stage.EXPORT),
        ("remove_tag", Stage.EXPORT),
    ])
    def test_fail_fast(self, calls, make_builder, failing, stage):
        """Test no side-effecting call follows the failing one."""
        builder = make_builder(fail_on={failing})
        with pytest.raises(PipelineError) as excinfo:
            builder.build(ContainerProfile.RUNTIME)

        assert excinfo.value.stage == stage
        order = [name for name in names(calls) if name != "exit"]
        assert order[-1] == failing
        assert builder.state.archive_path is None

    def test_os_error_kind(self, make_builder):
        """Test OS errors are reported with the io kind."""
        builder = make_builder()

        def broken(image_id):
            raise FileNotFoundError("buildah")
        builder.backend.mount = broken

        with pytest.raises(PipelineError) as excinfo:
            builder.build(ContainerProfile.RUNTIME)
        assert excinfo.value.stage == Stage.MOUNT
        assert excinfo.value.kind == ErrorKind.IO
        assert isinstance(excinfo.value.cause, FileNotFoundError)

    def test_failure_is_logged(self, make_builder, caplog):
        """Test the failing stage and cause are logged."""
        with caplog.at_level("INFO", logger="pop_container"):
            with pytest.raises(PipelineError):
                make_builder(fail_on={"upgrade"}).build(ContainerProfile.RUNTIME)
        assert "stage 'provision' failed" in caplog.text
        assert "working-container" in caplog.text


class TestPipelineDriver:
    """Tests for PipelineDriver."""

    def test_hands_archive_to_user(self, config, make_builder, monkeypatch):
        """Test the archive is handed to the invoking user."""
        handed = []
        monkeypatch.setattr("pop_container.BUILDERS.pipeline.hand_off",
                            lambda path, user: handed.append((path, user)) or True)
        driver = PipelineDriver(config, "alice", builder=make_builder())
        archive = driver.run(ContainerProfile.RUNTIME)
        assert handed == [(archive, "alice")]

    def test_skips_hand_off_for_root(self, config, make_builder, monkeypatch):
        """Test no ownership change when the user is the placeholder."""
        handed = []
        monkeypatch.setattr("pop_container.BUILDERS.pipeline.hand_off",
                            lambda path, user: handed.append((path, user)))
        PipelineDriver(config, "root", builder=make_builder()).run(ContainerProfile.RUNTIME)
        assert handed == []

    def test_hand_off_failure_does_not_fail_build(self, config, make_builder):
        """Test a user without an account still gets a successful build."""
        driver = PipelineDriver(config, "no-such-user-12345", builder=make_builder())
        archive = driver.run(ContainerProfile.RUNTIME)
        assert archive.endswith("pop-container-runtime.tar")

    def test_no_hand_off_after_failure(self, config, make_builder, monkeypatch):
        """Test a failed build propagates and skips ownership correction."""
        handed = []
        monkeypatch.setattr("pop_container.BUILDERS.pipeline.hand_off",
                            lambda path, user: handed.append((path, user)))
        driver = PipelineDriver(config, "alice", builder=make_builder(fail_on={"export"}))
        with pytest.raises(PipelineError):
            driver.run(ContainerProfile.RUNTIME)
        assert handed == []
