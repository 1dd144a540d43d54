"""
Models for build configuration.
"""
import os
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_KEYRING_PATHS = [
    "/etc/apt/trusted.gpg.d/pop-keyring-2017-archive.gpg",
    "/usr/share/keyrings/pop-archive-keyring.gpg",
]


class BuildConfig(BaseModel):
    """
    Every constant the pipeline depends on, resolved once before the build
    starts. Defaults target Pop!_OS 22.04 (jammy).
    """
    model_config = ConfigDict(extra="forbid")

    # Bootstrap
    codename: str = "jammy"
    bootstrap_mirror: str = "http://archive.ubuntu.com/ubuntu/"
    bootstrap_variant: str = "minbase"

    # Repositories
    pop_mirror: str = "http://apt.pop-os.org"
    staging_url_template: str = "{{ pop_mirror }}/staging/{{ branch }}"

    # Trust
    keyserver: str = "keyserver.ubuntu.com"
    key_id: str = "204DD8AEC33A7AFF"
    keyring_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_KEYRING_PATHS))

    # Chroot
    chroot_env: Dict[str, str] = Field(
        default_factory=lambda: {
            "LC_CTYPE": "en_US.UTF8",
            "HOME": "/root",
            "LC_ALL": "en_US.UTF8",
        }
    )
    build_packages: List[str] = Field(default_factory=lambda: ["software-properties-common"])

    # Output
    archive_prefix: str = "pop-container"
    output_dir: str = "."

    # Privileges
    escalate: bool = True
    identity_cache: Optional[str] = None

    @field_validator("codename", "key_id", "keyserver", "archive_prefix")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("keyring_paths")
    @classmethod
    def _absolute_paths(cls, paths: List[str]) -> List[str]:
        if not paths:
            raise ValueError("at least one keyring path is required")
        for path in paths:
            if not os.path.isabs(path):
                raise ValueError(f"keyring path must be absolute: {path}")
        return paths
