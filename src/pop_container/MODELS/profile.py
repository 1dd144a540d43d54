"""
Models for container profiles and the package sets they select.
"""
from enum import Enum
from typing import FrozenSet
from pydantic import BaseModel, field_validator


class ContainerProfile(str, Enum):
    """
    The intended use of a built image.
    """
    RUNTIME = "runtime"
    INTERACTIVE = "interactive"

    def __str__(self) -> str:
        return self.value

    def archive_name(self, prefix: str = "pop-container") -> str:
        """
        Deterministic archive file name for this profile.

        :param prefix: Image name prefix.
        :return: File name such as ``pop-container-runtime.tar``.
        """
        return f"{self.image_name(prefix)}.tar"

    def image_name(self, prefix: str = "pop-container") -> str:
        """
        Name the committed image is tagged with.
        """
        return f"{prefix}-{self.value}"


class PackageSets(BaseModel):
    """
    Packages to install and, afterwards, to remove for one profile.
    """
    install: FrozenSet[str]
    cleanup: FrozenSet[str] = frozenset()

    @field_validator("install", "cleanup")
    @classmethod
    def _names_not_empty(cls, names: FrozenSet[str]) -> FrozenSet[str]:
        if any(not name.strip() for name in names):
            raise ValueError("package names must be non-empty")
        return names
