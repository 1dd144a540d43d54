"""
Models for package repositories and the trust key that signs them.
"""
from typing import List, Tuple
from jinja2 import Template
from pydantic import BaseModel, ConfigDict, field_validator

SOURCE_LINE_TEMPLATE = Template("deb {{ url }} {{ suite }} {{ components | join(' ') }}")


class RepositoryDescriptor(BaseModel):
    """
    A registrable package source: base URL, suite and component list.

    The suite is the distribution codename, optionally with a suffix
    such as ``-security``.
    """
    model_config = ConfigDict(frozen=True)

    url: str
    suite: str
    components: Tuple[str, ...]

    @field_validator("components")
    @classmethod
    def _has_components(cls, components: Tuple[str, ...]) -> Tuple[str, ...]:
        if not components:
            raise ValueError("a repository needs at least one component")
        return components

    def source_line(self) -> str:
        """
        Renders the descriptor as a one-line apt source entry.

        :return: A line such as ``deb http://apt.pop-os.org/release jammy main``.
        """
        return SOURCE_LINE_TEMPLATE.render(
            url=self.url,
            suite=self.suite,
            components=self.components,
        )


class TrustKey(BaseModel):
    """
    Key to import from a keyserver and the keyrings it must land in.
    """
    model_config = ConfigDict(frozen=True)

    keyserver: str
    key_id: str
    keyring_paths: List[str]
