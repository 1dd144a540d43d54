"""
The fixed Pop!_OS repository list plus user-supplied staging branches.
"""
from typing import Iterable, List
from jinja2 import Template
from ..MODELS.build_config import BuildConfig
from ..MODELS.repository import RepositoryDescriptor

MAIN_COMPONENTS = ("main",)
UBUNTU_COMPONENTS = ("main", "universe", "multiverse", "restricted")
UBUNTU_SUITE_SUFFIXES = ("", "-security", "-updates", "-backports")


class RepositorySet:
    """
    Builds repository descriptors for a single, fixed distribution codename.
    """
    def __init__(self, config: BuildConfig):
        """
        Initializes the repository set.

        :param config: Build configuration supplying the mirror and codename.
        """
        self.codename = config.codename
        self.pop_mirror = config.pop_mirror.rstrip("/")
        self.staging_template = Template(config.staging_url_template)

    def base_descriptors(self) -> List[RepositoryDescriptor]:
        """
        Returns the fixed repositories in registration order: proprietary,
        release, then the Ubuntu mirror with each of its suites.
        """
        descriptors = [
            RepositoryDescriptor(url=f"{self.pop_mirror}/proprietary", suite=self.codename, components=MAIN_COMPONENTS),
            RepositoryDescriptor(url=f"{self.pop_mirror}/release", suite=self.codename, components=MAIN_COMPONENTS),
        ]
        for suffix in UBUNTU_SUITE_SUFFIXES:
            descriptors.append(
                RepositoryDescriptor(
                    url=f"{self.pop_mirror}/ubuntu",
                    suite=f"{self.codename}{suffix}",
                    components=UBUNTU_COMPONENTS,
                )
            )
        return descriptors

    def expand_extra(self, name: str) -> RepositoryDescriptor:
        """
        Expands a staging branch name into a full descriptor.

        :param name: Short branch name, e.g. ``master``.
        :return: A descriptor on the staging mirror with the ``main`` component.
        """
        url = self.staging_template.render(pop_mirror=self.pop_mirror, branch=name)
        return RepositoryDescriptor(url=url, suite=self.codename, components=MAIN_COMPONENTS)

    def resolve(self, extra_names: Iterable[str] = ()) -> List[RepositoryDescriptor]:
        """
        Full registration list: the base set followed by the extras in the
        order given.
        """
        return self.base_descriptors() + [self.expand_extra(name) for name in extra_names]
