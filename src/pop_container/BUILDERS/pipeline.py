"""
Top-level pipeline: build the image, then hand the archive to the user.
"""
import logging
from typing import Iterable, Optional

from ..MODELS.build_config import BuildConfig
from ..MODELS.profile import ContainerProfile
from ..UTILS.identity import PLACEHOLDER_USER
from ..UTILS.ownership import hand_off
from .image_builder import ImageBuilder

logger = logging.getLogger(__name__)


class PipelineDriver:
    """
    Runs one build for the invoking user.
    """
    def __init__(self, config: BuildConfig, user: str, builder: Optional[ImageBuilder] = None):
        """
        Initializes the driver.

        :param config: Build configuration.
        :param user: User who should own the archive.
        :param builder: Image builder. Defaults to one built from ``config``.
        """
        self.config = config
        self.user = user
        self.builder = builder or ImageBuilder(config)

    def run(self,
            profile: ContainerProfile,
            extra_repos: Iterable[str] = (),
            extra_packages: Iterable[str] = ()) -> str:
        """
        Builds the image and corrects the archive's ownership.

        :return: Path of the exported archive.
        :raises PipelineError: If the build fails. Ownership problems never raise.
        """
        extra_repos = list(extra_repos)
        extra_packages = list(extra_packages)
        logger.info("Building %s container for %s.", profile, self.user)

        archive_path = self.builder.build(profile, extra_repos, extra_packages)

        if self.user != PLACEHOLDER_USER:
            hand_off(archive_path, self.user)
        return archive_path
