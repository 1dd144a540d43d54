"""
Static package sets for each container profile.
"""
from typing import Dict, Tuple, FrozenSet
from ..MODELS.profile import ContainerProfile, PackageSets

RUNTIME = frozenset([
    "apt-utils",
    "ca-certificates",
    "curl",
    "gnupg",
    "locales",
    "tzdata",
])

# Only needed to register repositories during the build
RUNTIME_CLEANUP = frozenset([
    "software-properties-common",
])

INTERACTIVE = RUNTIME | frozenset([
    "bash-completion",
    "build-essential",
    "command-not-found",
    "dnsutils",
    "file",
    "git",
    "htop",
    "iputils-ping",
    "less",
    "man-db",
    "nano",
    "neofetch",
    "openssh-client",
    "python3",
    "rsync",
    "software-properties-common",
    "sudo",
    "unzip",
    "vim",
    "wget",
    "zip",
])

PROFILE_PACKAGES: Dict[ContainerProfile, PackageSets] = {
    ContainerProfile.RUNTIME: PackageSets(install=RUNTIME, cleanup=RUNTIME_CLEANUP),
    ContainerProfile.INTERACTIVE: PackageSets(install=INTERACTIVE),
}


def resolve(profile: ContainerProfile) -> Tuple[FrozenSet[str], FrozenSet[str]]:
    """
    Looks up the install and cleanup sets for a profile.

    :param profile: The selected container profile.
    :return: A tuple of (install set, cleanup set).
    """
    sets = PROFILE_PACKAGES[profile]
    return sets.install, sets.cleanup
