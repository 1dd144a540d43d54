"""
Resolution of the user who invoked the build.

The pipeline runs as root, but the exported archive should belong to the
person who started it. The name is resolved before escalation and passed to
the re-invoked process through ``POP_CONTAINER_USER``.
"""
import logging
import os
from typing import Mapping, Optional

import psutil

from .errors import IdentityError

logger = logging.getLogger(__name__)

INVOKING_USER_ENV = "POP_CONTAINER_USER"
PLACEHOLDER_USER = "root"


def current_username() -> str:
    """
    Name of the user owning this process.

    :raises IdentityError: If the name cannot be determined.
    """
    try:
        return psutil.Process().username()
    except (psutil.Error, KeyError, OSError) as e:
        raise IdentityError(f"cannot determine current user: {e}") from e


def _read_cache(cache_path: Optional[str]) -> Optional[str]:
    if not cache_path:
        return None
    try:
        with open(cache_path, "r") as f:
            name = f.read().strip()
    except OSError as e:
        logger.warning("Cannot read cached user name from %s: %s", cache_path, e)
        return None
    return name or None


def _write_cache(cache_path: Optional[str], name: str) -> None:
    if not cache_path:
        return
    try:
        with open(cache_path, "w") as f:
            f.write(name)
    except OSError as e:
        logger.warning("Cannot cache user name in %s: %s", cache_path, e)


def resolve_invoking_user(environ: Optional[Mapping[str, str]] = None,
                          cache_path: Optional[str] = None) -> str:
    """
    Determines the non-privileged user behind this run.

    Checked in order: ``POP_CONTAINER_USER``, ``SUDO_USER``, the current
    process user, then the cache file. Never fails; falls back to ``root``.

    :param environ: Environment to inspect. Defaults to ``os.environ``.
    :param cache_path: Optional file remembering the name across a re-invocation.
    :return: A user name.
    """
    environ = os.environ if environ is None else environ

    explicit = environ.get(INVOKING_USER_ENV)
    if explicit:
        return explicit

    sudo_user = environ.get("SUDO_USER")
    if sudo_user and sudo_user != PLACEHOLDER_USER:
        return sudo_user

    try:
        name = current_username()
    except IdentityError as e:
        logger.warning("%s; using '%s'", e, PLACEHOLDER_USER)
        return PLACEHOLDER_USER

    if name != PLACEHOLDER_USER:
        _write_cache(cache_path, name)
        return name

    return _read_cache(cache_path) or PLACEHOLDER_USER
