"""
Hand-off of build artifacts to the invoking user.
"""
import logging
import pwd
import shutil

logger = logging.getLogger(__name__)


def hand_off(path: str, user: str) -> bool:
    """
    Changes the owner of ``path`` to ``user`` and its group to the group of
    the same name, or to the user's primary group when there is none.

    Failures are logged and reported through the return value only.

    :param path: File to hand off.
    :param user: Name of the new owner.
    :return: True if ownership was changed.
    """
    try:
        try:
            shutil.chown(path, user=user, group=user)
        except LookupError:
            shutil.chown(path, user=user, group=pwd.getpwnam(user).pw_gid)
    except (LookupError, OSError) as e:
        logger.warning("Could not hand %s to %s: %s", path, user, e)
        return False
    logger.info("%s is now owned by %s.", path, user)
    return True
