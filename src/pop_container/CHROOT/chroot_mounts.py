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
Bind mounts of host pseudo-filesystems into a chroot.
"""

import ctypes
import ctypes.util
import logging
import os
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Mount flags
MS_BIND = 4096
MS_REC = 16384
MNT_DETACH = 2

CHROOT_BINDS = ["dev", "dev/pts", "proc", "run", "sys"]


class ChrootMounts:
    """
    Bind-mounts /dev, /dev/pts, /proc, /run and /sys from the host into a root
    filesystem for the lifetime of a ``with`` block. Mounts are detached in
    reverse order on exit, whether or not the block raised.
    """

    def __init__(self, root: str, binds: Optional[List[str]] = None, libc=None):
        """
        Initialize the mount set.

        Args:
            root: Path of the root filesystem.
            binds: Paths relative to ``/`` to bind into the root.
            libc: C library handle. Loaded on first use if not given.
        """
        self.root = Path(root)
        self.binds = binds if binds is not None else list(CHROOT_BINDS)
        self._libc = libc
        self._mounted: List[str] = []

    @property
    def libc(self):
        if self._libc is None:
            self._libc = ctypes.CDLL(ctypes.util.find_library("c") or "libc.so.6", use_errno=True)
        return self._libc

    def __enter__(self) -> "ChrootMounts":
        try:
            for rel in self.binds:
                self.mount_bind(f"/{rel}", str(self.root / rel))
        except OSError:
            self.unmount_all()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount_all()

    def mount_bind(self, source: str, target: str) -> None:
        """
        Create a bind mount.

        Args:
            source: Source path on host.
            target: Target path inside the root.

        Raises:
            OSError: If the mount call fails.
        """
        Path(target).mkdir(parents=True, exist_ok=True)
        ret = self.libc.mount(source.encode("utf-8"), target.encode("utf-8"), None, MS_BIND | MS_REC, None)
        if ret != 0:
            errno = ctypes.get_errno()
            raise OSError(errno, f"bind mount of {source} failed: {os.strerror(errno)}", target)
        logger.debug("Mounted %s at %s", source, target)
        self._mounted.append(target)

    def unmount_all(self) -> None:
        """
        Detach every mount made by this instance, newest first. Failures are
        logged and the remaining mounts are still detached.
        """
        while self._mounted:
            target = self._mounted.pop()
            ret = self.libc.umount2(target.encode("utf-8"), MNT_DETACH)
            if ret != 0:
                errno = ctypes.get_errno()
                logger.warning("Failed to unmount %s: %s", target, os.strerror(errno))
