"""Read-only access to sysfs/procfs pseudo-files.

Every operation reports absence as ``None`` (or ``False``) instead of
raising, so that callers can skip the unit and carry on.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FilesystemProbe:

    def exists(self, path: PathLike) -> bool:
        return os.path.exists(path)

    def read_text(self, path: PathLike) -> Optional[str]:
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as handle:
                return handle.read()
        except OSError as exc:
            logger.debug("Cannot read %s", path, extra={"reason": exc.strerror})
            return None

    def list_dir(self, path: PathLike) -> Optional[List[str]]:
        """Return the sorted entry names of ``path``, or ``None`` if unreadable."""
        try:
            return sorted(os.listdir(path))
        except OSError as exc:
            logger.debug("Cannot list %s", path, extra={"reason": exc.strerror})
            return None

    def read_link(self, path: PathLike) -> Optional[str]:
        try:
            return os.readlink(path)
        except OSError:
            return None
