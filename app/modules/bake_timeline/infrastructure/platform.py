"""
Host platform capabilities: timezone resolution.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..engine.capabilities import TimezoneResolver

logger = logging.getLogger(__name__)

ZONEINFO_MARKER = "zoneinfo/"


class SystemTimezoneResolver(TimezoneResolver):
    """
    Resolves the host's IANA zone id.

    Order: explicit override, ``TZ``, the ``/etc/localtime`` symlink target,
    then ``UTC``.
    """

    def __init__(self, override: Optional[str] = None, localtime_path: str = "/etc/localtime"):
        self.override = override
        self.localtime_path = Path(localtime_path)

    def current_zone(self) -> str:
        if self.override:
            return self.override

        tz = os.environ.get("TZ", "").lstrip(":")
        if tz:
            return tz

        try:
            target = str(self.localtime_path.resolve())
        except OSError as e:
            logger.debug(f"Cannot resolve {self.localtime_path}: {e}")
            return "UTC"

        if ZONEINFO_MARKER in target:
            return target.split(ZONEINFO_MARKER, 1)[1]
        return "UTC"
