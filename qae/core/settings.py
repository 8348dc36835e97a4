"""
Environment-driven settings.
Values are read at access time, so a changed environment is picked up
without re-creating the object.
"""
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")


class Settings:
    PREFIX = "QAE_"

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    @property
    def env(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def get_str(self, key: str, default: str = "") -> str:
        val = self.env.get(self.PREFIX + key)
        if val is None or not val.strip():
            return default
        return val.strip()

    def get_int(self, key: str, default: Optional[int]) -> Optional[int]:
        raw = self.get_str(key)
        if not raw:
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring invalid %s%s=%r (expected an integer)", self.PREFIX, key, raw)
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = self.get_str(key)
        if not raw:
            return default
        return raw.lower() in _TRUTHY

    @property
    def MAX_DEPTH(self) -> Optional[int]:
        depth = self.get_int("MAX_DEPTH", None)
        if depth is not None and depth < 0:
            return None
        return depth

    @property
    def FOLLOW_SYMLINKS(self) -> bool:
        return self.get_bool("FOLLOW_SYMLINKS", False)

    @property
    def GIT_BIN(self) -> str:
        return self.get_str("GIT_BIN", "git")

    @property
    def LOG_DATE(self) -> Optional[str]:
        """git --date format for log matches, None when dates are switched off."""
        fmt = self.get_str("LOG_DATE", "short")
        return None if fmt.lower() == "none" else fmt

    @property
    def LOG_LEVEL(self) -> str:
        return self.get_str("LOG_LEVEL", "WARNING").upper()

    @property
    def GLOBAL_GITIGNORE(self) -> Path:
        xdg = (self.env.get("XDG_CONFIG_HOME") or "").strip()
        base = Path(xdg) if xdg else Path(os.path.expanduser("~")) / ".config"
        return base / "git" / "ignore"


settings = Settings()
