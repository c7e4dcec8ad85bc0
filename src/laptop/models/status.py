"""Status enums for the provisioning run."""

from enum import Enum
from typing import Optional


class StageEnum(str, Enum):
    """Provisioning stages.

    State transitions:
    start → install → deploy
              ↑          ↑
          (resume)   (resume)

    The persisted value is the last stage this machine began, so an
    interrupted run re-enters that stage from its beginning.
    """

    START = "start"
    INSTALL = "install"
    DEPLOY = "deploy"

    @classmethod
    def parse(cls, value: str) -> Optional["StageEnum"]:
        """Map a raw persisted value to a stage, or None if unknown."""
        try:
            return cls(value.strip())
        except ValueError:
            return None


class InstallOutcome(str, Enum):
    """Result of an install-or-upgrade request."""

    INSTALLED = "installed"
    UPGRADED = "upgraded"
    ALREADY_CURRENT = "already_current"
    FAILED = "failed"
