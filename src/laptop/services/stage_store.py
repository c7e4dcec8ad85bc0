"""Persistence of the provisioning stage."""

import os
from pathlib import Path
from typing import Optional, Protocol, Union
import logging

from laptop.errors import UnknownPersistedStage
from laptop.models.status import StageEnum


class StageStore(Protocol):
    """Storage port for the single persisted stage value."""

    def load(self) -> StageEnum:
        ...

    def save(self, stage: StageEnum) -> None:
        ...

    def reset(self) -> None:
        ...


class FileStageStore:
    """Stage persisted as the sole content of a plain-text file.

    Single writer only; the tool never runs twice against the same file.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize file store.

        Args:
            path: Stage file location (e.g. ~/.laptop/stage)
        """
        self.logger = logging.getLogger("laptop.stage_store")
        self.path = Path(path)

    def _read(self) -> StageEnum:
        raw = self.path.read_text(encoding="utf-8")
        stage = StageEnum.parse(raw)
        if stage is None:
            raise UnknownPersistedStage(raw.strip())
        return stage

    def load(self) -> StageEnum:
        """Load the persisted stage.

        Returns:
            Stored stage, or StageEnum.START if the file is missing,
            unreadable or holds an unknown value
        """
        if not self.path.exists():
            self.logger.debug("No stage file found")
            return StageEnum.START

        try:
            stage = self._read()
        except UnknownPersistedStage as e:
            self.logger.warning(f"Ignoring stage file {self.path}: {e}")
            return StageEnum.START
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Cannot read stage file {self.path}: {e}")
            return StageEnum.START

        self.logger.info(f"Loaded stage: {stage.value}")
        return stage

    def save(self, stage: StageEnum) -> None:
        """Persist a stage through a temp file and atomic rename.

        Args:
            stage: Stage being entered
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.parent / f".{self.path.name}.tmp.{os.getpid()}"
        try:
            tmp_path.write_text(stage.value, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            self.logger.error(f"Failed to save stage file: {e}", exc_info=True)
            raise
        self.logger.debug(f"Saved stage: {stage.value}")

    def reset(self) -> None:
        """Delete the stage file so the next run starts over."""
        if self.path.exists():
            self.path.unlink()
            self.logger.info("Deleted stage file")


class MemoryStageStore:
    """In-process stage store (tests and dry runs)."""

    def __init__(self, stage: Optional[StageEnum] = None):
        self.stage = stage
        self.history: list[StageEnum] = []

    def load(self) -> StageEnum:
        return self.stage or StageEnum.START

    def save(self, stage: StageEnum) -> None:
        self.stage = stage
        self.history.append(stage)

    def reset(self) -> None:
        self.stage = None
