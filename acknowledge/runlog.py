"""Run-level warning log shared by every pipeline stage."""

from __future__ import annotations

import logging
import threading
from typing import Literal

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

Stage = Literal["resolve", "locate", "fetch", "cache"]


class RunWarning(BaseModel):
    """A non-fatal problem the user should see after the run."""

    model_config = ConfigDict(frozen=True)

    stage: Stage
    subject: str
    message: str

    def __str__(self) -> str:
        return f"[{self.stage}] {self.subject}: {self.message}"


class RunLog:
    """Append-only warning list, safe to share across fetch tasks and threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._warnings: list[RunWarning] = []

    def warn(self, stage: Stage, subject: str, message: str) -> RunWarning:
        warning = RunWarning(stage=stage, subject=subject, message=message)
        with self._lock:
            self._warnings.append(warning)
        logger.warning("%s", warning)
        return warning

    @property
    def warnings(self) -> list[RunWarning]:
        with self._lock:
            return list(self._warnings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._warnings)
