"""DocumentWriter: writes the rendered acknowledgements to disk."""

from __future__ import annotations

import logging
from pathlib import Path

from acknowledge.manifest.cargo import MANIFEST_NAME

logger = logging.getLogger(__name__)

FILE_NAME = "ACKNOWLEDGEMENTS.md"


def default_output_path(project_path: str | Path) -> Path:
    """ACKNOWLEDGEMENTS.md next to the project's Cargo.toml."""
    path = Path(project_path)
    if path.name == MANIFEST_NAME or path.is_file():
        path = path.parent
    return path / FILE_NAME


class DocumentWriter:
    """Writes rendered markdown, creating parent directories as needed."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, content: str, *, dry_run: bool = False) -> Path:
        """Write content to the target path.

        Returns the Path of the written (or would-be) file.
        """
        if dry_run:
            logger.debug("dry-run: would write %s", self.path)
            return self.path

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content, encoding="utf-8")
        logger.info("wrote %s (%d bytes)", self.path, len(content))
        return self.path
