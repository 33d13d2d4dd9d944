"""File storage for exports and imports."""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


_UNSAFE = re.compile(r"[^\w.-]+", re.UNICODE)


class ExportStorage:
    """Writes export blobs to a directory and reads import files."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _get_path(self, stem: str, extension: str, when: Optional[datetime] = None) -> Path:
        """Get a timestamped file path for an export."""
        when = when or datetime.now()
        safe_stem = _UNSAFE.sub("_", stem).strip("_") or "export"
        return self.directory / f"{safe_stem}-{when:%Y%m%d-%H%M%S}.{extension}"

    def write(self, stem: str, extension: str, content: str) -> Path:
        """Write content to a new export file and return its path."""
        path = self._get_path(stem, extension)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        logger.info("Wrote export %s", path)
        return path

    def list_exports(self) -> list[Path]:
        """Export files, newest first."""
        return sorted(
            (p for p in self.directory.iterdir() if p.is_file()),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )

    @staticmethod
    def read(path: str | Path) -> Optional[str]:
        """Read an import file. Returns None if it can't be read."""
        path = Path(path).expanduser()
        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read import file %s: %s", path, e)
            return None
