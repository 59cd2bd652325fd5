"""
File storage for raw scraped markup.

Pages fetched by the maps scraper are written here for audit and for
offline inspection with `scripts/inspect_markup.py`. Nothing in the service
reads them back.

Files are organized as:
- {root}/{sanitized destination}_{UTC timestamp}.html
"""
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")
_SAVED_SUFFIX = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z\.html")
MAX_STEM_LENGTH = 50


def sanitize_filename(destination: str, max_length: int = MAX_STEM_LENGTH) -> str:
    """Replace every non-ASCII-alphanumeric character with '_' and truncate."""
    return _UNSAFE_CHARS.sub("_", destination)[:max_length] or "destination"


def _timestamp(moment: datetime) -> str:
    # 2026-02-12T03-24-34-533Z
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"


class MarkupStorage:
    """Local directory of saved HTML pages."""

    def __init__(
        self,
        root: str = "data/html",
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.root = Path(root)
        self._now = now

    def path_for(self, destination: str) -> Path:
        return self.root / f"{sanitize_filename(destination)}_{_timestamp(self._now())}.html"

    def save(self, destination: str, markup: str) -> Path:
        """
        Write markup for a destination.

        Returns:
            Path of the written file
        """
        self.root.mkdir(parents=True, exist_ok=True)
        file_path = self.path_for(destination)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(markup)
        return file_path

    def list_files(self) -> List[Path]:
        if not self.root.exists():
            return []
        return sorted(self.root.glob("*.html"))

    def latest_for(self, destination: str) -> Optional[Path]:
        """Most recent saved page for a destination, if any."""
        prefix = sanitize_filename(destination) + "_"
        matches = [
            p
            for p in self.list_files()
            if p.name.startswith(prefix) and _SAVED_SUFFIX.fullmatch(p.name[len(prefix):])
        ]
        return matches[-1] if matches else None
