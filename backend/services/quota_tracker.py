"""
Monthly usage counter for the paid geocoding API.

The counter lives in a small JSON file mapping "YYYY-MM" (UTC) to a call
count. Old months stay in the file and are simply ignored. Bookkeeping is
advisory: unreadable files count as zero and failed writes are only logged.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuotaTracker:
    """Read-check-increment counter with a hard monthly ceiling.

    All mutation goes through one lock, so increments from concurrent
    requests in this process do not lose updates. Separate processes sharing
    the file can still race (last write wins).
    """

    def __init__(
        self,
        path: str | Path,
        monthly_limit: int = 1000,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.path = Path(path)
        self.monthly_limit = monthly_limit
        self._now = now
        self._lock = threading.Lock()

    def month_key(self) -> str:
        return self._now().strftime("%Y-%m")

    def _read_all(self) -> Dict[str, int]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Could not read geocoding usage from %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed geocoding usage file %s", self.path)
            return {}
        return data

    def _write_all(self, usage: Dict[str, int]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(usage, f)
        os.replace(tmp_path, self.path)

    def current_usage(self) -> int:
        value = self._read_all().get(self.month_key(), 0)
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    def remaining(self) -> int:
        return max(self.monthly_limit - self.current_usage(), 0)

    def is_exhausted(self) -> bool:
        return self.current_usage() >= self.monthly_limit

    def _set_current(self, compute: Callable[[int], int]) -> Optional[int]:
        key = self.month_key()
        with self._lock:
            usage = self._read_all()
            try:
                current = int(usage.get(key, 0))
            except (TypeError, ValueError):
                current = 0
            usage[key] = compute(current)
            try:
                self._write_all(usage)
            except OSError as exc:
                logger.error("Could not save geocoding usage to %s: %s", self.path, exc)
                return None
            return usage[key]

    def increment(self) -> Optional[int]:
        """Count one successful call. Returns the new count, or None if not saved."""
        return self._set_current(lambda current: current + 1)

    def force_to_limit(self) -> Optional[int]:
        """Mark the current month as spent after the provider reported over-quota."""
        return self._set_current(lambda current: self.monthly_limit)
