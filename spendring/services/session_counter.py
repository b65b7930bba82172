"""
App session counter.

Counts how many times the app has been opened on this device. The count is
read and incremented once at startup, and the result is handed to the home
screen to decide whether onboarding runs.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

import structlog

logger = structlog.get_logger(__name__)


class SessionCounterInterface(ABC):
    @abstractmethod
    def read(self) -> int:
        """Current count without changing it."""
        pass

    @abstractmethod
    def increment(self) -> int:
        """Increment the count and return the new value."""
        pass


class FileSessionCounter(SessionCounterInterface):
    """
    Session counter persisted as a small JSON document.

    A missing or unreadable file counts as zero sessions.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> int:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return 0
        except (OSError, ValueError) as e:
            logger.warning("session_counter_unreadable", path=str(self._path), error=str(e))
            return 0

        count = data.get("app_open_count") if isinstance(data, dict) else None
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            return 0
        return count

    def increment(self) -> int:
        count = self.read() + 1
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"app_open_count": count}), encoding="utf-8")
        logger.debug("session_counted", app_open_count=count)
        return count
