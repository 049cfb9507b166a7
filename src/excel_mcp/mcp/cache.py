from __future__ import annotations

from collections.abc import Iterator
import logging
from pathlib import Path

from openpyxl import Workbook

logger = logging.getLogger(__name__)


class WorkbookCache:
    """Path-keyed store of open workbooks for one server session.

    Entries are never re-read from disk once loaded. Callers that know the
    file changed underneath the server use ``evict`` to force a reload.
    """

    def __init__(self) -> None:
        self._books: dict[str, Workbook] = {}

    @staticmethod
    def key_for(path: Path | str) -> str:
        return str(path)

    def get(self, path: Path | str) -> Workbook | None:
        """Return the cached workbook for an exact path string, if any."""
        return self._books.get(self.key_for(path))

    def put(self, path: Path | str, workbook: Workbook) -> None:
        """Store a workbook under its canonical path."""
        self._books[self.key_for(path)] = workbook

    def evict(self, path: Path | str) -> bool:
        """Drop a cached workbook.

        Returns:
            True when an entry was removed.
        """
        removed = self._books.pop(self.key_for(path), None)
        if removed is None:
            return False
        logger.debug("Evicted workbook from cache: %s", path)
        removed.close()
        return True

    invalidate = evict

    def clear(self) -> None:
        """Drop every cached workbook."""
        for key in list(self._books):
            self.evict(key)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str | Path):
            return False
        return self.key_for(path) in self._books

    def __len__(self) -> int:
        return len(self._books)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._books))
