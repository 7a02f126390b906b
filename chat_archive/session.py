"""
The active archive of one browsing session.

A load builds a new Archive off to the side and publishes it by swapping a
single reference, so queries see either the old archive or the complete new
one. Background loads carry a generation number; a load that has been
superseded or cancelled is dropped instead of published.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable

from .archive import Archive, ProgressCallback, load_archive, load_archive_file
from .query import QueryParams, QueryResult, query

_logger = logging.getLogger(__name__)


class Session:
    def __init__(self, archive: Archive | None = None):
        self._archive = archive or Archive()
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def archive(self) -> Archive:
        return self._archive

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _publish(self, archive: Archive, generation: int) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self._archive = archive
            return True

    def load(self, raw: Any, progress_callback: ProgressCallback | None = None) -> Archive:
        """Load raw bytes/text/JSON and make it the active archive. Raises ParseError."""
        generation = self._next_generation()
        archive = load_archive(raw, progress_callback=progress_callback)
        self._publish(archive, generation)
        return archive

    def load_file(self, filepath: Path | str, progress_callback: ProgressCallback | None = None) -> Archive:
        generation = self._next_generation()
        archive = load_archive_file(filepath, progress_callback=progress_callback)
        self._publish(archive, generation)
        return archive

    def load_in_background(
        self,
        filepath: Path | str,
        on_complete: Callable[[Archive], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> threading.Thread:
        """Load a file on a daemon thread; callbacks run on that thread."""
        generation = self._next_generation()

        def load_thread():
            try:
                archive = load_archive_file(filepath, progress_callback=progress_callback)
            except Exception as e:
                _logger.error('Failed to load %s: %s', filepath, e)
                if on_error and generation == self._generation:
                    on_error(e)
                return

            if not self._publish(archive, generation):
                _logger.info('Discarding superseded load of %s', filepath)
                return
            if on_complete:
                on_complete(archive)

        thread = threading.Thread(target=load_thread, daemon=True)
        thread.start()
        return thread

    def cancel_pending(self):
        """Abandon any background load still running."""
        self._next_generation()

    def query(self, params: QueryParams | None = None) -> list[QueryResult]:
        return query(self._archive, params)
