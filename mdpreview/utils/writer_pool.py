import contextlib
import io
import threading
from typing import Dict, Hashable, Iterator, Optional, Set


class WriterPool:
    """Reusable text buffers, one per worker.

    ``acquire`` hands out the calling worker's buffer cleared, and clears it
    again when the block exits, including when rendering raised. A nested
    acquire from the same worker gets a temporary buffer instead of the
    pooled one.

    Example:
    >>> pool = WriterPool()
    >>> with pool.acquire() as writer:
    ...     writer.write("<p>hi</p>")
    ...     html = writer.getvalue()
    """

    def __init__(self):
        self._writers: Dict[Hashable, io.StringIO] = {}
        self._in_use: Set[Hashable] = set()
        self._lock = threading.Lock()

    @contextlib.contextmanager
    def acquire(self, worker_id: Optional[Hashable] = None) -> Iterator[io.StringIO]:
        key = threading.get_ident() if worker_id is None else worker_id
        with self._lock:
            if key in self._in_use:
                writer, pooled = io.StringIO(), False
            else:
                writer = self._writers.get(key)
                if writer is None:
                    writer = io.StringIO()
                    self._writers[key] = writer
                self._in_use.add(key)
                pooled = True
        self._clear(writer)
        try:
            yield writer
        finally:
            self._clear(writer)
            if pooled:
                with self._lock:
                    self._in_use.discard(key)

    def __len__(self):
        with self._lock:
            return len(self._writers)

    def clear(self):
        """Drop every pooled buffer."""
        with self._lock:
            for writer in self._writers.values():
                self._clear(writer)
            self._writers.clear()

    @staticmethod
    def _clear(writer: io.StringIO) -> None:
        writer.seek(0)
        writer.truncate(0)
