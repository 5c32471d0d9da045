# tems/store.py
import threading
from contextlib import contextmanager
from typing import Dict

from .schemas import Metric


class ReadWriteLock:
    """Shared/exclusive lock. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class MetricStore:
    """Latest Metric per hostname. Entries are never evicted."""

    def __init__(self):
        self._metrics: Dict[str, Metric] = {}  # key = hostname
        self._lock = ReadWriteLock()

    def upsert(self, hostname: str, metric: Metric) -> None:
        with self._lock.write_locked():
            self._metrics[hostname] = metric

    def snapshot(self) -> Dict[str, Metric]:
        # Metric values are replaced, never mutated in place, so a shallow copy is consistent
        with self._lock.read_locked():
            return dict(self._metrics)

    def __len__(self):
        with self._lock.read_locked():
            return len(self._metrics)
