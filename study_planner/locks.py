import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Hashable, Iterable


class KeyedLocks:
    """
    In-process mutex per key, e.g. ("slots", user_id, day_of_week).
    Serializes read-check-write sequences that no database constraint can guard.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = defaultdict(threading.RLock)

    def _get(self, key: Hashable) -> threading.RLock:
        with self._guard:
            return self._locks[key]

    @contextmanager
    def hold(self, *keys: Hashable):
        """Acquire the locks for all keys in a stable order"""
        ordered = sorted(set(keys), key=repr)
        acquired = []
        try:
            for key in ordered:
                lock = self._get(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


slot_locks = KeyedLocks()


def slot_day_keys(user_id: int, days: Iterable[int]):
    return [("slots", user_id, day) for day in days]
