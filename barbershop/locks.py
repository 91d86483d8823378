# barbershop/locks.py

import threading
from contextlib import contextmanager


class KeyedLock:
    """In-process mutual exclusion per key, e.g. per barber or per (barber, date)."""

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of threads holding or waiting]
        self._locks = {}

    def __len__(self):
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


booking_locks = KeyedLock()
rating_locks = KeyedLock()
