"""
Tests for the keyed in-process locks.
"""

import threading

import pytest

from barbershop.locks import KeyedLock


class TestKeyedLock:
    def test_entry_dropped_after_release(self):
        locks = KeyedLock()
        with locks.hold(("barber", 1)):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_entry_dropped_after_error(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            with locks.hold("k"):
                raise RuntimeError("boom")
        assert len(locks) == 0

    def test_many_keys_leave_nothing_behind(self):
        locks = KeyedLock()
        for day in range(100):
            with locks.hold((1, day)):
                pass
        assert len(locks) == 0

    def test_same_key_is_exclusive(self):
        locks = KeyedLock()
        inside = []
        overlaps = []
        barrier = threading.Barrier(4)

        def work():
            barrier.wait()
            for _ in range(50):
                with locks.hold("shared"):
                    inside.append(1)
                    if len(inside) > 1:
                        overlaps.append(len(inside))
                    inside.pop()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
        assert len(locks) == 0
