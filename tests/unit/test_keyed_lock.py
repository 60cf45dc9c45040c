"""Tests for per-key locking."""

from __future__ import annotations

import threading
import time

from scheduler_source_operator.utils.keyed_lock import KeyedLock


class TestKeyedLock:
    """Test cases for KeyedLock."""

    def test_lock_released_after_use(self):
        locks = KeyedLock()

        with locks.hold("ns/a"):
            assert len(locks) == 1

        assert len(locks) == 0

    def test_lock_released_on_error(self):
        locks = KeyedLock()

        try:
            with locks.hold("ns/a"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert len(locks) == 0

    def test_same_key_is_serialized(self):
        """Test that two holders of one key never overlap."""
        locks = KeyedLock()
        active = 0
        max_active = 0
        guard = threading.Lock()

        def work():
            nonlocal active, max_active
            with locks.hold("ns/a"):
                with guard:
                    active += 1
                    max_active = max(max_active, active)
                time.sleep(0.02)
                with guard:
                    active -= 1

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert max_active == 1
        assert len(locks) == 0

    def test_different_keys_run_in_parallel(self):
        locks = KeyedLock()
        entered = threading.Event()
        release = threading.Event()

        def hold_a():
            with locks.hold("ns/a"):
                entered.set()
                release.wait(1.0)

        t = threading.Thread(target=hold_a)
        t.start()
        assert entered.wait(1.0)

        with locks.hold("ns/b"):
            assert len(locks) == 2

        release.set()
        t.join()
        assert len(locks) == 0
