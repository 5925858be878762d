"""Unit tests for interruptible sleep."""

from __future__ import annotations

import threading
import time

from core.interruptible_sleep import InterruptibleSleep


def test_sleep_runs_to_timeout_without_interrupt() -> None:
    """Uninterrupted sleep should report a full wait."""
    sleeper = InterruptibleSleep()

    interrupted = sleeper.sleep(0.01)

    assert interrupted is False


def test_interrupt_wakes_sleeping_thread() -> None:
    """Interrupt from another thread should end a long sleep early."""
    sleeper = InterruptibleSleep()
    timer = threading.Timer(0.05, sleeper.interrupt)
    started = time.monotonic()
    timer.start()

    interrupted = sleeper.sleep(30)
    elapsed = time.monotonic() - started
    timer.join()

    assert interrupted is True and elapsed < 5


def test_reset_clears_pending_interrupt() -> None:
    """Reset should make later sleeps wait again."""
    sleeper = InterruptibleSleep()
    sleeper.interrupt()

    sleeper.reset()

    assert sleeper.interrupted is False and sleeper.sleep(0.01) is False
