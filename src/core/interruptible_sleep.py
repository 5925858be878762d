"""Interruptible waits for poll-interval scheduling."""

from __future__ import annotations

import threading


class InterruptibleSleep:
    """Sleep that another thread or a signal handler can cut short."""

    def __init__(self) -> None:
        self._wake = threading.Event()

    def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``.

        Returns:
            True if the wait ended early because of ``interrupt``.
        """
        return self._wake.wait(timeout=seconds)

    def interrupt(self) -> None:
        """Wake the current sleeper and any future one until ``reset``."""
        self._wake.set()

    def reset(self) -> None:
        """Allow subsequent sleeps to wait again."""
        self._wake.clear()

    @property
    def interrupted(self) -> bool:
        """Whether an interrupt is pending."""
        return self._wake.is_set()
