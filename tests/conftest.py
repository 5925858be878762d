"""Pytest configuration for repository test runs."""

from __future__ import annotations

import queue
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

INGESTION_TIME = datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def event_queue() -> queue.Queue:
    """Empty output queue for pipeline runs."""
    return queue.Queue()


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed ingestion time."""
    return lambda: INGESTION_TIME
