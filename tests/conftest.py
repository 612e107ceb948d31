from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """
    Ensure `src/` is on sys.path so tests can import `render_canvas`
    without requiring an editable install.
    """
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"
    sys.path.insert(0, str(src_root))


class ManualScheduler:
    """Frame scheduler whose ticks are fired by the test."""

    def __init__(self) -> None:
        self._callbacks: dict[int, object] = {}
        self._next = 0

    def schedule(self, callback):
        handle = self._next
        self._next += 1
        self._callbacks[handle] = callback
        return handle

    def cancel(self, handle) -> None:
        self._callbacks.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def tick(self) -> None:
        """Run every callback scheduled before this tick."""
        callbacks = list(self._callbacks.values())
        self._callbacks.clear()
        for callback in callbacks:
            callback()


class RecordingListeners:
    """PointerListeners that remember what is attached."""

    def __init__(self) -> None:
        self.on_move = None
        self.on_release = None
        self.attach_count = 0
        self.detach_count = 0

    @property
    def attached(self) -> bool:
        return self.on_move is not None

    def attach(self, on_move, on_release) -> None:
        self.on_move = on_move
        self.on_release = on_release
        self.attach_count += 1

    def detach(self) -> None:
        self.on_move = None
        self.on_release = None
        self.detach_count += 1


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def listeners() -> RecordingListeners:
    return RecordingListeners()
