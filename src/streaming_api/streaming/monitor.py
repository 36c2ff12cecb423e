"""Execution monitors: decide whether the consume loop keeps reconnecting."""

from __future__ import annotations

import signal
from typing import Any, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


@runtime_checkable
class ExecutionMonitor(Protocol):
    """Consulted by the controller once before every connection attempt."""

    def should_continue(self) -> bool: ...


class StopFlagMonitor:
    """Runs until :meth:`stop` is called.  Safe to share between controllers."""

    def __init__(self) -> None:
        self._running = True

    def should_continue(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False


class SignalMonitor(StopFlagMonitor):
    """Stops on SIGINT / SIGTERM."""

    def install(self) -> SignalMonitor:
        def _shutdown(signum: int, frame: Any) -> None:
            logger.info("monitor.shutdown_signal", signal=signum)
            self.stop()

        signal.signal(signal.SIGINT, _shutdown)
        signal.signal(signal.SIGTERM, _shutdown)
        return self


class BoundedMonitor(StopFlagMonitor):
    """Allows at most ``max_sessions`` connection attempts."""

    def __init__(self, max_sessions: int) -> None:
        super().__init__()
        if max_sessions < 0:
            msg = f"max_sessions must be >= 0, got {max_sessions}"
            raise ValueError(msg)
        self._remaining = max_sessions

    def should_continue(self) -> bool:
        if not super().should_continue() or self._remaining <= 0:
            return False
        self._remaining -= 1
        return True
