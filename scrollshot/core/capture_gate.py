"""
Capture Gate - exclusive access to the capture pipeline

Only one capture or stitch flow may run at a time. Route handlers run
blocking work in worker threads, so the gate is a plain threading.Lock.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Optional

from scrollshot.utils.error_handler import CommandFailedError

logger = logging.getLogger(__name__)


class CaptureGate:
    """Non-reentrant exclusive-access token."""

    def __init__(self):
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self, blocking: bool = True, timeout: Optional[float] = None):
        """
        Hold the gate for the duration of the with-block.

        Args:
            blocking: Wait for the current holder when True
            timeout: Seconds to wait when blocking (None waits forever)

        Raises:
            CommandFailedError: If the gate could not be acquired
        """
        if not blocking:
            acquired = self._lock.acquire(blocking=False)
        elif timeout is None:
            acquired = self._lock.acquire()
        else:
            acquired = self._lock.acquire(timeout=timeout)

        if not acquired:
            logger.warning("[CaptureGate] Rejected: another capture is in progress")
            raise CommandFailedError("Another capture is already in progress")

        try:
            yield self
        finally:
            self._lock.release()
