"""
A cancellation token shared by every stage of the sync.
The token is cancelled explicitly or when its optional deadline passes.
Pagination loops and the detail worker pool check it between requests.
"""

import threading  # For a thread-safe cancellation flag shared with worker threads
import time  # For the monotonic deadline
from typing import Optional

from errors import SyncCancelledError


class CancellationToken:
    def __init__(self, timeout_seconds: Optional[float] = None):
        """
        Args:
            timeout_seconds: optional number of seconds after which the token counts as cancelled.
        """
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_seconds if timeout_seconds else None

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
        return self._event.is_set()

    def raise_if_cancelled(self):
        """
        Raise SyncCancelledError if the token has been cancelled or the deadline has passed.
        """
        if self.cancelled:
            raise SyncCancelledError("Sync cancelled before completion")
