"""
Cooperative cancellation for batch runs.

Classes:
    CancellationToken: Flag checked by the batch runner after each variant
"""

import logging
import threading

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Advisory cancellation flag.

    The flag may be set from another thread or a signal handler. The batch
    runner checks it after every generated variant and asks its
    ``confirm_abort`` callback whether to stop; if the answer is no the
    token is reset and processing resumes.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()
        logger.debug("Cancellation requested")

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
