"""
Cooperative cancellation for space_saver batches.

A single CancellationToken is threaded through a run. The pipeline checks it
at the top of every paging round and every item; the encoder and the ffprobe
runner poll it while waiting on their process and kill it when it trips.

Ctrl+C handling mirrors a graceful pause: the first interrupt cancels the
token, the second restores the default handler and raises KeyboardInterrupt.
"""

import signal
import threading

from space_saver.utils.logging import get_logger
from ..exceptions import ConversionCancelled

logger = get_logger("cancellation")


class CancellationToken:
    """Thread-safe cancellation flag."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, summary=None):
        if self._event.is_set():
            raise ConversionCancelled(summary=summary)


class InterruptHandler:
    """Binds SIGINT to a CancellationToken for the lifetime of a `with` block."""

    def __init__(self, token: CancellationToken):
        self.token = token
        self._interrupt_count = 0
        self._original_handler = None
        self._lock = threading.Lock()

    def __enter__(self):
        self._original_handler = signal.signal(signal.SIGINT, self._handle_interrupt)
        logger.info("Press Ctrl+C once to stop after cancelling the current item, twice for immediate exit.")
        return self

    def __exit__(self, *exc):
        if self._original_handler is not None:
            signal.signal(signal.SIGINT, self._original_handler)
            self._original_handler = None
        return False

    def _handle_interrupt(self, signum, frame):
        with self._lock:
            self._interrupt_count += 1
            if self._interrupt_count == 1:
                logger.warn("Interrupt received. Cancelling batch...")
                self.token.cancel()
            else:
                logger.warn("Second interrupt received. Exiting immediately.")
                signal.signal(signal.SIGINT, signal.default_int_handler)
                raise KeyboardInterrupt("Immediate exit requested")
