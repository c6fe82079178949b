"""Cooperative cancellation flag shared between a caller and a running job."""

import threading


class CancellationToken:
    """Polled by the orchestrator at the top of each loop iteration.

    Cancelling never interrupts a transcriber call in flight; the run stops
    at the next checkpoint and returns the turns collected so far.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()
