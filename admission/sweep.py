"""Background reclamation of idle actor ledgers."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


class ReclamationSweep:
    """Runs ``callback`` every ``interval`` seconds on a daemon thread.

    Each run owns its stop event, so a loop told to stop never resumes.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], int],
        *,
        name: str = "admission-sweep",
    ) -> None:
        self._interval = interval
        self._callback = callback
        self._name = name
        self._stop = threading.Event()
        self._stop.set()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop.is_set()
        )

    def start(self) -> None:
        if self.running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop,), name=self._name, daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)
        if not thread.is_alive():
            self._thread = None

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self._interval):
            try:
                self._callback()
            except Exception:  # noqa: BLE001
                LOGGER.exception("Reclamation sweep failed")
