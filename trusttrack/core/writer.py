"""
Single-writer submission queue and local nonce sequence for one signing account.

All state-mutating work for an account runs on one worker thread, strictly
in arrival order, so nonces are handed out without racing the node's
"pending" view.
"""

import queue
import threading
import time
from concurrent.futures import Future
from typing import Callable, Optional

from .errors import ConnectivityError
from ..util.logging import logger

_STOP = object()


class NonceTracker:
    """Local nonce sequence seeded from the chain.

    Only the account's writer thread touches it. After any failure at or
    after signing the sequence is dropped and re-read from the chain, since
    a rejected broadcast may or may not have consumed the nonce.
    """

    def __init__(self, client, address: str):
        self.client = client
        self.address = address
        self._next: Optional[int] = None

    @property
    def next_nonce(self) -> Optional[int]:
        return self._next

    def reserve(self) -> int:
        if self._next is None:
            self._next = self.client.pending_nonce(self.address)
        return self._next

    def commit(self, nonce: int):
        self._next = nonce + 1

    def invalidate(self):
        self._next = None


class AccountWriter:
    """FIFO queue drained by a single worker thread."""

    def __init__(self, name: str):
        self.name = name
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _ensure_started(self):
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Writer for {self.name} is closed")
            if not self.running:
                self._thread = threading.Thread(
                    target=self._run, name=f"writer-{self.name}", daemon=True
                )
                self._thread.start()

    def submit(self, job: Callable, deadline: Optional[float] = None) -> Future:
        """
        Queue a job for the writer thread.

        Args:
            job: Zero-argument callable run on the writer thread
            deadline: time.monotonic() value after which the job is dropped
                unstarted with a ConnectivityError

        Returns:
            Future resolved with the job's result or exception
        """
        self._ensure_started()
        future: Future = Future()
        self._queue.put((job, future, deadline))
        return future

    def _run(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                break

            job, future, deadline = item
            if not future.set_running_or_notify_cancel():
                continue

            if deadline is not None and time.monotonic() > deadline:
                logger.log_operation("writer.job", "expired", {"account": self.name})
                future.set_exception(ConnectivityError("Submission timed out before broadcast"))
                continue

            try:
                future.set_result(job())
            except Exception as e:
                # Delivered to the waiting caller
                future.set_exception(e)

    def close(self, timeout: float = 5.0):
        """Stop the worker after already-queued jobs finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self.running:
            self._queue.put(_STOP)
            self._thread.join(timeout)
