import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional


class TaskGroup:
    """
    Runs a fixed set of tasks on a thread pool with first-error
    cancellation.

    The first task to raise records its exception and sets `cancelled`;
    tasks are expected to poll `cancelled` and return early. wait()
    blocks until every task has finished and then re-raises that first
    exception.
    """

    def __init__(self, max_workers: int):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gallery")
        self._futures: List = []
        self._error: Optional[BaseException] = None
        self._error_lock = threading.Lock()
        self.cancelled = threading.Event()

    def go(self, fn: Callable, *args):
        self._futures.append(self._executor.submit(self._run, fn, *args))

    def _run(self, fn: Callable, *args):
        try:
            return fn(*args)
        except BaseException as e:
            with self._error_lock:
                if self._error is None:
                    self._error = e
            self.cancelled.set()
            raise

    def wait(self):
        try:
            wait(self._futures)
        except BaseException:
            # e.g. KeyboardInterrupt in the waiting thread
            logging.warning("Interrupted, waiting for workers to stop...")
            self.cancelled.set()
            raise
        finally:
            self._executor.shutdown(wait=True)
        if self._error is not None:
            raise self._error
