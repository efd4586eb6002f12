import logging
import os
import queue
import threading
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

from .. import config


class DirectoryWalker:
    """
    Producer side of the ingestion pipeline: finds JPEG files under a
    root and feeds them to the workers.
    """

    def __init__(self, skip_dirs: Optional[Iterable[Path]] = None):
        self.skip_dirs: Set[Path] = {Path(p).resolve() for p in (skip_dirs or ())}

    def iter_candidates(self, root: Path) -> Iterator[Path]:
        """
        Depth-first walk using os.scandir, yielding regular .jpg/.jpeg
        files. Directories in skip_dirs are not descended into.
        Unreadable directories raise.
        """
        stack = [Path(root)]
        while stack:
            current = stack.pop()
            if current.resolve() in self.skip_dirs:
                logging.debug(f"Skipping output directory {current}")
                continue

            with os.scandir(current) as it:
                entries = list(it)

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name)

            dirs = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False) and self._is_candidate(e.name):
                    yield Path(e.path)

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

    def _is_candidate(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in config.JPEG_EXTS

    def feed(self,
             root: Path,
             jobs: queue.Queue,
             consumers: int,
             cancelled: threading.Event) -> int:
        """
        Puts every candidate path on jobs, blocking while the queue is
        full, then one None per consumer to mark the end of work.

        Stops early once cancelled is set. Returns the number of paths
        submitted.
        """
        submitted = 0
        last_report = time.monotonic()
        for path in self.iter_candidates(root):
            if not self._put(jobs, path, cancelled):
                logging.debug(f"Walk cancelled after {submitted} images")
                return submitted
            submitted += 1

            now = time.monotonic()
            if now - last_report >= config.PROGRESS_INTERVAL:
                logging.info(f"processed {submitted} images")
                last_report = now

        for _ in range(consumers):
            if not self._put(jobs, None, cancelled):
                break
        return submitted

    def _put(self, jobs: queue.Queue, item: Optional[Path], cancelled: threading.Event) -> bool:
        while not cancelled.is_set():
            try:
                jobs.put(item, timeout=config.QUEUE_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False
