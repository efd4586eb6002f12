import logging
import os
import queue
import threading
from pathlib import Path

from tqdm import tqdm

from . import config
from .catalog.cache import GalleryCache, load_cache, save_cache
from .config import GallerySettings
from .exceptions import EmptyGalleryError
from .imaging.thumbnails import create_thumbnail, is_portrait
from .imaging.transform import Transform
from .metadata.extract import MetadataExtractor
from .models import ImageRecord
from .organization.mover import link_or_copy
from .rendering import GalleryRenderer
from .scanning.filesystem import DirectoryWalker
from .scanning.hasher import FingerprintStrategy, strategy_for
from .scanning.pool import TaskGroup


class GalleryBuilder:
    def __init__(self, settings: GallerySettings):
        self.settings = settings
        self.transform = Transform.create(max_width=config.THUMB_MAX_WIDTH,
                                          max_height=config.THUMB_MAX_HEIGHT)
        self.metadata = MetadataExtractor()

    def build(self) -> GalleryCache:
        """
        Runs the whole pipeline:
        1. Load (or start) the gallery cache
        2. Walk the source tree, fanning images out to a worker pool
        3. Sort by capture time and render the html
        4. Persist the cache snapshot

        Any error cancels the pipeline and is re-raised once every task
        has stopped. The snapshot is only written after a clean run.
        """
        s = self.settings
        s.validate()
        renderer = GalleryRenderer.from_file(s.template)

        s.thumbs_dir.mkdir(parents=True, exist_ok=True)
        s.fullsize_dir.mkdir(parents=True, exist_ok=True)

        cache = self._open_cache()
        if s.name:
            cache.name = s.name

        workers = s.worker_count
        logging.info(f"Building gallery from {s.src_dir} ({cache.mode} mode, {workers} workers)")

        self._run_pipeline(cache, workers)

        if not cache.images:
            raise EmptyGalleryError("no images found")
        cache.sort_by_time()
        renderer.write(cache, s.html)
        logging.info(f"images added: {cache.added}, total: {len(cache.images)}")

        if s.cache_path:
            save_cache(cache, s.cache_path)
        return cache

    def _open_cache(self) -> GalleryCache:
        s = self.settings
        strategy = strategy_for(s.use_phash)
        if not s.cache_path:
            return GalleryCache(strategy=strategy)
        try:
            cache = load_cache(s.cache_path)
        except FileNotFoundError:
            logging.info(f"No gallery cache at {s.cache_path}, starting fresh")
            return GalleryCache(strategy=strategy)
        if cache.mode != strategy.mode:
            logging.warning(f"metadata cache stored with mode={cache.mode}, using it")
        return cache

    def _run_pipeline(self, cache: GalleryCache, workers: int):
        s = self.settings
        jobs: queue.Queue = queue.Queue(maxsize=workers)
        group = TaskGroup(max_workers=workers + 1)
        walker = DirectoryWalker(skip_dirs=[s.thumbs_dir, s.fullsize_dir])

        with tqdm(desc="Processing", unit="img", disable=s.quiet) as bar:
            for _ in range(workers):
                group.go(self._worker, jobs, cache, group.cancelled, bar)
            group.go(walker.feed, s.src_dir, jobs, workers, group.cancelled)
            group.wait()

    def _worker(self, jobs: queue.Queue, cache: GalleryCache, cancelled: threading.Event, bar: tqdm):
        """Drains jobs until the end marker arrives or the run is cancelled."""
        while not cancelled.is_set():
            try:
                path = jobs.get(timeout=config.QUEUE_POLL_INTERVAL)
            except queue.Empty:
                continue
            if path is None or cancelled.is_set():
                return
            record = self.process_image(path, cache.strategy)
            cache.try_insert(record)
            bar.update(1)

    def process_image(self, path: Path, strategy: FingerprintStrategy) -> ImageRecord:
        """
        Produces the gallery record for one source image, creating its
        thumbnail and full-size copy if they do not exist yet.

        Output names derive from the fingerprint, so the same image
        always maps to the same files.
        """
        s = self.settings
        fingerprint = strategy.fingerprint(path)
        fullsize = s.fullsize_dir / f"{fingerprint:x}{path.suffix}"
        thumbnail = s.thumbs_dir / f"{fingerprint:x}.jpg"

        create_thumbnail(self.transform, thumbnail, path)
        link_or_copy(fullsize, path)

        return ImageRecord(
            fingerprint=fingerprint,
            source=str(path),
            original=self._relative(fullsize),
            thumbnail=self._relative(thumbnail),
            portrait=is_portrait(thumbnail),
            time=self.metadata.capture_time(path),
        )

    def _relative(self, path: Path) -> str:
        """Path as referenced from the html file."""
        return Path(os.path.relpath(path, Path(self.settings.html).parent)).as_posix()
