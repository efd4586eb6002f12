import random
import threading
from datetime import datetime, UTC

import pytest

from photo_gallery.catalog.cache import GalleryCache
from photo_gallery.exceptions import DuplicateImageError, PerceptualDuplicateError
from photo_gallery.scanning.hasher import ContentHasher, PerceptualHasher

from conftest import make_record


def perceptual_cache(images=None):
    return GalleryCache(strategy=PerceptualHasher(threshold=5), images=images)


def fingerprints(cache):
    return [rec.fingerprint for rec in cache.images]


# --- Exact mode ---

def test_exact_reinsert_same_source_is_noop():
    cache = GalleryCache(strategy=ContentHasher())
    assert cache.try_insert(make_record(1, source="/a.jpg"))
    assert not cache.try_insert(make_record(1, source="/a.jpg"))
    assert fingerprints(cache) == [1]
    assert cache.added == 1


def test_exact_same_fingerprint_other_source_fails():
    cache = GalleryCache(strategy=ContentHasher())
    cache.try_insert(make_record(1, source="/a.jpg"))
    with pytest.raises(DuplicateImageError) as exc:
        cache.try_insert(make_record(1, source="/b.jpg"))
    assert exc.value.source == "/b.jpg"
    assert exc.value.existing_source == "/a.jpg"
    assert "/a.jpg" in str(exc.value) and "/b.jpg" in str(exc.value)
    assert exc.value.image_id == make_record(1).id


def test_exact_count_matches_distinct_fingerprints():
    cache = GalleryCache(strategy=ContentHasher())
    for fp in [5, 3, 5, 9, 3, 1]:
        cache.try_insert(make_record(fp))
    assert sorted(fingerprints(cache)) == [1, 3, 5, 9]
    assert cache.added == 4


def test_exact_lookup_covers_preloaded_records():
    cache = GalleryCache(strategy=ContentHasher(), images=[make_record(7, source="/old.jpg")])
    assert not cache.try_insert(make_record(7, source="/old.jpg"))
    with pytest.raises(DuplicateImageError):
        cache.try_insert(make_record(7, source="/new.jpg"))
    assert cache.added == 0


# --- Perceptual mode ---

class NumericDistanceHasher(PerceptualHasher):
    """Distance on the fingerprint values themselves, so neighbors are easy to reason about."""

    @staticmethod
    def distance(a, b):
        return abs(a - b)


def test_perceptual_scenario():
    cache = GalleryCache(strategy=NumericDistanceHasher(threshold=5))
    assert cache.try_insert(make_record(100))
    with pytest.raises(PerceptualDuplicateError) as exc:
        cache.try_insert(make_record(101))
    assert exc.value.distance == 1
    assert "distance=1" in str(exc.value)
    assert cache.try_insert(make_record(500))
    assert fingerprints(cache) == [100, 500]


def test_perceptual_checks_left_neighbor_on_append():
    cache = perceptual_cache()
    cache.try_insert(make_record(0b1000000))
    with pytest.raises(PerceptualDuplicateError):
        cache.try_insert(make_record(0b1000011))


def test_perceptual_checks_right_neighbor():
    cache = perceptual_cache()
    cache.try_insert(make_record(0b111))
    with pytest.raises(PerceptualDuplicateError):
        cache.try_insert(make_record(0b011))


def test_perceptual_same_image_resubmitted_is_noop():
    t = datetime(2020, 5, 1, tzinfo=UTC)
    cache = perceptual_cache()
    cache.try_insert(make_record(1 << 40, source="/a.jpg", time=t))
    assert not cache.try_insert(make_record(1 << 40, source="/a.jpg", time=t))
    assert cache.added == 1


@pytest.mark.parametrize("source,time", [
    ("/b.jpg", datetime(2020, 5, 1, tzinfo=UTC)),
    ("/a.jpg", datetime(2020, 5, 2, tzinfo=UTC)),
])
def test_perceptual_same_fingerprint_differing_source_or_time_fails(source, time):
    cache = perceptual_cache()
    cache.try_insert(make_record(1 << 40, source="/a.jpg", time=datetime(2020, 5, 1, tzinfo=UTC)))
    with pytest.raises(PerceptualDuplicateError) as exc:
        cache.try_insert(make_record(1 << 40, source=source, time=time))
    assert exc.value.distance == 0


def test_perceptual_only_adjacent_neighbors_are_checked():
    cache = perceptual_cache()
    for fp in [0b11111, 0b10000000, 0xFF00]:
        cache.try_insert(make_record(fp))
    # 0xFF lands between 0b10000000 and 0xFF00, both far from it; the
    # non-adjacent 0b11111 is within threshold but never examined
    assert PerceptualHasher.distance(0b11111, 0xFF) == 3
    assert cache.try_insert(make_record(0xFF))
    assert fingerprints(cache) == [0b11111, 0b10000000, 0xFF, 0xFF00]


def test_perceptual_sorts_preloaded_records_once():
    loaded = [make_record(fp) for fp in [1 << 60, 1 << 20, 1 << 40]]
    cache = perceptual_cache(images=loaded)
    cache.try_insert(make_record((1 << 30) | 0xFFFF))
    assert fingerprints(cache) == sorted(fingerprints(cache))
    assert len(cache.images) == 4


def test_perceptual_invariants_hold_under_random_inserts():
    rng = random.Random(1234)
    cache = perceptual_cache()
    for _ in range(500):
        try:
            cache.try_insert(make_record(rng.getrandbits(64)))
        except PerceptualDuplicateError:
            pass
    fps = fingerprints(cache)
    assert fps == sorted(fps)
    for a, b in zip(fps, fps[1:]):
        assert PerceptualHasher.distance(a, b) > 5


def spread(k):
    """Repeats byte k seven times, so distinct k differ in at least 7 bits."""
    return int.from_bytes(bytes([k]) * 7, "big")


def test_concurrent_inserts_are_serialized():
    cache = perceptual_cache(images=[make_record(spread(k)) for k in range(50, 0, -1)])
    values = [spread(k) for k in range(51, 251)]
    errors = []

    def insert(chunk):
        for fp in chunk:
            try:
                cache.try_insert(make_record(fp))
            except PerceptualDuplicateError as e:
                errors.append(e)

    threads = [threading.Thread(target=insert, args=(values[i::4],)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert cache.added == len(values)
    assert fingerprints(cache) == sorted(fingerprints(cache))


def test_sort_by_time_newest_first():
    cache = GalleryCache()
    for day in [3, 1, 2]:
        cache.try_insert(make_record(day, time=datetime(2020, 1, day, tzinfo=UTC)))
    cache.sort_by_time()
    assert [rec.time.day for rec in cache.images] == [3, 2, 1]
