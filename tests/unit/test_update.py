"""Tests for batched LRUCache.update()."""

import gc

import pytest

from deferlru import LRUCache
from deferlru.config.settings import CacheSettings


@pytest.fixture
def small_batches() -> CacheSettings:
    return CacheSettings(_env_file=None, update_batch_size=4)


class TestUpdate:
    def test_update_from_mapping(self, settings) -> None:
        cache = LRUCache(5, settings=settings)
        cache.update({"a": 1, "b": 2})
        assert cache.items() == [("b", 2), ("a", 1)]

    def test_update_from_pairs_then_overrides(self, settings) -> None:
        cache = LRUCache(5, settings=settings)
        cache.update([("a", 1), ("b", 2)], c=3, a=10)
        assert cache.keys() == ["a", "c", "b"]
        assert cache.get("a") == 10

    def test_update_without_arguments(self, settings) -> None:
        cache = LRUCache(2, settings=settings)
        cache.update()
        assert len(cache) == 0

    def test_update_from_generator(self, settings) -> None:
        cache = LRUCache(3, settings=settings)
        cache.update((i, i * i) for i in range(5))
        assert cache.items() == [(4, 16), (3, 9), (2, 4)]

    def test_update_larger_than_capacity(self, small_batches, recorder) -> None:
        cache = LRUCache(3, callback=recorder, settings=small_batches)
        source = {f"k{i}": i for i in range(10)}
        cache.update(source)
        assert cache.keys() == ["k9", "k8", "k7"]
        assert recorder.keys == [f"k{i}" for i in range(7)]
        assert cache.purge_queue_size == 0

    def test_update_with_repeated_keys(self, small_batches, recorder) -> None:
        cache = LRUCache(2, callback=recorder, settings=small_batches)
        pairs = [("a", 1), ("b", 1), ("a", 2), ("c", 1), ("a", 3), ("d", 1)]
        cache.update(pairs)
        # last two distinct keys by last write
        assert cache.keys() == ["d", "a"]
        assert cache.get("a") == 3
        assert recorder.keys == ["b", "c"]

    def test_bad_pair_raises(self, settings) -> None:
        cache = LRUCache(3, settings=settings)
        with pytest.raises((TypeError, ValueError)):
            cache.update([("a", 1, 2)])
        assert not cache._guard.busy

    def test_purges_between_batches(self, small_batches) -> None:
        heads_seen: list[int] = []
        cache = LRUCache(2, settings=small_batches)
        cache.callback = lambda k, v: heads_seen.append(cache.peek_first()[0])
        cache.update((i, i) for i in range(10))
        # batches of 4: purges run after keys 3, 7 and 9 are written
        assert heads_seen == [3, 3, 7, 7, 7, 7, 9, 9]
        assert cache.keys() == [9, 8]

    def test_superseded_values_released_per_batch(self, small_batches) -> None:
        cache = LRUCache(10, settings=small_batches)
        alive: list[str] = []

        class Tracked:
            def __init__(self, name):
                self.name = name
                alive.append(name)

            def __del__(self):
                alive.remove(self.name)

        cache.update({i: Tracked(f"old{i}") for i in range(8)})
        assert len(alive) == 8

        def replacements():
            for i in range(8):
                if i == 6:
                    # the first batch of replacements is already released
                    assert "old0" not in alive and "old3" not in alive
                yield i, i
            gc.collect()

        cache.update(replacements())
        assert alive == []

    def test_update_rejected_inside_callback(self, settings) -> None:
        from deferlru import ReentrancyError

        errors: list = []
        cache = LRUCache(1, settings=settings)

        def cb(key, value):
            try:
                cache.update({"x": 1})
            except ReentrancyError as e:
                errors.append(e)

        cache.callback = cb
        cache.update({"a": 1, "b": 2})
        assert len(errors) == 1
        assert cache.keys() == ["b"]

    def test_update_from_itself(self, settings) -> None:
        cache = LRUCache(3, settings=settings)
        cache.update({"a": 1, "b": 2})
        cache.update(cache)
        assert cache.to_dict() == {"a": 1, "b": 2}
        assert len(cache) == 2
        assert cache.get_stats().hits == 2
        assert not cache._guard.busy

    def test_source_generator_may_read_cache(self, settings) -> None:
        cache = LRUCache(3, settings=settings)
        cache.update({"a": 1})
        cache.update((k + "2", cache.get(k)) for k in ["a"])
        assert cache.get("a2") == 1
        assert cache.keys() == ["a2", "a"]

    def test_source_reads_between_batches(self, small_batches) -> None:
        cache = LRUCache(10, settings=small_batches)
        seen: list[int] = []

        def source():
            for i in range(6):
                # pairs already applied are visible to later reads
                seen.append(len(cache))
                yield i, i

        cache.update(source())
        assert seen == [0, 0, 0, 0, 4, 4]
        assert len(cache) == 6
