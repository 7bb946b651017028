"""Tests for the explanation trail and the solve cache."""

import threading
import unittest

import pytest

from aljabar_pkg.cache_manager import SolveCache
from aljabar_pkg.explanation import Explanation, Step
from aljabar_pkg.types import SolverResult


class TestExplanation(unittest.TestCase):
    def test_add_is_chainable_and_ordered(self):
        explanation = Explanation().add("First", "one").add("Second", "two")
        self.assertEqual(explanation.titles(), ["First", "Second"])
        self.assertEqual(len(explanation), 2)

    def test_steps_view_is_immutable(self):
        explanation = Explanation().add("First", "one")
        steps = explanation.steps
        self.assertIsInstance(steps, tuple)
        explanation.add("Second", "two")
        self.assertEqual(len(steps), 1)

    def test_extend_rejects_non_steps(self):
        with self.assertRaises(TypeError):
            Explanation().extend(["not a step"])

    def test_find_is_case_insensitive(self):
        explanation = Explanation([Step("Discriminant", "D = 1")])
        self.assertEqual(explanation.find("discriminant").body, "D = 1")
        self.assertIsNone(explanation.find("Missing"))

    def test_rendering(self):
        explanation = Explanation().add("A", "alpha").add("B", "beta")
        self.assertEqual(explanation.to_text(), "1. A: alpha\n2. B: beta")
        self.assertEqual(
            explanation.to_dict(),
            [{"title": "A", "body": "alpha"}, {"title": "B", "body": "beta"}],
        )

    def test_empty_is_falsy_and_equality_is_by_steps(self):
        self.assertFalse(Explanation())
        self.assertEqual(Explanation().add("A", "a"), Explanation([Step("A", "a")]))


class TestSolveCache:
    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            SolveCache(0)

    def test_get_put_and_stats(self):
        cache = SolveCache(4)
        result = SolverResult.no_solution("none")
        assert cache.get(("eq", "x")) is None
        cache.put(("eq", "x"), result, [Step("A", "a")])
        assert ("eq", "x") in cache
        assert cache.get(("eq", "x")) == (result, (Step("A", "a"),))
        assert cache.stats() == {"size": 1, "maxsize": 4, "hits": 1, "misses": 1}
        assert cache.get_cache_hits() == ["eq"]

    def test_lru_eviction(self):
        cache = SolveCache(2)
        result = SolverResult.infinite()
        cache.put("a", result, [])
        cache.put("b", result, [])
        cache.get("a")
        cache.put("c", result, [])
        assert "a" in cache
        assert "b" not in cache
        assert len(cache) == 2

    def test_clear(self):
        cache = SolveCache(2)
        cache.put("a", SolverResult.infinite(), [])
        cache.get("a")
        cache.clear()
        assert len(cache) == 0
        assert cache.stats()["hits"] == 0
        assert cache.get_cache_hits() == []

    def test_concurrent_puts_respect_bound(self):
        cache = SolveCache(50)
        result = SolverResult.infinite()

        def worker(offset):
            for index in range(100):
                cache.put((offset, index), result, [])

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(cache) == 50
