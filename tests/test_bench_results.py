"""Tests for versus.bench.results: trials, aggregates and result stores."""

from __future__ import annotations

import unittest

from bench_test_helpers import make_aggregated, make_trial

from versus.bench.config import Operation
from versus.bench.results import (
    ComparisonResult,
    RepositorySizeMeasurement,
    ResultsStore,
    Side,
    Winner,
    WinnersStore,
)


class TestWinner(unittest.TestCase):
    def test_inverse(self) -> None:
        self.assertIs(Winner.CANDIDATE.inverse, Winner.BASELINE)
        self.assertIs(Winner.BASELINE.inverse, Winner.CANDIDATE)
        self.assertIs(Winner.TIE.inverse, Winner.TIE)


class TestTrial(unittest.TestCase):
    def test_ok_flags(self) -> None:
        self.assertTrue(make_trial().ok)
        self.assertFalse(make_trial(exit_code=128).ok)
        self.assertFalse(make_trial(timed_out=True).ok)

    def test_has_failures(self) -> None:
        self.assertFalse(make_aggregated().has_failures)
        self.assertTrue(make_aggregated(failed=1).has_failures)


class TestResultsStore(unittest.TestCase):
    def test_record_and_get(self) -> None:
        store = ResultsStore()
        agg = make_aggregated(42)
        store.record("10_1KB", Side.CANDIDATE, Operation.ADD, agg)
        self.assertIs(store.get("10_1KB", Side.CANDIDATE, Operation.ADD), agg)
        self.assertIsNone(store.get("10_1KB", Side.BASELINE, Operation.ADD))
        self.assertIn(("10_1KB", Side.CANDIDATE, Operation.ADD), store)
        self.assertEqual(len(store), 1)

    def test_write_once(self) -> None:
        store = ResultsStore()
        store.record("10_1KB", Side.CANDIDATE, Operation.ADD, make_aggregated())
        with self.assertRaises(ValueError):
            store.record("10_1KB", Side.CANDIDATE, Operation.ADD, make_aggregated())

    def test_sides_are_separate(self) -> None:
        store = ResultsStore()
        store.record("10_1KB", Side.CANDIDATE, Operation.ADD, make_aggregated(1))
        store.record("10_1KB", Side.BASELINE, Operation.ADD, make_aggregated(2))
        self.assertEqual(len(store), 2)

    def test_sizes(self) -> None:
        store = ResultsStore()
        size = RepositorySizeMeasurement("git", 2048)
        store.record_size("10_1KB", Side.BASELINE, size)
        self.assertIs(store.size("10_1KB", Side.BASELINE), size)
        self.assertIsNone(store.size("10_1KB", Side.CANDIDATE))
        with self.assertRaises(ValueError):
            store.record_size("10_1KB", Side.BASELINE, size)
        # Sizes are not operation results.
        self.assertEqual(len(store), 0)


class TestWinnersStore(unittest.TestCase):
    def test_record_and_items(self) -> None:
        store = WinnersStore()
        tie = ComparisonResult(winner=Winner.TIE)
        store.record("10_1KB", Operation.COMMIT, tie)
        self.assertIs(store.get("10_1KB", Operation.COMMIT), tie)
        self.assertIsNone(store.get("10_1KB", Operation.ADD))
        self.assertEqual(list(store.items()), [(("10_1KB", Operation.COMMIT), tie)])
        self.assertIn(("10_1KB", Operation.COMMIT), store)
        self.assertEqual(len(store), 1)

    def test_write_once(self) -> None:
        store = WinnersStore()
        store.record("10_1KB", Operation.ADD, ComparisonResult(winner=Winner.TIE))
        with self.assertRaises(ValueError):
            store.record("10_1KB", Operation.ADD, ComparisonResult(winner=Winner.CANDIDATE))
