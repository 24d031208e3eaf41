#!/usr/bin/env python3
"""
KENOLAB — Unit & Integration Test Suite

Run: python tests.py
     python tests.py -v                  # verbose
     python tests.py TestProbability     # run specific class

Test categories:
  TestCombinatorics     — factorial, partial factorial, combinations
  TestProbability       — single-cell probabilities, contract violations
  TestProbabilityMatrix — row sums, zero triangle, accessors, idempotence
  TestPayoutTable       — shipped sheet values, schema validation
  TestExpectedValue     — divisor, index offset, per-term breakdown
  TestMonteCarlo        — seeded simulation agrees with the exact rows
  TestSettings          — env-driven config, logging handlers
"""

import logging
import math
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))


def _hypergeom(marked, caught):
    """Reference value from the standard library's exact binomials."""
    return math.comb(20, caught) * math.comb(60, marked - caught) / math.comb(80, marked)


# ============================================================
# Combinatorics
# ============================================================

class TestCombinatorics(unittest.TestCase):

    def test_factorial_base_cases(self):
        from sim_engine.keno.combinatorics import factorial
        self.assertEqual(factorial(0), 1)
        self.assertEqual(factorial(1), 1)
        self.assertEqual(factorial(5), 120)
        self.assertEqual(factorial(20), 2432902008176640000)

    def test_factorial_negative(self):
        from sim_engine.keno.combinatorics import factorial
        with self.assertRaises(ValueError):
            factorial(-1)

    def test_partial_factorial(self):
        """partial_factorial(10, 4) = 10 × 9 × 8 × 7."""
        from sim_engine.keno.combinatorics import partial_factorial
        self.assertEqual(partial_factorial(10, 4), 5040.0)
        self.assertIsInstance(partial_factorial(10, 4), float)
        self.assertEqual(partial_factorial(20, 20), float(math.factorial(20)))

    def test_partial_factorial_zero_terms(self):
        from sim_engine.keno.combinatorics import partial_factorial
        for n in (0, 1, 20, 60, 80):
            self.assertEqual(partial_factorial(n, 0), 1.0)

    def test_partial_factorial_large_base(self):
        """80 with 20 terms is far past 64-bit range but still finite."""
        from sim_engine.keno.combinatorics import partial_factorial
        value = partial_factorial(80, 20)
        self.assertGreater(value, 2 ** 64)
        self.assertAlmostEqual(value / math.perm(80, 20), 1.0, places=12)

    def test_partial_factorial_negative_terms(self):
        from sim_engine.keno.combinatorics import partial_factorial
        with self.assertRaises(ValueError):
            partial_factorial(10, -1)

    def test_partial_factorial_too_many_terms(self):
        """More terms than the base has would multiply through zero."""
        from sim_engine.keno.combinatorics import partial_factorial
        with self.assertRaises(ValueError):
            partial_factorial(10, 11)
        with self.assertRaises(ValueError):
            partial_factorial(0, 1)
        self.assertEqual(partial_factorial(10, 10), float(math.factorial(10)))

    def test_combinations_known_value(self):
        from sim_engine.keno.combinatorics import combinations
        self.assertEqual(combinations(9, 5), 126)

    def test_combinations_edges(self):
        from sim_engine.keno.combinatorics import combinations
        for n in range(0, 21):
            self.assertEqual(combinations(n, 0), 1)
            self.assertEqual(combinations(n, n), 1)
            for r in range(n + 1, n + 4):
                self.assertEqual(combinations(n, r), 0, f"C({n},{r}) should be 0")
            for r in range(0, n + 1):
                self.assertEqual(combinations(n, r), math.comb(n, r))

    def test_combinations_refuses_large_base(self):
        """The 80 ball pool must never go through full factorials."""
        from sim_engine.keno.combinatorics import combinations
        with self.assertRaises(ValueError):
            combinations(80, 20)


# ============================================================
# Probability Engine
# ============================================================

class TestProbability(unittest.TestCase):

    def test_one_spot_one_catch(self):
        """20 of 80 balls drawn: a single mark is caught a quarter of the time."""
        from sim_engine.keno.probability import keno_probability
        self.assertEqual(keno_probability(1, 1), 0.25)
        self.assertEqual(keno_probability(1, 0), 0.75)

    def test_nine_spot_catches(self):
        """9 spots: catch 5 pays $4.00, catch 6 pays $43.00 on the sheet."""
        from sim_engine.keno.probability import keno_probability
        self.assertAlmostEqual(keno_probability(9, 5), 0.0326015, delta=1e-6)
        self.assertAlmostEqual(keno_probability(9, 6), 0.0057196, delta=1e-6)

    def test_matches_hypergeometric(self):
        from sim_engine.keno.probability import keno_probability
        for m in range(1, 21):
            for c in range(0, m + 1):
                self.assertAlmostEqual(keno_probability(m, c), _hypergeom(m, c), places=14,
                                       msg=f"P(catch {c} of {m})")

    def test_impossible_catch_is_zero(self):
        from sim_engine.keno.probability import keno_probability
        self.assertEqual(keno_probability(3, 4), 0.0)
        self.assertEqual(keno_probability(1, 20), 0.0)

    def test_impossible_catch_skips_formula(self):
        from sim_engine.keno import probability
        with patch.object(probability, "partial_factorial") as pf:
            self.assertEqual(probability.keno_probability(5, 6), 0.0)
            pf.assert_not_called()

    def test_contract_violations(self):
        from sim_engine.keno.probability import keno_probability
        with self.assertRaises(ValueError):
            keno_probability(0, 0)
        with self.assertRaises(ValueError):
            keno_probability(21, 1)
        with self.assertRaises(ValueError):
            keno_probability(5, -1)


class TestProbabilityMatrix(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        from flows.keno_pipeline import build_probability_matrix
        cls.matrix = build_probability_matrix()

    def test_shape(self):
        self.assertEqual(len(self.matrix.rows), 20)
        for row in self.matrix.rows:
            self.assertEqual(len(row), 21)
        self.assertEqual(self.matrix.max_marked, 20)
        self.assertEqual(self.matrix.max_caught, 20)

    def test_rows_sum_to_one(self):
        for m in range(1, 21):
            self.assertAlmostEqual(self.matrix.row_sum(m), 1.0, delta=1e-9,
                                   msg=f"row for {m} spots")

    def test_upper_triangle_is_exactly_zero(self):
        for m in range(1, 21):
            for c in range(m + 1, 21):
                self.assertEqual(self.matrix.probability(m, c), 0.0)

    def test_entries_are_probabilities(self):
        for row in self.matrix.rows:
            for p in row:
                self.assertGreaterEqual(p, 0.0)
                self.assertLessEqual(p, 1.0)

    def test_accessor_uses_one_based_marked(self):
        self.assertEqual(self.matrix.probability(1, 1), self.matrix.rows[0][1])
        self.assertEqual(self.matrix.probability(20, 20), self.matrix.rows[19][20])
        self.assertEqual(self.matrix.distribution(3), self.matrix.rows[2][:4])

    def test_accessor_bounds(self):
        with self.assertRaises(IndexError):
            self.matrix.probability(0, 0)
        with self.assertRaises(IndexError):
            self.matrix.probability(21, 0)
        with self.assertRaises(IndexError):
            self.matrix.probability(5, 21)
        with self.assertRaises(IndexError):
            self.matrix.probability(5, -1)

    def test_immutable(self):
        from dataclasses import FrozenInstanceError
        with self.assertRaises(FrozenInstanceError):
            self.matrix.rows = ()
        with self.assertRaises(TypeError):
            self.matrix.rows[0][0] = 1.0

    def test_idempotent(self):
        """Recomputing gives bit-identical tables."""
        from config.payout_schema import DEFAULT_PAYOUT_TABLE
        from flows.keno_pipeline import build_probability_matrix
        from sim_engine.keno.expected_value import compute_expected_values

        again = build_probability_matrix()
        self.assertEqual(again, self.matrix)
        ev1 = compute_expected_values(self.matrix, DEFAULT_PAYOUT_TABLE)
        ev2 = compute_expected_values(again, DEFAULT_PAYOUT_TABLE)
        self.assertEqual(ev1.values, ev2.values)

    def test_to_dict(self):
        d = self.matrix.to_dict(precision=4)
        self.assertEqual(d["1"]["1"], 0.25)
        self.assertEqual(d["2"]["5"], 0.0)
        self.assertEqual(len(d), 20)


# ============================================================
# Payout Table
# ============================================================

class TestPayoutTable(unittest.TestCase):

    def test_shipped_values(self):
        from config.payout_schema import DEFAULT_PAYOUT_TABLE as t
        self.assertEqual(t.payout(1, 1), 3.0)
        self.assertEqual(t.payout(9, 5), 4.0)
        self.assertEqual(t.payout(9, 6), 43.0)
        self.assertEqual(t.payout(9, 9), 25000.0)
        self.assertEqual(t.payout(8, 8), 20000.0)
        self.assertEqual(t.payout(5, 2), 0.0)
        self.assertEqual(list(t.spots), list(range(1, 10)))

    def test_bounds(self):
        from config.payout_schema import DEFAULT_PAYOUT_TABLE as t
        with self.assertRaises(IndexError):
            t.payout(0, 1)
        with self.assertRaises(IndexError):
            t.payout(1, 10)
        with self.assertRaises(IndexError):
            t.row(10)

    def test_rejects_wrong_shape(self):
        from pydantic import ValidationError
        from config.payout_schema import PayoutTable
        with self.assertRaises(ValidationError):
            PayoutTable(rows=tuple((0.0,) * 9 for _ in range(8)))
        with self.assertRaises(ValidationError):
            PayoutTable(rows=tuple((0.0,) * 8 for _ in range(9)))

    def test_rejects_negative_payout(self):
        from pydantic import ValidationError
        from config.payout_schema import PayoutTable
        rows = [[0.0] * 9 for _ in range(9)]
        rows[4][2] = -1.0
        with self.assertRaises(ValidationError):
            PayoutTable(rows=rows)

    def test_frozen(self):
        from pydantic import ValidationError
        from config.payout_schema import DEFAULT_PAYOUT_TABLE
        with self.assertRaises(ValidationError):
            DEFAULT_PAYOUT_TABLE.rows = ()


# ============================================================
# Expected Value Engine
# ============================================================

class TestExpectedValue(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        from config.payout_schema import DEFAULT_PAYOUT_TABLE
        from flows.keno_pipeline import build_probability_matrix
        from sim_engine.keno.expected_value import compute_expected_values
        cls.payouts = DEFAULT_PAYOUT_TABLE
        cls.matrix = build_probability_matrix()
        cls.ev = compute_expected_values(cls.matrix, cls.payouts)

    def test_length(self):
        self.assertEqual(len(self.ev), 9)

    def test_one_spot_exact(self):
        """EV(1) = P(1,1) × 3.0 / 2, bit for bit."""
        expected = self.matrix.probability(1, 1) * 3.0 / 2
        self.assertEqual(self.ev.expected_value(1), expected)
        self.assertEqual(self.ev.expected_value(1), 0.375)

    def test_two_spot(self):
        p22 = 20 * 19 / (80 * 79)
        self.assertAlmostEqual(self.ev.expected_value(2), p22 * 12.0 / 3, places=15)

    def test_divisor_is_spots_plus_one(self):
        for s in range(1, 10):
            total = sum(self.matrix.probability(s, c) * self.payouts.payout(s, c)
                        for c in range(1, 10))
            self.assertAlmostEqual(self.ev.expected_value(s), total / (s + 1), places=12)

    def test_nine_spot_terms(self):
        """9 spots: $4.00 at catch 5 and $43.00 at catch 6 use matrix columns 5 and 6."""
        from sim_engine.keno.expected_value import expected_value_terms
        terms = {t.caught: t for t in expected_value_terms(self.matrix, self.payouts, 9)}
        self.assertEqual(sorted(terms), [5, 6, 7, 8, 9])
        self.assertEqual(terms[5].payout, 4.0)
        self.assertEqual(terms[5].probability, self.matrix.probability(9, 5))
        self.assertAlmostEqual(terms[5].contribution,
                               self.matrix.probability(9, 5) * 4.0 / 10, places=15)
        self.assertEqual(terms[6].payout, 43.0)
        self.assertAlmostEqual(terms[6].contribution,
                               self.matrix.probability(9, 6) * 43.0 / 10, places=15)

    def test_zero_payouts_skipped(self):
        from sim_engine.keno.expected_value import expected_value_terms
        terms = expected_value_terms(self.matrix, self.payouts, 5)
        self.assertEqual([t.caught for t in terms], [3, 4, 5])
        self.assertTrue(all(t.payout > 0 for t in terms))

    def test_house_edge(self):
        self.assertAlmostEqual(self.ev.house_edge(1), 0.625)
        with self.assertRaises(IndexError):
            self.ev.expected_value(10)

    def test_debug_trace(self):
        from sim_engine.keno.expected_value import compute_expected_values
        with self.assertLogs("kenolab.ev", level="DEBUG") as cm:
            compute_expected_values(self.matrix, self.payouts)
        joined = "\n".join(cm.output)
        self.assertIn("KP(9,6)", joined)
        self.assertIn("PO(9,6) =43.0", joined)
        self.assertNotIn("PO(9,1)", joined)


# ============================================================
# Monte Carlo
# ============================================================

class TestMonteCarlo(unittest.TestCase):

    def test_seeded_is_reproducible(self):
        from sim_engine.keno.montecarlo import CatchSimulator
        a = CatchSimulator(seed=7).simulate(5, 2000)
        b = CatchSimulator(seed=7).simulate(5, 2000)
        self.assertEqual(a.counts, b.counts)
        self.assertEqual(sum(a.counts), 2000)
        self.assertEqual(len(a.counts), 6)

    def test_matches_exact_row(self):
        from flows.keno_pipeline import build_probability_matrix
        from sim_engine.keno.montecarlo import CatchSimulator
        matrix = build_probability_matrix()
        result = CatchSimulator(seed=42).validate_row(matrix, 4, rounds=20_000)
        self.assertTrue(result.passed, result.summary())
        self.assertEqual(len(result.expected), 5)
        self.assertTrue(result.to_dict()["pass"])

    def test_allowance_shrinks_with_rounds(self):
        """More rounds, tighter band; short runs still pass a correct matrix."""
        from flows.keno_pipeline import build_probability_matrix
        from sim_engine.keno.montecarlo import CatchSimulator
        matrix = build_probability_matrix()
        short = CatchSimulator(seed=42).validate_row(matrix, 15, rounds=2000)
        long = CatchSimulator(seed=42).validate_row(matrix, 15, rounds=50_000)
        self.assertTrue(short.passed, short.summary())
        for a_short, a_long in zip(short.allowances, long.allowances):
            self.assertGreater(a_short, a_long)

    def test_wrong_row_fails(self):
        from sim_engine.keno.montecarlo import CatchSimulator
        result = CatchSimulator(seed=42).simulate(1, 2000)
        result.expected = [0.5, 0.5]
        self.assertFalse(result.passed)
        self.assertIn("❌ FAIL", result.summary())

    def test_bad_arguments(self):
        from sim_engine.keno.montecarlo import CatchSimulator
        sim = CatchSimulator()
        with self.assertRaises(ValueError):
            sim.simulate(0, 100)
        with self.assertRaises(ValueError):
            sim.simulate(3, 0)


# ============================================================
# Settings
# ============================================================

class TestSettings(unittest.TestCase):

    def test_constants(self):
        from config.settings import KenoConfig
        self.assertEqual(KenoConfig.TOTAL_BALLS, 80)
        self.assertEqual(KenoConfig.DRAWN_BALLS, 20)
        self.assertEqual(KenoConfig.MAX_SPOTS, 20)
        self.assertEqual(KenoConfig.PAYOUT_SPOTS, 9)

    def test_output_dir_resolution(self):
        from config.settings import KenoConfig
        self.assertEqual(KenoConfig.output_dir("/tmp/x"), Path("/tmp/x"))
        with patch.dict(os.environ, {"KENO_OUTPUT_DIR": "/tmp/from-env"}):
            self.assertEqual(KenoConfig.output_dir(), Path("/tmp/from-env"))

    def test_debug_log_file(self):
        """The debug log captures every probability cell the pipeline computes."""
        from config.settings import close_debug_log, configure_logging
        from flows.keno_pipeline import build_probability_matrix

        log_path = Path(tempfile.mkdtemp()) / "keno_dbg.txt"
        logger = configure_logging("WARNING", str(log_path))
        try:
            build_probability_matrix()
        finally:
            close_debug_log(logger)
            logger.setLevel(logging.WARNING)
        self.assertFalse(any(isinstance(h, logging.FileHandler) for h in logger.handlers))
        text = log_path.read_text()
        self.assertIn("catch of [5] balls out of [9] 'marked' numbers", text)
        self.assertIn("combinations: N[9] R[5] = 126", text)

    def test_reconfigure_replaces_trace_file(self):
        """A second trace file detaches the first; only one stays open."""
        from config.settings import close_debug_log, configure_logging
        from flows.keno_pipeline import build_probability_matrix

        tmp = Path(tempfile.mkdtemp())
        first, second = tmp / "a.txt", tmp / "b.txt"
        configure_logging("WARNING", str(first))
        try:
            build_probability_matrix()
            size = first.stat().st_size
            logger = configure_logging("WARNING", str(second))
            build_probability_matrix()
            files = [h.baseFilename for h in logger.handlers
                     if isinstance(h, logging.FileHandler)]
        finally:
            close_debug_log()
            logging.getLogger("kenolab").setLevel(logging.WARNING)
        self.assertEqual(files, [os.path.abspath(second)])
        self.assertEqual(first.stat().st_size, size)
        self.assertGreater(second.stat().st_size, 0)


# ============================================================
# Main
# ============================================================

if __name__ == "__main__":
    unittest.main(verbosity=2)
