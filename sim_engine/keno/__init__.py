"""
KENOLAB — Keno Math Engine

Exact catch probabilities for 1..20 spots marked and the expected value of a
$1 ticket for the 1..9 spot payout sheet.

Usage:
    from flows.keno_pipeline import build_probability_matrix
    from sim_engine.keno import compute_expected_values
    from config.payout_schema import DEFAULT_PAYOUT_TABLE
    matrix = build_probability_matrix()
    ev = compute_expected_values(matrix, DEFAULT_PAYOUT_TABLE)
"""

from sim_engine.keno.combinatorics import factorial, partial_factorial, combinations
from sim_engine.keno.probability import keno_probability, ProbabilityMatrix
from sim_engine.keno.expected_value import (
    EVTerm, ExpectedValueVector, compute_expected_values, expected_value_terms,
)
from sim_engine.keno.montecarlo import CatchSimulation, CatchSimulator

__all__ = [
    "factorial", "partial_factorial", "combinations",
    "keno_probability", "ProbabilityMatrix",
    "EVTerm", "ExpectedValueVector", "compute_expected_values", "expected_value_terms",
    "CatchSimulation", "CatchSimulator",
]
