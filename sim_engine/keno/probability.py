"""
KENOLAB — Keno Probability Engine

The chance of catching exactly ``c`` of ``m`` marked numbers when the machine
draws 20 of 80 balls is hypergeometric:

    P(catch c of m) = C(m, c) * P1 * P2 / P3
      P1 = 20 * 19 * ...       (c terms)       drawn balls landing on marks
      P2 = 60 * 59 * ...       (m - c terms)   undrawn balls on the rest
      P3 = 80 * 79 * ...       (m terms)       all ordered picks of m balls

Catches larger than the marked count are impossible and are 0.0 without
touching the formula.

Usage:
    from sim_engine.keno.probability import keno_probability
    keno_probability(9, 5)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from config.settings import KenoConfig
from sim_engine.keno.combinatorics import combinations, partial_factorial

logger = logging.getLogger("kenolab.probability")


def keno_probability(num_marked: int, caught: int) -> float:
    """Probability of catching exactly ``caught`` balls with ``num_marked`` marked."""
    if not 1 <= num_marked <= KenoConfig.MAX_SPOTS:
        raise ValueError(f"num_marked must be 1..{KenoConfig.MAX_SPOTS}, got {num_marked}")
    if caught < 0:
        raise ValueError(f"caught must be >= 0, got {caught}")
    if caught > num_marked:
        return 0.0

    undrawn = KenoConfig.TOTAL_BALLS - KenoConfig.DRAWN_BALLS
    n_comb = combinations(num_marked, caught)
    p1 = partial_factorial(KenoConfig.DRAWN_BALLS, caught)
    p2 = partial_factorial(undrawn, num_marked - caught)
    p3 = partial_factorial(KenoConfig.TOTAL_BALLS, num_marked)

    result = float(n_comb) * p1 * p2 / p3
    logger.debug(f"keno_probability: NumMarked[{num_marked}] Caught[{caught}] = {result:.20f}")
    return result


@dataclass(frozen=True)
class ProbabilityMatrix:
    """20 x 21 catch probabilities, ``rows[marked - 1][caught]``.

    Cells where ``caught > marked`` are exactly 0.0. Use :meth:`probability`
    rather than raw indexing; it takes the 1-based marked count and the
    0-based catch count and refuses anything outside the table.
    """
    rows: tuple[tuple[float, ...], ...]

    @property
    def max_marked(self) -> int:
        return len(self.rows)

    @property
    def max_caught(self) -> int:
        return len(self.rows[0]) - 1 if self.rows else -1

    def probability(self, marked: int, caught: int) -> float:
        if not 1 <= marked <= self.max_marked:
            raise IndexError(f"marked must be 1..{self.max_marked}, got {marked}")
        if not 0 <= caught <= self.max_caught:
            raise IndexError(f"caught must be 0..{self.max_caught}, got {caught}")
        return self.rows[marked - 1][caught]

    def row(self, marked: int) -> tuple[float, ...]:
        if not 1 <= marked <= self.max_marked:
            raise IndexError(f"marked must be 1..{self.max_marked}, got {marked}")
        return self.rows[marked - 1]

    def distribution(self, marked: int) -> tuple[float, ...]:
        """Only the reachable outcomes: catches 0..marked."""
        return self.row(marked)[:marked + 1]

    def row_sum(self, marked: int) -> float:
        return sum(self.row(marked))

    def to_dict(self, precision: int = None) -> dict:
        def _fmt(p):
            return round(p, precision) if precision is not None else p
        return {
            str(m): {str(c): _fmt(p) for c, p in enumerate(row)}
            for m, row in enumerate(self.rows, start=1)
        }
