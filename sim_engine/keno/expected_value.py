"""
KENOLAB — Expected Value Engine

Expected payout of a $1 ticket for 1..9 spots marked:

    EV(s) = Σ KP(s, c) × PO(s, c) / (s + 1)      c = 1..9, PO(s, c) > 0

KP is the catch probability (matrix catch index c, 0-based), PO the payout
sheet entry for catch c (sheet column c, 1-based). A ticket with s spots has
s + 1 possible outcomes (catch 0..s); catch 0 never pays so it never shows up
in the sum, but it still counts in the divisor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from config.payout_schema import PayoutTable
from sim_engine.keno.probability import ProbabilityMatrix

logger = logging.getLogger("kenolab.ev")


@dataclass(frozen=True)
class EVTerm:
    """One paying catch and what it adds to the expected value."""
    spots_marked: int
    caught: int
    probability: float
    payout: float
    contribution: float

    def to_dict(self) -> dict:
        return {
            "spots_marked": self.spots_marked,
            "caught": self.caught,
            "KP": self.probability,
            "PO": self.payout,
            "contribution": self.contribution,
        }


@dataclass(frozen=True)
class ExpectedValueVector:
    """Expected value of a $1 bet, ``values[spots_marked - 1]``."""
    values: tuple[float, ...]

    def __len__(self):
        return len(self.values)

    def expected_value(self, spots_marked: int) -> float:
        if not 1 <= spots_marked <= len(self.values):
            raise IndexError(f"spots_marked must be 1..{len(self.values)}, got {spots_marked}")
        return self.values[spots_marked - 1]

    def house_edge(self, spots_marked: int) -> float:
        return 1.0 - self.expected_value(spots_marked)

    def to_dict(self, precision: int = None) -> dict:
        return {
            str(s): round(v, precision) if precision is not None else v
            for s, v in enumerate(self.values, start=1)
        }


def expected_value_terms(matrix: ProbabilityMatrix, payouts: PayoutTable,
                         spots_marked: int) -> list[EVTerm]:
    """Every term with a strictly positive payout for ``spots_marked``."""
    divisor = spots_marked + 1
    terms = []
    for caught in payouts.spots:
        payout = payouts.payout(spots_marked, caught)
        if payout > 0:
            kp = matrix.probability(spots_marked, caught)
            terms.append(EVTerm(spots_marked, caught, kp, payout, kp * payout / divisor))
    return terms


def compute_expected_values(matrix: ProbabilityMatrix,
                            payouts: PayoutTable) -> ExpectedValueVector:
    """Expected value of a $1 bet for each row of the payout table."""
    values = []
    for spots in payouts.spots:
        ev = 0.0
        for term in expected_value_terms(matrix, payouts, spots):
            ev += term.contribution
            logger.debug(f"KP({spots},{term.caught}) ={term.probability}")
            logger.debug(f"PO({spots},{term.caught}) ={term.payout}")
            logger.debug(f"Expected Value of [{spots}] spots marked {ev}")
        values.append(ev)
    return ExpectedValueVector(values=tuple(values))
