"""
KENOLAB — Monte Carlo Cross-Check

Plays N seeded Keno games per marked count and compares the observed catch
frequencies with the exact probability matrix. Purely a sanity check on the
closed-form engine; nothing downstream consumes the simulated numbers.

Each catch count may drift from its exact probability p by

    z * sqrt(p * (1 - p) / rounds) + z**2 / (2 * rounds)

The second term keeps rare catches (a handful of hits over a short run) from
failing a correct matrix.

Usage:
    from sim_engine.keno.montecarlo import CatchSimulator
    sim = CatchSimulator(seed=42)
    result = sim.validate_row(matrix, marked=9, rounds=200_000)
    print(result.summary())
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass, field

from config.settings import KenoConfig
from sim_engine.keno.probability import ProbabilityMatrix

logger = logging.getLogger("kenolab.montecarlo")


@dataclass
class CatchSimulation:
    """Observed catch counts for one marked count."""
    marked: int
    rounds: int
    counts: list[int]
    expected: list[float] = field(default_factory=list)
    z_score: float = KenoConfig.MC_Z_SCORE
    seed: int = 0
    duration_seconds: float = 0.0

    @property
    def frequencies(self) -> list[float]:
        return [c / self.rounds for c in self.counts] if self.rounds else []

    @property
    def max_delta(self) -> float:
        if not self.expected:
            return 0.0
        return max(abs(f - e) for f, e in zip(self.frequencies, self.expected))

    @property
    def allowances(self) -> list[float]:
        """Largest acceptable |measured - exact| for each catch count."""
        if not self.rounds:
            return []
        z, n = self.z_score, self.rounds
        return [z * math.sqrt(p * (1 - p) / n) + z * z / (2 * n) for p in self.expected]

    @property
    def passed(self) -> bool:
        return all(abs(f - e) <= a for f, e, a in
                   zip(self.frequencies, self.expected, self.allowances))

    def summary(self) -> str:
        status = "✅ PASS" if self.passed else "❌ FAIL"
        lines = [
            f"═══ Monte Carlo: {self.marked} spot(s) marked ═══",
            f"  Rounds:    {self.rounds:,}",
            f"  Max Delta: {self.max_delta:.6f}  (z = {self.z_score})",
            f"  Check:     {status}",
            f"  Duration:  {self.duration_seconds:.2f}s",
        ]
        for c, (f, e, a) in enumerate(zip(self.frequencies, self.expected, self.allowances)):
            lines.append(f"    catch {c:>2}: measured {f:.6f}  exact {e:.6f}  ±{a:.6f}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "marked": self.marked,
            "rounds": self.rounds,
            "counts": self.counts,
            "frequencies": [round(f, 6) for f in self.frequencies],
            "expected": [round(e, 6) for e in self.expected],
            "max_delta": round(self.max_delta, 6),
            "z_score": self.z_score,
            "allowances": [round(a, 6) for a in self.allowances],
            "pass": self.passed,
            "seed": self.seed,
        }


class CatchSimulator:
    """Draws 20 of 80 balls with a seeded RNG and counts catches."""

    def __init__(self, seed: int = None, z_score: float = None):
        self.seed = KenoConfig.MC_SEED if seed is None else seed
        self.z_score = KenoConfig.MC_Z_SCORE if z_score is None else z_score

    def simulate(self, marked: int, rounds: int) -> CatchSimulation:
        if not 1 <= marked <= KenoConfig.MAX_SPOTS:
            raise ValueError(f"marked must be 1..{KenoConfig.MAX_SPOTS}, got {marked}")
        if rounds <= 0:
            raise ValueError(f"rounds must be positive, got {rounds}")

        rng = random.Random(self.seed + marked)
        balls = range(1, KenoConfig.TOTAL_BALLS + 1)
        counts = [0] * (marked + 1)

        t0 = time.time()
        for _ in range(rounds):
            picks = set(rng.sample(balls, marked))
            drawn = rng.sample(balls, KenoConfig.DRAWN_BALLS)
            counts[sum(1 for b in drawn if b in picks)] += 1
        elapsed = time.time() - t0

        return CatchSimulation(marked=marked, rounds=rounds, counts=counts,
                               z_score=self.z_score, seed=self.seed + marked,
                               duration_seconds=elapsed)

    def validate_row(self, matrix: ProbabilityMatrix, marked: int,
                     rounds: int = None) -> CatchSimulation:
        """Simulate ``marked`` and attach the exact row for comparison."""
        result = self.simulate(marked, rounds or KenoConfig.MC_ROUNDS)
        result.expected = list(matrix.distribution(marked))
        level = logging.INFO if result.passed else logging.WARNING
        logger.log(level, f"Monte Carlo {marked} spot(s): max delta "
                          f"{result.max_delta:.6f} over {result.rounds:,} rounds")
        return result

    def validate_matrix(self, matrix: ProbabilityMatrix, rounds: int = None,
                        marked_counts=None) -> list[CatchSimulation]:
        marked_counts = marked_counts or range(1, matrix.max_marked + 1)
        return [self.validate_row(matrix, m, rounds) for m in marked_counts]
