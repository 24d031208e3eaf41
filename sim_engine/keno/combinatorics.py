"""
KENOLAB — Combinatorics

Exact counting for the probability engine:
  factorial(n)               n!
  partial_factorial(n, k)    n × (n-1) × ... × (n-k+1), as a float
  combinations(n, r)         C(n, r) for the marked-spot count (n <= 20)

Usage:
    from sim_engine.keno.combinatorics import combinations, partial_factorial
    combinations(9, 5)           # 126
    partial_factorial(80, 9)     # ordered picks of 9 balls out of 80
"""

import logging

from config.settings import KenoConfig

logger = logging.getLogger("kenolab.combinatorics")


def factorial(n: int) -> int:
    """Recursive ``n!``. ``factorial(0) == factorial(1) == 1``."""
    if n < 0:
        raise ValueError(f"factorial is undefined for negative n: {n}")
    if n > 1:
        return n * factorial(n - 1)
    return 1


def partial_factorial(n: int, num_terms: int) -> float:
    """Product of the ``num_terms`` highest terms of ``n!``.

    ``partial_factorial(10, 4) == 10 * 9 * 8 * 7``. Zero terms is the empty
    product, ``1.0``. The result is a float because the bases used here
    (up to 80 with 20 terms) run past any fixed-width integer.
    """
    if num_terms < 0:
        raise ValueError(f"num_terms must be >= 0, got {num_terms}")
    if num_terms > n:
        raise ValueError(f"num_terms must be <= n, got NumTerms[{num_terms}] for N[{n}]")
    result = 1.0
    for i in range(num_terms):
        result = result * (n - i)
    logger.debug(f"partial_factorial: N[{n}] NumTerms[{num_terms:3d}] = {result:f}")
    return result


def combinations(n: int, r: int) -> int:
    """C(n, r): size-``r`` subsets of an ``n`` element set, 0 when ``r > n``.

    Built from exact factorials, so ``n`` is limited to the marked-spot count
    (at most 20). Large bases such as the 80 ball pool go through
    :func:`partial_factorial` instead.
    """
    if n > KenoConfig.MAX_SPOTS:
        raise ValueError(
            f"combinations() is limited to n <= {KenoConfig.MAX_SPOTS}, got {n}; "
            f"use partial_factorial for large bases")
    if n < 0 or r < 0:
        raise ValueError(f"combinations needs non-negative n and r, got ({n}, {r})")

    result = 0
    if r <= n:
        result = factorial(n) // (factorial(r) * factorial(n - r))
    logger.debug(f"combinations: N[{n}] R[{r}] = {result}")
    return result
