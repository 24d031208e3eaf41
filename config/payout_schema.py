"""
KENOLAB — Payout Table Schema

The payout sheet that ships with the game: what a $1 ticket pays for each
catch, for 1 to 9 spots marked. Rows are spots marked, columns are balls
caught, both 1-based on the sheet and 0-based in storage.

Usage:
    from config.payout_schema import DEFAULT_PAYOUT_TABLE
    DEFAULT_PAYOUT_TABLE.payout(9, 6)   # 43.0
"""

from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.settings import KenoConfig


class PayoutTable(BaseModel):
    """9x9 payouts, ``rows[spots - 1][caught - 1]``."""
    model_config = ConfigDict(frozen=True)

    rows: tuple[tuple[float, ...], ...] = Field(
        ..., description="Payout per $1 bet, indexed [spots marked - 1][balls caught - 1]")

    @field_validator("rows")
    @classmethod
    def _check_shape(cls, rows):
        n = KenoConfig.PAYOUT_SPOTS
        if len(rows) != n:
            raise ValueError(f"payout table needs {n} rows, got {len(rows)}")
        for i, row in enumerate(rows):
            if len(row) != n:
                raise ValueError(f"payout row {i + 1} needs {n} columns, got {len(row)}")
            if any(v < 0 for v in row):
                raise ValueError(f"payout row {i + 1} has a negative payout")
        return rows

    @property
    def spots(self) -> range:
        return range(1, len(self.rows) + 1)

    def payout(self, spots_marked: int, caught: int) -> float:
        """Payout for ``caught`` balls (1..9) with ``spots_marked`` (1..9) marked."""
        n = len(self.rows)
        if not 1 <= spots_marked <= n:
            raise IndexError(f"spots_marked must be 1..{n}, got {spots_marked}")
        if not 1 <= caught <= n:
            raise IndexError(f"caught must be 1..{n}, got {caught}")
        return self.rows[spots_marked - 1][caught - 1]

    def row(self, spots_marked: int) -> tuple[float, ...]:
        if not 1 <= spots_marked <= len(self.rows):
            raise IndexError(f"spots_marked must be 1..{len(self.rows)}, got {spots_marked}")
        return self.rows[spots_marked - 1]


DEFAULT_PAYOUT_TABLE = PayoutTable(rows=(
    # Catch 1     2     3      4      5       6       7        8        9
    (3.0,  0.0,  0.0,   0.0,   0.0,    0.0,    0.0,     0.0,     0.0),   # 1 spot
    (0.0, 12.0,  0.0,   0.0,   0.0,    0.0,    0.0,     0.0,     0.0),   # 2 spots
    (0.0,  1.0, 42.0,   0.0,   0.0,    0.0,    0.0,     0.0,     0.0),   # 3 spots
    (0.0,  1.0,  3.0, 120.0,   0.0,    0.0,    0.0,     0.0,     0.0),   # 4 spots
    (0.0,  0.0,  1.0,   9.0, 800.0,    0.0,    0.0,     0.0,     0.0),   # 5 spots
    (0.0,  0.0,  1.0,   4.0,  88.0, 1500.0,    0.0,     0.0,     0.0),   # 6 spots
    (0.0,  0.0,  0.0,   2.0,  20.0,  350.0,  700.0,     0.0,     0.0),   # 7 spots
    (0.0,  0.0,  0.0,   0.0,   9.0,   90.0, 1500.0, 20000.0,     0.0),   # 8 spots
    (0.0,  0.0,  0.0,   0.0,   4.0,   43.0, 3000.0,  4000.0, 25000.0),   # 9 spots
))
