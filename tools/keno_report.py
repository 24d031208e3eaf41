"""
KENOLAB — Report Sink

Persists and renders the two finished tables. Nothing here computes odds;
rounding happens only here, at presentation time.

Sheets:
  Keno Probability Matrix      → <name>_probability.csv
  Expected 'Pay Out' Values    → <name>_expected_value.csv
  Both tables + payout sheet   → <name>.json

Usage:
    from tools.keno_report import export_report, render_tables
    paths = export_report(matrix, ev, DEFAULT_PAYOUT_TABLE, "./Data")
    render_tables(matrix, ev)
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.table import Table

from config.payout_schema import PayoutTable
from config.settings import KenoConfig
from sim_engine.keno.expected_value import ExpectedValueVector, expected_value_terms
from sim_engine.keno.probability import ProbabilityMatrix

logger = logging.getLogger("kenolab.report")

PROBABILITY_SHEET = "Keno Probability Matrix"
EXPECTED_VALUE_SHEET = "Expected 'Pay Out' Values"
EXPORT_FORMATS = ("csv", "json")


def spot_label(n: int) -> str:
    return f"{n} Spot(s) Marked"


def catch_label(n: int) -> str:
    return f"{n} Ball(s) Caught"


def _fmt(value: float, precision: int) -> str:
    return f"{value:.{precision}f}"


# ============================================================
# CSV sheets
# ============================================================

def export_probability_sheet(matrix: ProbabilityMatrix, path, precision: int = None) -> Path:
    """Write the matrix as a labelled grid: one row per spot count."""
    precision = KenoConfig.PRECISION if precision is None else precision
    path = Path(path)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([""] + [catch_label(c) for c in range(matrix.max_caught + 1)])
        for m in range(1, matrix.max_marked + 1):
            writer.writerow([spot_label(m)] + [_fmt(p, precision) for p in matrix.row(m)])
    logger.info(f"{PROBABILITY_SHEET} saved: {path}")
    return path


def export_expected_value_sheet(vector: ExpectedValueVector, path, precision: int = None) -> Path:
    precision = KenoConfig.PRECISION if precision is None else precision
    path = Path(path)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["", "Expected Value"])
        for s in range(1, len(vector) + 1):
            writer.writerow([spot_label(s), _fmt(vector.expected_value(s), precision)])
    logger.info(f"{EXPECTED_VALUE_SHEET} saved: {path}")
    return path


# ============================================================
# JSON report
# ============================================================

def build_report(matrix: ProbabilityMatrix, vector: ExpectedValueVector,
                 payouts: PayoutTable) -> dict:
    """Both tables plus the per-term breakdown behind each expected value."""
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "constants": {
            "total_balls": KenoConfig.TOTAL_BALLS,
            "drawn_balls": KenoConfig.DRAWN_BALLS,
            "max_spots": KenoConfig.MAX_SPOTS,
        },
        "probability_matrix": [list(row) for row in matrix.rows],
        "expected_values": list(vector.values),
        "payout_table": [list(row) for row in payouts.rows],
        "expected_value_terms": {
            str(s): [t.to_dict() for t in expected_value_terms(matrix, payouts, s)]
            for s in payouts.spots
        },
    }


def export_report_json(matrix: ProbabilityMatrix, vector: ExpectedValueVector,
                       payouts: PayoutTable, path) -> Path:
    path = Path(path)
    path.write_text(json.dumps(build_report(matrix, vector, payouts), indent=2))
    logger.info(f"JSON report saved: {path}")
    return path


def export_report(matrix: ProbabilityMatrix, vector: ExpectedValueVector,
                  payouts: PayoutTable, output_dir=None, basename: str = None,
                  formats=EXPORT_FORMATS, precision: int = None) -> list[Path]:
    """Write every requested format into ``output_dir`` and return the paths."""
    unknown = set(formats) - set(EXPORT_FORMATS)
    if unknown:
        raise ValueError(f"Unknown export format(s): {sorted(unknown)}. Available: {list(EXPORT_FORMATS)}")

    out = KenoConfig.output_dir(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    basename = basename or KenoConfig.OUTPUT_NAME

    written = []
    if "csv" in formats:
        written.append(export_probability_sheet(
            matrix, out / f"{basename}_probability.csv", precision))
        written.append(export_expected_value_sheet(
            vector, out / f"{basename}_expected_value.csv", precision))
    if "json" in formats:
        written.append(export_report_json(matrix, vector, payouts, out / f"{basename}.json"))
    return written


# ============================================================
# Console
# ============================================================

def probability_table(matrix: ProbabilityMatrix, precision: int = None,
                      marked_counts=None) -> Table:
    precision = KenoConfig.PRECISION if precision is None else precision
    marked_counts = list(marked_counts or range(1, matrix.max_marked + 1))
    # Only show catch columns someone in the selection can reach.
    last_catch = max(marked_counts)
    table = Table(title=PROBABILITY_SHEET, show_lines=False)
    table.add_column("Spots", justify="right", style="bold")
    for c in range(last_catch + 1):
        table.add_column(str(c), justify="right")
    for m in marked_counts:
        cells = [_fmt(p, precision) if c <= m else "·"
                 for c, p in enumerate(matrix.row(m)[:last_catch + 1])]
        table.add_row(str(m), *cells)
    return table


def expected_value_table(vector: ExpectedValueVector, precision: int = None,
                         spots=None) -> Table:
    precision = KenoConfig.PRECISION if precision is None else precision
    spots = list(spots or range(1, len(vector) + 1))
    table = Table(title=EXPECTED_VALUE_SHEET)
    table.add_column("Spots Marked", justify="right", style="bold")
    table.add_column("Expected Value", justify="right")
    table.add_column("House Edge", justify="right")
    for s in spots:
        ev = vector.expected_value(s)
        edge = vector.house_edge(s)
        color = "green" if edge > 0 else "red"
        table.add_row(str(s), _fmt(ev, precision), f"[{color}]{edge * 100:.2f}%[/{color}]")
    return table


def render_tables(matrix: ProbabilityMatrix, vector: ExpectedValueVector,
                  console: Console = None, precision: int = None, spots: int = None):
    """Print both tables; ``spots`` narrows the output to one ticket size."""
    console = console or Console()
    marked = [spots] if spots else None
    console.print(probability_table(matrix, precision, marked))
    if spots is None:
        console.print(expected_value_table(vector, precision))
    elif spots <= len(vector):
        console.print(expected_value_table(vector, precision, [spots]))
