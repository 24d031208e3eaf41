"""
KENOLAB — Keno Odds Pipeline

Stages:
  Probability Matrix → Expected Values → (optional) Monte Carlo → Report

The matrix is filled completely before the expected-value stage starts; the
EV engine only ever sees the finished, frozen matrix.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel

from config.payout_schema import DEFAULT_PAYOUT_TABLE, PayoutTable
from config.settings import KenoConfig
from sim_engine.keno.expected_value import ExpectedValueVector, compute_expected_values
from sim_engine.keno.montecarlo import CatchSimulation, CatchSimulator
from sim_engine.keno.probability import ProbabilityMatrix, keno_probability

logger = logging.getLogger("kenolab.pipeline")
console = Console()


def build_probability_matrix(max_marked: int = KenoConfig.MAX_SPOTS,
                             max_caught: int = KenoConfig.MAX_CATCH) -> ProbabilityMatrix:
    """Fill the marked x caught table; impossible catches stay at 0.0."""
    logger.debug("Calculating Keno Probabilities Value(s)")
    rows = []
    for marked in range(1, max_marked + 1):
        row = [0.0] * (max_caught + 1)
        for caught in range(max_caught + 1):
            if caught <= marked:
                row[caught] = keno_probability(marked, caught)
                logger.debug(f"Calculating probability of a catch of [{caught}] balls "
                             f"out of [{marked}] 'marked' numbers = {row[caught]}")
        rows.append(tuple(row))
    return ProbabilityMatrix(rows=tuple(rows))


@dataclass
class KenoRun:
    """Everything one pipeline run produced."""
    matrix: ProbabilityMatrix
    expected_values: ExpectedValueVector
    payouts: PayoutTable
    exported: list[Path] = field(default_factory=list)
    simulations: list[CatchSimulation] = field(default_factory=list)
    started: str = ""
    finished: str = ""

    @property
    def simulations_passed(self) -> bool:
        return all(s.passed for s in self.simulations)


def run_keno(output_dir=None, formats=("csv", "json"), payouts: PayoutTable = None,
             basename: Optional[str] = None, precision: Optional[int] = None,
             mc_rounds: int = 0, show: bool = True) -> KenoRun:
    """Compute both tables, optionally cross-check them, then hand them to the report sink.

    Args:
        output_dir: Report directory (None → KENO_OUTPUT_DIR or ./Data)
        formats: Export formats, any of "csv", "json"; empty to skip export
        payouts: Payout sheet, defaults to the shipped 9x9 table
        basename: Report file basename
        precision: Decimals used in the exported/printed tables
        mc_rounds: Monte Carlo rounds per marked count, 0 to skip
        show: Print banner and tables to the console
    """
    from tools.keno_report import export_report, render_tables

    payouts = payouts or DEFAULT_PAYOUT_TABLE
    started = datetime.now().isoformat()

    if show:
        console.print(Panel(
            f"[bold]🎱 Keno Odds Pipeline[/bold]\n\n"
            f"Balls: {KenoConfig.TOTAL_BALLS} (draw {KenoConfig.DRAWN_BALLS})\n"
            f"Spots Marked: 1..{KenoConfig.MAX_SPOTS}\n"
            f"Payout Sheet: 1..{len(payouts.rows)} spots\n"
            f"Export: {', '.join(formats) if formats else 'none'}",
            title="Keno Starting", border_style="cyan",
        ))

    matrix = build_probability_matrix()
    logger.info(f"Probability matrix ready: {matrix.max_marked} x {matrix.max_caught + 1}")

    logger.debug("Calculating Expected Value(s)")
    expected = compute_expected_values(matrix, payouts)
    logger.info("Expected values ready: "
                + ", ".join(f"{s}={v:.6f}" for s, v in enumerate(expected.values, start=1)))

    run = KenoRun(matrix=matrix, expected_values=expected, payouts=payouts, started=started)

    if mc_rounds:
        run.simulations = CatchSimulator().validate_matrix(matrix, rounds=mc_rounds)

    if formats:
        run.exported = export_report(matrix, expected, payouts, output_dir=output_dir,
                                     basename=basename, formats=formats, precision=precision)

    run.finished = datetime.now().isoformat()

    if show:
        render_tables(matrix, expected, console=console, precision=precision)
        lines = [f"Files: {len(run.exported)}"]
        lines += [f"  {p}" for p in run.exported]
        if run.simulations:
            verdict = "[green]PASS[/green]" if run.simulations_passed else "[red]FAIL[/red]"
            lines.append(f"Monte Carlo ({mc_rounds:,} rounds/row): {verdict}")
        console.print(Panel("\n".join(lines), title="✅ Keno Complete", border_style="green"))

    return run
