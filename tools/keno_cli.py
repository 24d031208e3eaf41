#!/usr/bin/env python3
"""
KENOLAB — Keno Odds CLI

Usage:
    python -m tools.keno_cli
    python -m tools.keno_cli --output-dir ./Data --format csv
    python -m tools.keno_cli --spots 9 --precision 6 --format none
    python -m tools.keno_cli --validate 200000
    python -m tools.keno_cli --debug-log KenoProject_dbg.txt
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.markup import escape

from config.settings import KenoConfig, close_debug_log, configure_logging
from flows.keno_pipeline import run_keno
from tools.keno_report import EXPORT_FORMATS, render_tables

console = Console()


def _formats(choice: str) -> tuple:
    if choice == "all":
        return EXPORT_FORMATS
    if choice == "none":
        return ()
    return (choice,)


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Keno catch probabilities and $1 expected values")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Report directory (default: $KENO_OUTPUT_DIR or ./Data)")
    parser.add_argument("--name", type=str, default=None, help="Report file basename")
    parser.add_argument("--format", choices=["csv", "json", "all", "none"], default="all")
    parser.add_argument("--precision", type=_non_negative_int, default=KenoConfig.PRECISION)
    parser.add_argument("--spots", type=int, choices=range(1, KenoConfig.MAX_SPOTS + 1),
                        metavar=f"1..{KenoConfig.MAX_SPOTS}",
                        help="Only print the row for this many spots marked")
    parser.add_argument("--validate", type=_non_negative_int, default=0, metavar="ROUNDS",
                        help="Monte Carlo rounds per marked count (0 = skip)")
    parser.add_argument("--debug-log", type=str, default=None,
                        help="Write the term-by-term DEBUG trace to this file")
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args(argv)

    try:
        configure_logging("WARNING" if args.quiet else None, args.debug_log)
        run = run_keno(
            output_dir=args.output_dir,
            formats=_formats(args.format),
            basename=args.name,
            precision=args.precision,
            mc_rounds=args.validate,
            show=not args.quiet and args.spots is None,
        )
    except (OSError, ValueError) as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        return 1
    finally:
        close_debug_log()

    if args.spots is not None and not args.quiet:
        render_tables(run.matrix, run.expected_values, console=console,
                      precision=args.precision, spots=args.spots)

    for sim in run.simulations:
        if not sim.passed or not args.quiet:
            print(sim.summary())

    return 0 if run.simulations_passed else 1


if __name__ == "__main__":
    sys.exit(main())
