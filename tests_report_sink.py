#!/usr/bin/env python3
"""
Tests for the report sink, pipeline and CLI

Validates:
1.  Probability sheet CSV has catch headers and one row per spot count
2.  Expected value sheet CSV has nine labelled rows
3.  Sheet values are rounded to the requested precision only on export
4.  JSON report carries both tables, the payout sheet and the EV terms
5.  export_report creates the output directory and honours formats
6.  export_report rejects unknown formats
7.  Rich tables render both sheet titles
8.  run_keno wires matrix → EV → report and returns the written paths
9.  CLI exits 0 and writes CSV files
10. CLI --format none writes nothing
11. CLI exits 1 when the Monte Carlo check fails
12. CLI exits 1 with a message on output errors
13. CLI --debug-log writes the cell and term trace
14. CLI closes each trace file after its run
15. CLI rejects negative --precision and --validate
"""

import csv
import json
import logging
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from rich.console import Console

from config.payout_schema import DEFAULT_PAYOUT_TABLE
from flows.keno_pipeline import build_probability_matrix, run_keno
from sim_engine.keno.expected_value import compute_expected_values

MATRIX = build_probability_matrix()
EV = compute_expected_values(MATRIX, DEFAULT_PAYOUT_TABLE)


def _tmp() -> Path:
    return Path(tempfile.mkdtemp())


# ============================================================
# Tests
# ============================================================

def test_probability_sheet_layout():
    """Probability sheet: 21 catch columns, 20 spot rows."""
    from tools.keno_report import export_probability_sheet

    path = export_probability_sheet(MATRIX, _tmp() / "p.csv")
    rows = list(csv.reader(path.open(newline="")))

    assert len(rows) == 21, f"expected header + 20 rows, got {len(rows)}"
    assert rows[0][0] == ""
    assert rows[0][1] == "0 Ball(s) Caught"
    assert rows[0][-1] == "20 Ball(s) Caught"
    assert rows[1][0] == "1 Spot(s) Marked"
    assert rows[20][0] == "20 Spot(s) Marked"
    assert all(len(r) == 22 for r in rows)
    assert rows[1][2] == "0.2500000000"
    assert rows[1][3] == "0.0000000000"
    print("✅ Probability sheet: 20 x 21 grid with labels")


def test_expected_value_sheet_layout():
    from tools.keno_report import export_expected_value_sheet

    path = export_expected_value_sheet(EV, _tmp() / "ev.csv", precision=4)
    rows = list(csv.reader(path.open(newline="")))

    assert rows[0] == ["", "Expected Value"]
    assert len(rows) == 10
    assert rows[1] == ["1 Spot(s) Marked", "0.3750"]
    assert rows[9][0] == "9 Spot(s) Marked"
    print("✅ Expected value sheet: 9 labelled rows")


def test_precision_only_at_export():
    """Export rounds; the in-memory tables keep full precision."""
    from tools.keno_report import export_probability_sheet

    path = export_probability_sheet(MATRIX, _tmp() / "p.csv", precision=3)
    rows = list(csv.reader(path.open(newline="")))
    assert rows[9][6] == f"{MATRIX.probability(9, 5):.3f}"
    assert MATRIX.probability(9, 5) != round(MATRIX.probability(9, 5), 3)
    print("✅ Rounding confined to the report")


def test_json_report_contents():
    from tools.keno_report import export_report_json

    path = export_report_json(MATRIX, EV, DEFAULT_PAYOUT_TABLE, _tmp() / "keno.json")
    data = json.loads(path.read_text())

    assert data["probability_matrix"] == [list(r) for r in MATRIX.rows]
    assert data["expected_values"] == list(EV.values)
    assert data["payout_table"][8][5] == 43.0
    assert data["constants"] == {"total_balls": 80, "drawn_balls": 20, "max_spots": 20}
    terms_9 = data["expected_value_terms"]["9"]
    assert [t["caught"] for t in terms_9] == [5, 6, 7, 8, 9]
    assert terms_9[0]["PO"] == 4.0
    assert abs(sum(t["contribution"] for t in terms_9) - EV.expected_value(9)) < 1e-12
    print("✅ JSON report: tables, payouts and EV terms")


def test_export_report_creates_dir():
    from tools.keno_report import export_report

    out = _tmp() / "nested" / "Data"
    paths = export_report(MATRIX, EV, DEFAULT_PAYOUT_TABLE, output_dir=out, basename="Keno")

    names = sorted(p.name for p in paths)
    assert names == ["Keno.json", "Keno_expected_value.csv", "Keno_probability.csv"], names
    assert all(p.exists() for p in paths)

    only_json = export_report(MATRIX, EV, DEFAULT_PAYOUT_TABLE, output_dir=out,
                              basename="J", formats=("json",))
    assert [p.name for p in only_json] == ["J.json"]
    print("✅ export_report: directory created, formats honoured")


def test_export_report_unknown_format():
    from tools.keno_report import export_report

    try:
        export_report(MATRIX, EV, DEFAULT_PAYOUT_TABLE, output_dir=_tmp(), formats=("xlsx",))
    except ValueError as e:
        assert "xlsx" in str(e)
    else:
        raise AssertionError("xlsx should be rejected")
    print("✅ Unknown export format rejected")


def test_render_tables():
    from tools.keno_report import render_tables

    console = Console(record=True, width=400)
    render_tables(MATRIX, EV, console=console, precision=4)
    text = console.export_text()
    assert "Keno Probability Matrix" in text
    assert "Expected 'Pay Out' Values" in text
    assert "0.3750" in text

    console = Console(record=True, width=200)
    render_tables(MATRIX, EV, console=console, precision=4, spots=12)
    text = console.export_text()
    assert "Keno Probability Matrix" in text
    assert "Expected 'Pay Out' Values" not in text
    print("✅ Rich tables render")


def test_run_keno_pipeline():
    out = _tmp()
    run = run_keno(output_dir=out, formats=("csv", "json"), show=False)

    assert run.matrix == MATRIX
    assert run.expected_values == EV
    assert len(run.exported) == 3
    assert run.simulations == []
    assert run.simulations_passed
    assert run.started and run.finished
    print("✅ run_keno: matrix → EV → report")


def test_run_keno_with_monte_carlo():
    run = run_keno(formats=(), show=False, mc_rounds=2000)
    assert len(run.simulations) == 20
    assert run.exported == []
    assert run.simulations_passed, [s.summary() for s in run.simulations if not s.passed]
    print("✅ run_keno: Monte Carlo cross-check passes on the exact matrix")


def test_cli_writes_csv():
    from tools.keno_cli import main

    out = _tmp()
    code = main(["--output-dir", str(out), "--format", "csv", "--quiet"])
    assert code == 0
    assert (out / "Keno_probability.csv").exists()
    assert (out / "Keno_expected_value.csv").exists()
    assert not (out / "Keno.json").exists()
    print("✅ CLI: csv export")


def test_cli_format_none():
    from tools.keno_cli import main

    out = _tmp()
    code = main(["--output-dir", str(out), "--format", "none", "--spots", "9", "--precision", "6"])
    assert code == 0
    assert list(out.iterdir()) == []
    print("✅ CLI: --format none writes nothing")


def test_cli_monte_carlo_failure_exit_code():
    """A matrix that disagrees with the simulated draws exits 1."""
    from tools.keno_cli import main

    uniform = lambda marked, caught: 1.0 / (marked + 1)
    with patch("flows.keno_pipeline.keno_probability", uniform):
        code = main(["--format", "none", "--quiet", "--validate", "2000"])
    assert code == 1
    assert main(["--format", "none", "--quiet", "--validate", "2000"]) == 0
    print("✅ CLI: Monte Carlo failure exits 1")


def test_cli_output_error_exit_code():
    """--output-dir naming a regular file fails cleanly with a red message."""
    from tools.keno_cli import main

    blocker = _tmp() / "not_a_dir"
    blocker.write_text("x")
    recorder = Console(record=True, width=200)
    with patch("tools.keno_cli.console", recorder):
        code = main(["--output-dir", str(blocker), "--format", "csv", "--quiet"])
    assert code == 1
    assert "❌" in recorder.export_text()
    print("✅ CLI: OSError exits 1 with message")


def test_cli_debug_log_trace():
    """--debug-log writes every probability cell and every paying EV term."""
    from tools.keno_cli import main

    log_path = _tmp() / "KenoProject_dbg.txt"
    code = main(["--format", "none", "--quiet", "--debug-log", str(log_path)])
    assert code == 0
    text = log_path.read_text()
    assert "catch of [5] balls out of [9] 'marked' numbers" in text
    assert "KP(9,6)" in text
    assert "PO(9,6) =43.0" in text
    assert "Expected Value of [9] spots marked" in text
    print("✅ CLI: --debug-log trace")


def test_cli_debug_log_closed_between_runs():
    """Each run's trace goes to its own file; earlier files stop growing."""
    from tools.keno_cli import main

    tmp = _tmp()
    first, second = tmp / "a.txt", tmp / "b.txt"
    assert main(["--format", "none", "--quiet", "--debug-log", str(first)]) == 0
    size = first.stat().st_size
    assert main(["--format", "none", "--quiet", "--debug-log", str(second)]) == 0

    handlers = [h for h in logging.getLogger("kenolab").handlers
                if isinstance(h, logging.FileHandler)]
    assert handlers == [], handlers
    assert first.stat().st_size == size
    assert second.stat().st_size == size
    print("✅ CLI: trace file closed after each run")


def test_cli_rejects_negative_precision():
    from tools.keno_cli import main

    for argv in (["--precision", "-1"], ["--validate", "-5"]):
        try:
            main(argv + ["--format", "none", "--quiet"])
        except SystemExit as e:
            assert e.code == 2
        else:
            raise AssertionError(f"{argv} should be rejected by argparse")
    print("✅ CLI: negative --precision / --validate exit 2")


# ============================================================
# Run all tests
# ============================================================

if __name__ == "__main__":
    tests = [
        test_probability_sheet_layout,
        test_expected_value_sheet_layout,
        test_precision_only_at_export,
        test_json_report_contents,
        test_export_report_creates_dir,
        test_export_report_unknown_format,
        test_render_tables,
        test_run_keno_pipeline,
        test_run_keno_with_monte_carlo,
        test_cli_writes_csv,
        test_cli_format_none,
        test_cli_monte_carlo_failure_exit_code,
        test_cli_output_error_exit_code,
        test_cli_debug_log_trace,
        test_cli_debug_log_closed_between_runs,
        test_cli_rejects_negative_precision,
    ]

    print(f"\n{'='*60}")
    print(f"Report Sink Tests — {len(tests)} tests")
    print(f"{'='*60}\n")

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"❌ {test.__name__}: {e}")
            failed += 1
        print()

    print(f"{'='*60}")
    print(f"Results: {passed} passed, {failed} failed, {passed + failed} total")
    print(f"{'='*60}")

    sys.exit(0 if failed == 0 else 1)
