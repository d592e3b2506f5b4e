"""
tests/test_main.py
------------------
Smoke tests for the command-line entry point.

Coverage:
  - optimize / scenario / valuate subcommands print their report
  - Domain errors map to exit code 1 with a message on stderr
  - Malformed --asset values are rejected by argparse, without a chained traceback
"""

import argparse
import io
import unittest
from contextlib import redirect_stderr, redirect_stdout

from main import _parse_asset, main


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        code = main(argv)
    return code, out.getvalue(), err.getvalue()


class TestCommands(unittest.TestCase):

    def test_optimize(self):
        code, out, _ = _run(["optimize", "--asset", "AAPL:40:0.12:0.25",
                             "--asset", "MSFT:40:0.10:0.20"])
        self.assertEqual(code, 0)
        self.assertIn("AAPL", out)
        self.assertIn("50.00%", out)
        self.assertIn("Sharpe ratio", out)

    def test_scenario(self):
        code, out, _ = _run(["scenario", "RECESSION", "--asset", "VTI:60", "--asset", "GLD:40"])
        self.assertEqual(code, 0)
        self.assertIn("91,600.00", out)
        self.assertIn("Month 6", out)

    def test_valuate_graham(self):
        code, out, _ = _run(["valuate", "xyz", "--model", "graham", "--price", "40",
                             "--eps", "10", "--book-value", "500", "--shares", "10"])
        self.assertEqual(code, 0)
        self.assertIn("graham", out)
        self.assertIn("Overall: BUY", out)


class TestErrors(unittest.TestCase):

    def test_missing_fundamentals_exit_code(self):
        code, _, err = _run(["valuate", "XYZ", "--model", "dcf", "--price", "10"])
        self.assertEqual(code, 1)
        self.assertIn("free_cash_flow", err)

    def test_zero_allocations_exit_code(self):
        code, _, err = _run(["optimize", "--asset", "A:0:0.1:0.2", "--asset", "B:0:0.1:0.2"])
        self.assertEqual(code, 1)
        self.assertIn("Error:", err)

    def test_malformed_asset_rejected_by_argparse(self):
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                main(["optimize", "--asset", "AAPL"])

    def test_non_numeric_asset_error_hides_float_traceback(self):
        with self.assertRaises(argparse.ArgumentTypeError) as ctx:
            _parse_asset("AAPL:forty")
        self.assertTrue(ctx.exception.__suppress_context__)
        self.assertIsNone(ctx.exception.__cause__)


if __name__ == "__main__":
    unittest.main()
