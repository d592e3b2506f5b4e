import argparse
import logging
import sys

from portfolio_core.allocation_engine import AllocationEngine
from portfolio_core.enums import ScenarioType, ValuationModel
from portfolio_core.errors import PortfolioCoreError
from portfolio_core.models import Asset, Fundamentals, OptimizationConstraints, PortfolioSnapshot
from portfolio_core.scenario_engine import ScenarioEngine
from portfolio_core.valuation_engine import ValuationEngine


def _parse_asset(text: str) -> Asset:
    """``SYMBOL:ALLOC[:RETURN:VOL]`` → Asset."""
    parts = text.split(":")
    if len(parts) not in (2, 4):
        raise argparse.ArgumentTypeError(f"Expected SYMBOL:ALLOC[:RETURN:VOL], got {text!r}")
    try:
        numbers = [float(p) for p in parts[1:]]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Non-numeric value in {text!r}") from None
    asset = Asset(symbol=parts[0].upper(), name=parts[0].upper(), allocation=numbers[0])
    if len(numbers) == 3:
        asset.expected_return, asset.volatility = numbers[1], numbers[2]
    return asset


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Portfolio optimization & valuation engine")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    opt = sub.add_parser("optimize", help="normalise allocations and compute metrics")
    opt.add_argument("--asset", type=_parse_asset, action="append", required=True,
                     help="SYMBOL:ALLOC:RETURN:VOL, e.g. AAPL:40:0.12:0.25")
    opt.add_argument("--min", type=float, default=0.0, dest="min_allocation")
    opt.add_argument("--max", type=float, default=100.0, dest="max_allocation")

    scn = sub.add_parser("scenario", help="simulate a macro scenario")
    scn.add_argument("scenario", choices=[s.value for s in ScenarioType])
    scn.add_argument("--value", type=float, default=100_000.0)
    scn.add_argument("--asset", type=_parse_asset, action="append", required=True,
                     help="SYMBOL:ALLOC, e.g. VTI:60")

    val = sub.add_parser("valuate", help="intrinsic-value models")
    val.add_argument("symbol")
    val.add_argument("--model", default="all", choices=[m.value for m in ValuationModel])
    val.add_argument("--price", type=float, required=True)
    for name in ("free-cash-flow", "shares", "dividend", "eps", "book-value",
                 "revenue", "net-income", "debt", "cash"):
        val.add_argument(f"--{name}", type=float)
    return parser


def _run_optimize(args) -> None:
    constraints = OptimizationConstraints(args.min_allocation, args.max_allocation)
    result = AllocationEngine.optimize_portfolio(args.asset, constraints)
    for a in result.assets:
        print(f"  {a.symbol:<8} {a.allocation:6.2f}%")
    print(f"Expected return: {result.expected_return:.2%}")
    print(f"Expected risk:   {result.expected_risk:.2%}")
    print(f"Sharpe ratio:    {result.sharpe_ratio:.2f}"
          f"{'  (optimal)' if result.is_optimal else ''}")
    for s in result.suggestions:
        print(f"  - {s}")


def _run_scenario(args) -> None:
    portfolio = PortfolioSnapshot(total_value=args.value, assets=args.asset)
    result = ScenarioEngine.run_scenario(portfolio, args.scenario)
    print(f"{result.scenario.value}: {result.initial_value:,.2f} → {result.final_value:,.2f} "
          f"({result.percent_change:+.2%})")
    for point in result.portfolio_trajectory:
        print(f"  {point.label:<8} {point.value:,.2f}")
    for p in result.asset_performance:
        print(f"  {p.symbol:<8} {p.change:+.1f}%")
    print(result.recommendation)


def _run_valuate(args) -> None:
    fundamentals = Fundamentals(
        free_cash_flow=args.free_cash_flow,
        shares_outstanding=args.shares,
        dividend_per_share=args.dividend,
        eps=args.eps,
        book_value=args.book_value,
        revenue=args.revenue,
        net_income=args.net_income,
        total_debt=args.debt,
        cash=args.cash,
    )
    report = ValuationEngine.valuate(args.symbol.upper(), args.price, fundamentals, args.model)
    for result in report.model_results():
        print(f"  {result.model.value:<9} {result.intrinsic_value:10.2f} "
              f"({result.upside:+.1f}%)  {result.recommendation.value}")
    if report.ratios is not None:
        print(f"  ratios    P/E {report.ratios.pe:.1f}  P/B {report.ratios.pb:.1f}  "
              f"{report.ratios.valuation.value}")
    overall = report.overall
    print(f"Overall: {overall.recommendation.value} "
          f"(confidence {overall.confidence:.0%}, {overall.summary})")


def main(argv=None):
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "optimize": _run_optimize,
        "scenario": _run_scenario,
        "valuate":  _run_valuate,
    }
    try:
        handlers[args.command](args)
    except PortfolioCoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
