"""
portfolio_core/config.py
------------------------
Shared numeric configuration for the optimization and valuation engines.

Keeping these separate from portfolio_core/constants.py (which holds the
fixed lookup tables) gives a clean boundary: this file owns the tunable
thresholds and default assumptions, constants.py owns data that must be
reproduced exactly.
"""

# ---------------------------------------------------------------------------
# Optimizer advisory thresholds
# ---------------------------------------------------------------------------
# Risk and return figures are fractional (0.15 == 15%) everywhere.

HIGH_RISK_THRESHOLD: float = 0.15
LOW_SHARPE_THRESHOLD: float = 1.0
MAX_ASSETS_BEFORE_CONSOLIDATION: int = 8

# isOptimal := sharpe > OPTIMAL_SHARPE and risk < OPTIMAL_MAX_RISK (both strict)
OPTIMAL_SHARPE: float = 1.2
OPTIMAL_MAX_RISK: float = 0.12

# Allocations must sum to 100 within this tolerance after normalisation.
ALLOCATION_TOLERANCE: float = 1e-6

# ---------------------------------------------------------------------------
# Per-asset bounds (percentage points)
# ---------------------------------------------------------------------------
# Used by the interactive slider when an asset carries no bounds of its own.

DEFAULT_MIN_ALLOCATION: float = 0.0
DEFAULT_MAX_ALLOCATION: float = 50.0

# ---------------------------------------------------------------------------
# Rebalancing
# ---------------------------------------------------------------------------

REBALANCE_THRESHOLD: float = 5.0   # percentage points, strict ">"

# ---------------------------------------------------------------------------
# Risk parity
# ---------------------------------------------------------------------------

RISK_PARITY_ITERATIONS: int = 50

# ---------------------------------------------------------------------------
# Valuation defaults
# ---------------------------------------------------------------------------
# Midpoints of the ranges the valuation service has historically used.

DCF_GROWTH_RATE: float = 0.10            # 5-15%
DCF_DISCOUNT_RATE: float = 0.10          # 8-12%
DCF_TERMINAL_GROWTH_RATE: float = 0.03   # 2-4%
DCF_PROJECTION_YEARS: int = 5

DDM_GROWTH_RATE: float = 0.055           # 3-8%
DDM_REQUIRED_RETURN: float = 0.10        # 8-12%

GRAHAM_MULTIPLIER: float = 22.5          # 15 x P/E ceiling * 1.5 x P/B ceiling

RATIO_EARNINGS_GROWTH: float = 10.0      # percent, PEG denominator
EBITDA_PROXY_MULTIPLIER: float = 1.5     # EBITDA ~ net income * 1.5

# (buy_above, sell_below) as multiples of the current price
DCF_SIGNAL_BAND: tuple = (1.15, 0.85)
DDM_SIGNAL_BAND: tuple = (1.10, 0.90)
GRAHAM_SIGNAL_BAND: tuple = (1.20, 0.80)

# Ratio classifier cut-offs
UNDERVALUED_MAX_PE: float = 15.0
UNDERVALUED_MAX_PB: float = 2.0
OVERVALUED_MIN_PE: float = 25.0
OVERVALUED_MIN_PB: float = 4.0

# ---------------------------------------------------------------------------
# Scenario simulation
# ---------------------------------------------------------------------------

TRAJECTORY_MONTHS: int = 6

# ---------------------------------------------------------------------------
# Return-series analytics
# ---------------------------------------------------------------------------

RISK_FREE_RATE: float = 0.02   # 2% p.a.
TRADING_DAYS: int = 252
VAR_CONFIDENCE: float = 0.95

# ---------------------------------------------------------------------------
# Quote cache (caller layer)
# ---------------------------------------------------------------------------

DEFAULT_CACHE_TTL_SECONDS: float = 300.0
