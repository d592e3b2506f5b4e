"""
portfolio_core/models.py
------------------------
Value objects passed into and returned from the engines.

Every record here is built fresh per call and never mutated by an engine
after it has been returned; engines copy inputs (``dataclasses.replace``)
instead of adjusting them in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from portfolio_core.config import (
    DCF_DISCOUNT_RATE,
    DCF_GROWTH_RATE,
    DCF_PROJECTION_YEARS,
    DCF_TERMINAL_GROWTH_RATE,
    DDM_GROWTH_RATE,
    DDM_REQUIRED_RETURN,
    DEFAULT_MAX_ALLOCATION,
    DEFAULT_MIN_ALLOCATION,
    RATIO_EARNINGS_GROWTH,
)
from portfolio_core.enums import (
    AssetCategory,
    ScenarioType,
    Signal,
    ValuationLabel,
    ValuationModel,
)
from portfolio_core.errors import InvalidInputError, MissingFundamentalsError


# ===========================================================================
# Portfolio construction
# ===========================================================================

@dataclass
class Asset:
    """
    One holding within a portfolio.

    ``allocation`` and the bounds are percentage points (0-100);
    ``expected_return`` and ``volatility`` are annualised fractions.
    """
    symbol: str
    name: str = ""
    allocation: float = 0.0
    expected_return: float = 0.0
    volatility: float = 0.0
    min_allocation: Optional[float] = None
    max_allocation: Optional[float] = None

    def bounds(self, constraints: "OptimizationConstraints") -> Tuple[float, float]:
        """
        Effective (lower, upper) bound for the optimizer.

        Per-asset bounds win when present; the global constraint values
        fill whichever side the asset leaves unset.  A global fallback never
        overrides the asset's own side: an asset capped at 5 under a global
        minimum of 10 resolves to ``(5, 5)``.  Only an asset whose own min
        exceeds its own max is rejected.
        """
        own_min, own_max = self.min_allocation, self.max_allocation
        if own_min is not None and own_max is not None and own_min > own_max:
            raise InvalidInputError(
                f"Asset {self.symbol!r} has min allocation {own_min} above max allocation {own_max}."
            )

        if own_min is not None:
            lower = own_min
        elif own_max is not None:
            lower = min(constraints.min_allocation, own_max)
        else:
            lower = constraints.min_allocation

        if own_max is not None:
            upper = own_max
        elif own_min is not None:
            upper = max(constraints.max_allocation, own_min)
        else:
            upper = constraints.max_allocation

        if lower > upper:
            raise InvalidInputError(
                f"Asset {self.symbol!r} has min allocation {lower} above max allocation {upper}."
            )
        return lower, upper

    def slider_range(self) -> Tuple[float, float]:
        """Range offered by the interactive allocation slider."""
        lower = self.min_allocation if self.min_allocation is not None else DEFAULT_MIN_ALLOCATION
        upper = self.max_allocation if self.max_allocation is not None else DEFAULT_MAX_ALLOCATION
        return lower, upper


@dataclass
class OptimizationConstraints:
    """Global bounds applied to every asset in one optimization call."""
    min_allocation: float = 0.0
    max_allocation: float = 100.0
    max_assets: int = 10            # advisory only, never truncates
    target_return: Optional[float] = None
    max_risk: Optional[float] = None

    def __post_init__(self):
        if self.min_allocation > self.max_allocation:
            raise InvalidInputError(
                f"min_allocation ({self.min_allocation}) exceeds "
                f"max_allocation ({self.max_allocation})."
            )


@dataclass
class PortfolioMetrics:
    expected_return: float
    expected_risk: float
    sharpe_ratio: float


@dataclass
class OptimizationResult:
    assets: List[Asset]
    expected_return: float
    expected_risk: float
    sharpe_ratio: float
    is_optimal: bool
    suggestions: List[str] = field(default_factory=list)


@dataclass
class CapitalAllocation:
    symbol: str
    allocation: float      # percentage points
    amount: float          # currency, 2 dp


@dataclass
class RebalanceAction:
    """A single above-threshold drift between current and target weight."""
    symbol: str
    action: str            # "reduce" | "increase"
    difference: float      # absolute percentage points

    def describe(self) -> str:
        return f"{self.action} {self.symbol} by {self.difference:.1f}%"


# ===========================================================================
# Risk analytics
# ===========================================================================

@dataclass
class RiskContribution:
    symbol: str
    contribution: float    # (w_i * sigma_i)^2
    share: float           # fraction of total variance


@dataclass
class RiskMetrics:
    sharpe_ratio: float
    volatility: float
    var_95: float
    cvar_95: float
    max_drawdown: float
    beta: float
    alpha: float
    information_ratio: float
    treynor_ratio: float
    calmar_ratio: float


@dataclass
class Correlation:
    asset1: str
    asset2: str
    correlation: float


# ===========================================================================
# Valuation inputs
# ===========================================================================

@dataclass
class Fundamentals:
    """
    Flat record of company financials as supplied by the market-data layer.

    Every field is optional here; each model's input type below declares
    which ones it actually needs.
    """
    revenue: Optional[float] = None
    net_income: Optional[float] = None
    free_cash_flow: Optional[float] = None
    total_debt: Optional[float] = None
    cash: Optional[float] = None
    shares_outstanding: Optional[float] = None
    book_value: Optional[float] = None
    dividend_per_share: Optional[float] = None
    eps: Optional[float] = None
    gross_margin: Optional[float] = None
    operating_margin: Optional[float] = None
    net_margin: Optional[float] = None
    roe: Optional[float] = None
    roa: Optional[float] = None
    current_ratio: Optional[float] = None


def _require(fundamentals: Fundamentals, names: Tuple[str, ...], model: str) -> Dict[str, float]:
    """Pull *names* off *fundamentals*, raising on the first missing one."""
    values = {}
    for name in names:
        value = getattr(fundamentals, name, None)
        if value is None:
            raise MissingFundamentalsError(name, model)
        values[name] = float(value)
    return values


@dataclass
class DCFInputs:
    free_cash_flow: float
    shares_outstanding: float

    REQUIRED = ("free_cash_flow", "shares_outstanding")

    @classmethod
    def from_fundamentals(cls, fundamentals: Fundamentals) -> "DCFInputs":
        return cls(**_require(fundamentals, cls.REQUIRED, ValuationModel.DCF.value))


@dataclass
class DividendInputs:
    dividend_per_share: float

    REQUIRED = ("dividend_per_share",)

    @classmethod
    def from_fundamentals(cls, fundamentals: Fundamentals) -> "DividendInputs":
        return cls(**_require(fundamentals, cls.REQUIRED, ValuationModel.DIVIDEND.value))


@dataclass
class GrahamInputs:
    eps: float
    book_value: float
    shares_outstanding: float

    REQUIRED = ("eps", "book_value", "shares_outstanding")

    @classmethod
    def from_fundamentals(cls, fundamentals: Fundamentals) -> "GrahamInputs":
        return cls(**_require(fundamentals, cls.REQUIRED, ValuationModel.GRAHAM.value))

    @property
    def book_value_per_share(self) -> float:
        if self.shares_outstanding <= 0:
            raise InvalidInputError("shares_outstanding must be positive.")
        return self.book_value / self.shares_outstanding


@dataclass
class RatioInputs:
    eps: float
    book_value: float
    shares_outstanding: float
    revenue: float
    net_income: float
    total_debt: float
    cash: float
    roe: Optional[float] = None
    roa: Optional[float] = None
    gross_margin: Optional[float] = None
    operating_margin: Optional[float] = None
    net_margin: Optional[float] = None
    current_ratio: Optional[float] = None

    REQUIRED = ("eps", "book_value", "shares_outstanding", "revenue",
                "net_income", "total_debt", "cash")
    OPTIONAL = ("roe", "roa", "gross_margin", "operating_margin",
                "net_margin", "current_ratio")

    @classmethod
    def from_fundamentals(cls, fundamentals: Fundamentals) -> "RatioInputs":
        values = _require(fundamentals, cls.REQUIRED, ValuationModel.RATIOS.value)
        for name in cls.OPTIONAL:
            values[name] = getattr(fundamentals, name)
        return cls(**values)


@dataclass
class ValuationAssumptions:
    """Rates fed to the models; fractions except ``earnings_growth`` (percent)."""
    growth_rate: float = DCF_GROWTH_RATE
    discount_rate: float = DCF_DISCOUNT_RATE
    terminal_growth_rate: float = DCF_TERMINAL_GROWTH_RATE
    projection_years: int = DCF_PROJECTION_YEARS
    dividend_growth_rate: float = DDM_GROWTH_RATE
    required_return: float = DDM_REQUIRED_RETURN
    earnings_growth: float = RATIO_EARNINGS_GROWTH


# ===========================================================================
# Valuation outputs
# ===========================================================================

@dataclass
class ValuationResult:
    """
    Output of one intrinsic-value model.

    ``assumptions`` are reported in percent (e.g. ``{"growth_rate": 10.0}``);
    ``details`` carries model-specific figures such as dividend yield.
    """
    model: ValuationModel
    intrinsic_value: float
    current_price: float
    upside: float                      # percent
    recommendation: Signal
    assumptions: Dict[str, float] = field(default_factory=dict)
    details: Dict[str, float] = field(default_factory=dict)


@dataclass
class RatioAnalysis:
    pe: float
    pb: float
    ps: float
    peg: float
    ev_revenue: float
    ev_ebitda: float
    debt_to_equity: float
    valuation: ValuationLabel
    roe: Optional[float] = None        # percent
    roa: Optional[float] = None        # percent
    current_ratio: Optional[float] = None
    margins: Dict[str, Optional[float]] = field(default_factory=dict)


@dataclass
class OverallRecommendation:
    recommendation: Signal
    confidence: float
    summary: str


@dataclass
class ValuationReport:
    symbol: str
    current_price: float
    dcf: Optional[ValuationResult] = None
    dividend_discount: Optional[ValuationResult] = None
    graham: Optional[ValuationResult] = None
    ratios: Optional[RatioAnalysis] = None
    overall: Optional[OverallRecommendation] = None

    def model_results(self) -> List[ValuationResult]:
        """Signal-bearing results in a fixed order (DCF, DDM, Graham)."""
        return [r for r in (self.dcf, self.dividend_discount, self.graham) if r is not None]


@dataclass
class DCFYear:
    year: int
    projected_fcf: float
    present_value: float


@dataclass
class DCFProjection:
    years: List[DCFYear]
    terminal_value: float
    terminal_present_value: float
    enterprise_value: float
    intrinsic_value: float             # per share


# ===========================================================================
# Scenario simulation
# ===========================================================================

@dataclass
class PortfolioSnapshot:
    """Portfolio as stored by the caller: a value and weighted holdings."""
    total_value: float
    assets: List[Asset] = field(default_factory=list)
    name: str = ""


@dataclass
class AllocationValue:
    name: str
    value: float


@dataclass
class TrajectoryPoint:
    label: str
    value: float


@dataclass
class AssetPerformance:
    symbol: str
    name: str
    category: AssetCategory
    change: float                      # percent
    final_value: float


@dataclass
class ScenarioResult:
    scenario: ScenarioType
    initial_value: float
    final_value: float
    value_change: float
    percent_change: float              # fraction
    before_allocation: List[AllocationValue]
    after_allocation: List[AllocationValue]
    portfolio_trajectory: List[TrajectoryPoint]
    asset_performance: List[AssetPerformance]
    recommendation: str
