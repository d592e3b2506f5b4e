from enum import Enum


class ScenarioType(Enum):
    """Macro scenarios the simulator knows how to apply."""
    RECESSION = "RECESSION"
    INFLATION_SPIKE = "INFLATION_SPIKE"
    INTEREST_RATE_HIKE = "INTEREST_RATE_HIKE"
    BULL_MARKET = "BULL_MARKET"
    WAR_ENERGY_CRISIS = "WAR_ENERGY_CRISIS"


class AssetCategory(Enum):
    """Buckets a holding is mapped to before a scenario shock is applied."""
    STOCKS = "stocks"
    LONG_BONDS = "long_bonds"
    INTERMEDIATE_BONDS = "intermediate_bonds"
    GOLD = "gold"
    COMMODITIES = "commodities"
    OTHER = "other"


class Signal(Enum):
    """Per-model trade signal."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class ValuationModel(Enum):
    """Valuation model selector (``ALL`` runs every model)."""
    DCF = "dcf"
    DIVIDEND = "dividend"
    GRAHAM = "graham"
    RATIOS = "ratios"
    ALL = "all"


class ValuationLabel(Enum):
    """Ratio-based fair-value classification."""
    UNDERVALUED = "Undervalued"
    FAIR_VALUE = "Fair Value"
    OVERVALUED = "Overvalued"
