"""
portfolio_core/errors.py
------------------------
Error taxonomy shared by every engine.

All errors derive from ``ValueError`` so existing ``except ValueError``
handlers around engine calls keep working.
"""

from __future__ import annotations

from typing import Optional


class PortfolioCoreError(ValueError):
    """Base class for all engine errors."""


class InvalidInputError(PortfolioCoreError):
    """Malformed or degenerate numeric input (zero totals, r <= g, ...)."""


class MissingFundamentalsError(PortfolioCoreError):
    """A valuation model's required fundamentals field is absent."""

    def __init__(self, field: str, model: Optional[str] = None):
        self.field = field
        self.model = model
        where = f" for {model} valuation" if model else ""
        super().__init__(f"Missing required fundamentals field '{field}'{where}.")


class UnknownCategoryError(PortfolioCoreError):
    """Unknown scenario type, asset category or valuation model name."""
