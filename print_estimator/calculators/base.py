"""
Abstract base class for all estimation calculators.

Input: normalized EstimationInput, the quantity tier, and the context dict
       holding upstream outputs (spine, paper layouts, plates, packing...)
Output: plain dict with a "total" and a breakdown
"""

import logging
import math
from abc import ABC, abstractmethod

from ..exceptions import CalculationError
from ..rate_card import RateCard
from ..schemas import EstimationInput

logger = logging.getLogger(__name__)


class BaseCalculator(ABC):
    """All estimation calculators inherit from this."""

    # Section key used in error context when a calculator has no section
    SECTION = "job"

    def __init__(self, rate_card: RateCard):
        self.rate_card = rate_card

    @abstractmethod
    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        """
        Price this calculator's share of one quantity tier.
        Returns a dict with at least {"total": float, "breakdown": dict}.
        """
        pass

    # --- Helper methods for all calculators ---

    def ceil_units(self, value: float) -> int:
        """Round UP to whole units. Ignores float noise below 1e-6."""
        return math.ceil(round(value, 6))

    def sqm(self, width_mm: float, height_mm: float) -> float:
        """Area in m² from millimetre dimensions."""
        return (width_mm / 1000.0) * (height_mm / 1000.0)

    def money(self, value: float) -> float:
        return round(value, 2)

    def fail(self, message: str, section: str = None):
        raise CalculationError(message, section=section or self.SECTION)

    def lookup(self, table: dict, key: str, what: str, section: str = None):
        """Rate card lookup that raises instead of defaulting to zero."""
        if key not in table:
            self.fail(f"No {what} '{key}' in rate card. Available: {sorted(table)}", section)
        return table[key]

    def make_result(self, breakdown: dict, **extra) -> dict:
        """Build the calculator output dict. total = sum of the breakdown."""
        rounded = {name: self.money(value) for name, value in breakdown.items()}
        result = {"total": self.money(sum(breakdown.values())), "breakdown": rounded}
        result.update(extra)
        return result
