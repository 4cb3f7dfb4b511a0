"""
Finishing calculator — independently toggled operations.

Operations are a mapping of operation id -> FinishingOperation, iterated
uniformly. Each enabled operation costs setup + rate × driver:
- area basis: m² of press sheets of the section it applies to; that
  section must be printed
- copy basis: copies × count

Jacket flags (lamination type, spot UV) become jacket operations unless
the operations mapping already sets them.
"""

import logging

from .base import BaseCalculator
from ..schemas import EstimationInput, FinishingOperation

logger = logging.getLogger(__name__)

AREA = "area"
COPY = "copy"


class FinishingCalculator(BaseCalculator):

    SECTION = "finishing"

    def operations(self, estimation: EstimationInput) -> dict:
        """Operations mapping with jacket flags folded in."""
        operations = dict(estimation.finishing.operations)
        jacket = estimation.jacket
        if jacket.enabled:
            if jacket.lamination_type and "jacket_lamination" not in operations:
                operations["jacket_lamination"] = FinishingOperation(
                    enabled=True, variant=jacket.lamination_type)
            if jacket.spot_uv and "spot_uv_jacket" not in operations:
                operations["spot_uv_jacket"] = FinishingOperation(enabled=True)
        return operations

    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        """
        context needs "paper" (layouts, for area) and "spine_with_board".
        """
        breakdown = {}
        for operation_id, operation in self.operations(estimation).items():
            if not operation.enabled:
                continue
            rate = self.lookup(self.rate_card.finishing, operation_id,
                               "finishing operation", operation_id)
            unit_rate = rate.rate_for(operation.variant)
            setup = rate.setup_for(operation.variant)

            if rate.basis == AREA:
                driver = self.area_for(operation_id, rate.applies_to, context)
            elif rate.basis == COPY:
                driver = quantity * operation.count
            else:
                self.fail(f"Unknown finishing basis '{rate.basis}'", operation_id)

            breakdown[operation_id] = setup + unit_rate * driver
            logger.debug("Finishing %s (%s): setup %.2f + %.4f × %.3f",
                         operation_id, operation.variant or "standard", setup, unit_rate, driver)

        for item in estimation.finishing.additional:
            breakdown[item.description] = (
                breakdown.get(item.description, 0.0)
                + item.setup_cost + item.cost_per_copy * quantity
            )

        return self.make_result(breakdown)

    def area_for(self, operation_id: str, section_key: str, context: dict) -> float:
        """m² of press sheets the operation runs over. The section must have been printed."""
        for layout in context.get("paper", {}).get("sections", []):
            if layout["section"] == section_key:
                return layout["gross_sheets"] * layout["sheet_area_sqm"]
        self.fail(f"'{operation_id}' runs on the {section_key}, which is not printed", operation_id)
