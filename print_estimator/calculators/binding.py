"""
Binding & spine calculator.

Spine = Σ (pages / 2) × caliper over the bound body (text + endleaves),
caliper mm = GSM / 1000 × bulk factor of the substrate.
Boarded (case) bindings add two board thicknesses to the spine.

Binding cost = base per-copy rate from the method's quantity curve
(per copy + per 16pp signature) × covering/case material multiplier × Q,
plus board for case work, plus every enabled option.
"""

import logging
import math

from .base import BaseCalculator
from ..schemas import EstimationInput

logger = logging.getLogger(__name__)

PAGES_PER_SIGNATURE = 16

# Case board size over trim
BOARD_WIDTH_ALLOWANCE_MM = 3.0
BOARD_HEIGHT_ALLOWANCE_MM = 6.0
BOARDS_PER_BOOK = 2


class BindingCalculator(BaseCalculator):

    SECTION = "binding"

    def body_sections(self, estimation: EstimationInput) -> list:
        sections = [s for s in estimation.text_sections if s.enabled and s.pages > 0]
        if estimation.endleaves.enabled and estimation.endleaves.pages > 0:
            sections.append(estimation.endleaves)
        return sections

    def spine(self, estimation: EstimationInput) -> dict:
        """
        Spine thickness (mm) with and without boards.
        Returns {"spine_thickness", "spine_with_board", "board_thickness", "total_pages"}.
        """
        thickness = 0.0
        total_pages = 0
        for section in self.body_sections(estimation):
            bulk = self.rate_card.bulk_factor(section.paper_type, section.paper_code)
            caliper = section.gsm / 1000.0 * bulk
            thickness += (section.pages / 2.0) * caliper
            total_pages += int(section.pages)

        method = self._method(estimation)
        board_thickness = 0.0
        if method.boarded:
            board_thickness = (estimation.binding.board_thickness_mm
                               or self._board(estimation).thickness_mm)

        return {
            "spine_thickness": round(thickness, 2),
            "spine_with_board": round(thickness + 2 * board_thickness, 2),
            "board_thickness": board_thickness,
            "total_pages": total_pages,
        }

    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        binding = estimation.binding
        method = self._method(estimation)

        text_pages = sum(int(s.pages) for s in estimation.text_sections if s.enabled)
        signatures = math.ceil(text_pages / PAGES_PER_SIGNATURE)
        band = method.band_for(quantity)
        base_per_copy = band.rate_per_copy + band.rate_per_signature * signatures

        multiplier = 1.0
        if binding.covering_material_id:
            multiplier *= self.lookup(self.rate_card.covering_materials,
                                      binding.covering_material_id, "covering material")
        if method.boarded and binding.case_material:
            multiplier *= self.lookup(self.rate_card.case_materials,
                                      binding.case_material, "case material")

        base = base_per_copy * multiplier * quantity
        breakdown = {method.name: base}

        if method.boarded:
            breakdown["Board"] = self.board_cost_per_copy(estimation) * quantity

        for option_id, count in binding.enabled_options().items():
            rate = self.lookup(self.rate_card.binding_options, option_id, "binding option")
            breakdown[option_id] = (
                rate.percent_of_base / 100.0 * base
                + rate.per_copy * quantity * count
                + rate.setup
            )

        logger.debug("Binding %s Q=%d: %.4f/copy base × %.2f, %d options",
                     binding.primary_binding, quantity, base_per_copy, multiplier,
                     len(binding.enabled_options()))
        return self.make_result(breakdown, base_per_copy=round(base_per_copy * multiplier, 4))

    def board_cost_per_copy(self, estimation: EstimationInput) -> float:
        board = self._board(estimation)
        board_w_in = (estimation.book_spec.width_mm + BOARD_WIDTH_ALLOWANCE_MM) / 25.4
        board_h_in = (estimation.book_spec.height_mm + BOARD_HEIGHT_ALLOWANCE_MM) / 25.4
        per_sheet = (math.floor(board.sheet_width_in / board_w_in)
                     * math.floor(board.sheet_height_in / board_h_in))
        if per_sheet == 0:
            self.fail(f"Case board does not fit a {board.sheet_width_in}x{board.sheet_height_in} "
                      f"board sheet")
        return BOARDS_PER_BOOK / per_sheet * board.rate_per_sheet

    def _method(self, estimation: EstimationInput):
        return self.lookup(self.rate_card.binding_methods,
                           estimation.binding.primary_binding, "binding method")

    def _board(self, estimation: EstimationInput):
        board_type = estimation.binding.board_type or self.rate_card.default_board_type
        return self.lookup(self.rate_card.board_types, board_type, "board type")
