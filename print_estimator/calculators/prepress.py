"""
Pre-press calculator — proofs, film output and design charges.

Rates left at 0 on the job fall back to the rate card.
"""

from .base import BaseCalculator
from ..schemas import EstimationInput


class PrePressCalculator(BaseCalculator):

    SECTION = "prepress"

    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        """context needs "press" for the plate count when film output is on."""
        pre_press = estimation.pre_press
        rates = self.rate_card.pre_press
        breakdown = {}

        if pre_press.epson_proofs:
            breakdown["epson_proofs"] = pre_press.epson_proofs * (
                pre_press.epson_rate_per_page or rates.epson_per_page)
        if pre_press.wet_proofs:
            breakdown["wet_proofs"] = pre_press.wet_proofs * (
                pre_press.wet_proof_rate_per_form or rates.wet_proof_per_form)
        if pre_press.film_output:
            plates = context["press"]["plates"]
            breakdown["film_output"] = plates * (
                pre_press.film_rate_per_plate or rates.film_per_plate)
        if pre_press.design_charges:
            breakdown["design_charges"] = pre_press.design_charges

        return self.make_result(breakdown)
