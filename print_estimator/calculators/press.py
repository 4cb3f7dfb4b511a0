"""
Press calculator — plates (CTP), makeready and machine running cost.

Plates per form: front + back for sheetwise, max(front, back) when both
sides share one plate set (perfecting, work-and-turn).
Running hours = gross sheets / TPH. TPH is the job's target throughput,
unless the section names its own machine, whose speed and rate win.
"""

import logging

from .base import BaseCalculator
from ..schemas import EstimationInput, PrintingMethod

logger = logging.getLogger(__name__)


class PressCalculator(BaseCalculator):

    SECTION = "press"

    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        """
        context needs "paper" (PaperCalculator output).
        Returns {"total", "breakdown", "sections", "ctp_total", "printing_total",
                 "plates", "running_hours", "makeready_hours"}.
        """
        sections = []
        for layout in context["paper"]["sections"]:
            press = self.calculate_section(layout, estimation)
            if press is not None:
                sections.append(press)

        ctp_total = sum(s["ctp_cost"] for s in sections)
        printing_total = sum(s["printing_cost"] for s in sections)
        breakdown = {"ctp": ctp_total, "printing": printing_total}
        return self.make_result(
            breakdown,
            sections=sections,
            ctp_total=self.money(ctp_total),
            printing_total=self.money(printing_total),
            plates=sum(s["plates"] for s in sections),
            running_hours=round(sum(s["running_hours"] for s in sections), 3),
            makeready_hours=round(sum(s["makeready_hours"] for s in sections), 3),
        )

    def plates_per_form(self, front: int, back: int, method: PrintingMethod) -> int:
        if method == PrintingMethod.SHEETWISE:
            return front + back
        return max(front, back)

    def calculate_section(self, layout: dict, estimation: EstimationInput):
        """Press costs for one paper layout. None for unprinted sections."""
        key = layout["section"]
        front, back = layout["colors_front"], layout["colors_back"]
        if not layout["double_sided"]:
            back = 0
        method = layout["printing_method"]
        per_form = self.plates_per_form(front, back, method)
        if per_form == 0:
            return None

        machine, tph = self._machine_and_speed(layout, estimation)
        plates = per_form * layout["forms"]
        plate_changes = layout["plate_changes"]
        ctp_cost = plates * machine.ctp_rate + plate_changes * self.rate_card.plate_change_rate

        running_hours = layout["gross_sheets"] / tph
        running_cost = running_hours * machine.hourly_rate

        makereadies = layout["forms"]
        if method == PrintingMethod.SHEETWISE and front > 0 and back > 0:
            makereadies *= 2
        makeready_cost = makereadies * machine.makeready_cost
        makeready_hours = makereadies * machine.makeready_hours

        logger.debug("Press %s on %s: %d plates, %.2f h @ %.0f sph", key, machine.id,
                     plates, running_hours, tph)
        return {
            "section": key,
            "machine_id": machine.id,
            "plates": plates,
            "ctp_cost": self.money(ctp_cost),
            "running_hours": round(running_hours, 3),
            "running_cost": self.money(running_cost),
            "makeready_hours": round(makeready_hours, 3),
            "makeready_cost": self.money(makeready_cost),
            "printing_cost": self.money(running_cost + makeready_cost),
        }

    def _machine_and_speed(self, layout: dict, estimation: EstimationInput) -> tuple:
        key = layout["section"]
        machine = self.rate_card.get_machine(layout["machine_id"])
        if machine is None:
            self.fail(f"Unknown machine '{layout['machine_id']}'", key)

        tph = machine.speed_sph
        if not layout["own_machine"] and estimation.pricing.target_tph > 0:
            tph = estimation.pricing.target_tph
        if tph <= 0:
            self.fail(f"Machine '{machine.id}' has no throughput (TPH {tph})", key)
        return machine, tph
