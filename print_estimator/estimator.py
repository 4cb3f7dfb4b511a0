"""
Estimation orchestrator and public entry points.

    normalize_estimation_for_calculation(input) -> input'
    validate_estimation(input) -> list of error messages
    calculate_full_estimation(input, rate_card=None) -> list of EstimationResult

Callers run the three in that order. calculate_full_estimation refuses an
input that fails validation (EstimationValidationError) and surfaces any
calculation fault as CalculationError tagged with section and quantity.

Each quantity tier is a pure function of (input, quantity, rate card);
zero tiers are skipped and results keep the order of the quantities.
"""

import enum
import logging
from typing import Optional

from .calculators.registry import get_calculator, list_calculators
from .exceptions import CalculationError, EstimationValidationError
from .pricing_engine import PricingComposer
from .rate_card import RateCard, get_active_rate_card
from .schemas import EstimationInput, EstimationResult, PressCost, SectionCost
from .validation import normalize, validate

logger = logging.getLogger(__name__)


class EngineState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class EstimationEngine:
    """
    Runs the calculator pipeline once per active quantity tier.

    idle -> running on run(); back to idle when every tier is done or on
    the first fault.
    """

    def __init__(self, rate_card: Optional[RateCard] = None):
        self.rate_card = rate_card or get_active_rate_card()
        self.calculators = {
            stage: get_calculator(stage, self.rate_card) for stage in list_calculators()
        }
        self.composer = PricingComposer(self.rate_card)
        self.state = EngineState.IDLE

    def run(self, estimation: EstimationInput) -> list[EstimationResult]:
        errors = validate(estimation)
        if errors:
            raise EstimationValidationError(errors)

        self.state = EngineState.RUNNING
        try:
            tiers = [(i, int(q)) for i, q in enumerate(estimation.quantities) if q > 0]
            logger.info("Estimating '%s' for %d quantity tier(s): %s",
                        estimation.job_title, len(tiers), [q for _, q in tiers])
            return [self.calculate_tier(estimation, quantity, index) for index, quantity in tiers]
        finally:
            self.state = EngineState.IDLE

    def calculate_tier(self, estimation: EstimationInput, quantity: int,
                       index: int) -> EstimationResult:
        try:
            return self._calculate_tier(estimation, quantity, index)
        except CalculationError as e:
            logger.error("Calculation failed for quantity %d: %s", quantity, e)
            if e.quantity is None:
                raise e.with_quantity(quantity) from e
            raise
        except (ArithmeticError, LookupError, ValueError) as e:
            logger.error("Calculation failed for quantity %d: %s", quantity, e)
            raise CalculationError(f"Calculation failed: {e}", quantity=quantity) from e

    def _calculate_tier(self, estimation: EstimationInput, quantity: int,
                        index: int) -> EstimationResult:
        spine = self.calculators["binding"].spine(estimation)
        context = {
            "spine_thickness": spine["spine_thickness"],
            "spine_with_board": spine["spine_with_board"],
            "declared_value": 0.0,
        }
        for stage, calculator in self.calculators.items():
            output = calculator.calculate(estimation, quantity, context)
            context[stage] = output
            context["declared_value"] += output["total"]

        press = context["press"]
        costs = {
            "paper": context["paper"]["total"],
            "printing": press["printing_total"],
            "ctp": press["ctp_total"],
            "binding": context["binding"]["total"],
            "finishing": context["finishing"]["total"],
            "packing": context["packing"]["total"],
            "freight": context["freight"]["total"],
            "prepress": context["prepress"]["total"],
        }
        pricing = self.composer.compose(estimation, quantity, costs)
        fx = pricing["exchange_rate"]
        packing = context["packing"]

        return EstimationResult(
            quantity=quantity,
            quantity_index=index,
            paper_costs=[self._section_cost(layout, fx) for layout in context["paper"]["sections"]],
            printing_costs=[self._press_cost(section, fx) for section in press["sections"]],
            total_paper_cost=_convert(costs["paper"], fx),
            total_printing_cost=_convert(costs["printing"], fx),
            total_ctp_cost=_convert(costs["ctp"], fx),
            binding_cost=_convert(costs["binding"], fx),
            finishing_cost=_convert(costs["finishing"], fx),
            packing_cost=_convert(costs["packing"], fx),
            freight_cost=_convert(costs["freight"], fx),
            prepress_cost=_convert(costs["prepress"], fx),
            spine_thickness=spine["spine_thickness"],
            spine_with_board=spine["spine_with_board"],
            weight_per_book_grams=packing["weight_per_copy_grams"],
            total_weight_kg=packing["total_weight_kg"],
            books_per_carton=packing["books_per_carton"],
            total_cartons=packing["cartons"],
            cartons_per_pallet=packing["cartons_per_pallet"],
            total_pallets=packing["pallets"],
            running_hours=press["running_hours"],
            makeready_hours=press["makeready_hours"],
            binding_breakdown=_convert_all(context["binding"]["breakdown"], fx),
            finishing_breakdown=_convert_all(context["finishing"]["breakdown"], fx),
            packing_breakdown=_convert_all(packing["breakdown"], fx),
            freight_breakdown=_convert_all(context["freight"]["breakdown"], fx),
            prepress_breakdown=_convert_all(context["prepress"]["breakdown"], fx),
            **pricing,
        )

    def _section_cost(self, layout: dict, fx: float) -> SectionCost:
        return SectionCost(
            section=layout["section"],
            label=layout["label"],
            sheet_size=layout["sheet_size"],
            n_up=layout["n_up"],
            forms=layout["forms"],
            net_sheets=layout["net_sheets"],
            spoilage_sheets=layout["spoilage_sheets"],
            gross_sheets=layout["gross_sheets"],
            weight_kg=layout["weight_kg"],
            rate_per_kg=_convert(layout["rate_per_kg"], fx),
            cost=_convert(layout["cost"], fx),
        )

    def _press_cost(self, section: dict, fx: float) -> PressCost:
        money = ("ctp_cost", "running_cost", "makeready_cost", "printing_cost")
        return PressCost(**{
            key: _convert(value, fx) if key in money else value
            for key, value in section.items()
        })


def _convert(value: float, fx: float) -> float:
    return round(value * fx, 2)


def _convert_all(breakdown: dict, fx: float) -> dict:
    return {name: _convert(value, fx) for name, value in breakdown.items()}


def normalize_estimation_for_calculation(estimation: EstimationInput) -> EstimationInput:
    """New input with every numeric field floored/clamped. Does not mutate its argument."""
    return normalize(estimation)


def validate_estimation(estimation: EstimationInput) -> list[str]:
    """Business rule violations; an empty list means safe to calculate."""
    return validate(estimation)


def calculate_full_estimation(estimation: EstimationInput,
                              rate_card: Optional[RateCard] = None) -> list[EstimationResult]:
    """One EstimationResult per non-zero quantity, in input order."""
    return EstimationEngine(rate_card).run(estimation)
