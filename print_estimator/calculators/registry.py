"""
Calculator registry — maps pipeline stage names to calculator classes.

Dict order is run order: each stage reads what earlier stages put in the
context.
"""

from .base import BaseCalculator
from .binding import BindingCalculator
from .finishing import FinishingCalculator
from .freight import FreightCalculator
from .packing import PackingCalculator
from .paper import PaperCalculator
from .prepress import PrePressCalculator
from .press import PressCalculator
from ..rate_card import RateCard

CALCULATOR_REGISTRY: dict[str, type] = {
    "paper": PaperCalculator,
    "press": PressCalculator,
    "binding": BindingCalculator,
    "finishing": FinishingCalculator,
    "packing": PackingCalculator,
    "prepress": PrePressCalculator,
    "freight": FreightCalculator,
}


def get_calculator(stage: str, rate_card: RateCard) -> BaseCalculator:
    """Returns a calculator for a stage bound to the rate card, or raises ValueError."""
    if stage not in CALCULATOR_REGISTRY:
        raise ValueError(
            f"No calculator registered for stage: {stage}. "
            f"Available: {list(CALCULATOR_REGISTRY.keys())}"
        )
    return CALCULATOR_REGISTRY[stage](rate_card)


def list_calculators() -> list[str]:
    """All stages in run order."""
    return list(CALCULATOR_REGISTRY.keys())
