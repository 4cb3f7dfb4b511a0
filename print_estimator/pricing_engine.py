"""
Pricing composer — final stage of the estimation pipeline.

Aggregates every cost component of one quantity tier and turns the unit
cost into a selling price. Pure math.

    unit cost      = total production cost / Q
    rushed         = unit × turnaround multiplier
    selling price  = rushed × (1 + commission%) / (1 − margin%)     margin mode
                   = rushed × (1 + commission%) × (1 + margin%)     markup mode
    discounted     = selling × (1 − volume discount%)
    final          = discounted + tax (unless the price already includes tax)
    grand total    = final × Q

In the default margin mode, margin is a share of the selling price.
In markup mode the same percentage is added on top of cost.
All amounts are computed in the rate card's base currency and multiplied
by the job's exchange rate when the job is quoted in another currency.
"""

import logging

from .exceptions import CalculationError
from .rate_card import RateCard
from .schemas import EstimationInput, PricingMode, PricingSpec

logger = logging.getLogger(__name__)

COST_COMPONENTS = (
    "paper", "printing", "ctp", "binding", "finishing", "packing", "freight", "prepress",
)
NO_TAX = "none"


class PricingComposer:
    """Assembles the price of one quantity tier from its cost components."""

    def __init__(self, rate_card: RateCard):
        self.rate_card = rate_card

    def exchange_rate(self, pricing: PricingSpec) -> float:
        """Multiplier from base currency to the quote currency."""
        if not pricing.currency or pricing.currency == self.rate_card.base_currency:
            return 1.0
        if pricing.exchange_rate <= 0:
            raise CalculationError(
                f"Exchange rate must be greater than 0 to quote in {pricing.currency}",
                section="pricing",
            )
        return pricing.exchange_rate

    def compose(self, estimation: EstimationInput, quantity: int, costs: dict) -> dict:
        """
        Args:
            costs: {"paper", "printing", "ctp", "binding", "finishing",
                    "packing", "freight", "prepress"} in base currency

        Returns:
            dict of pricing fields, converted to the quote currency
        """
        if quantity <= 0:
            raise CalculationError("Quantity must be greater than 0 to price", section="pricing")
        pricing = estimation.pricing
        margin = pricing.margin_percent / 100.0
        if pricing.pricing_mode == PricingMode.MARGIN and margin >= 1.0:
            raise CalculationError(
                f"Margin {pricing.margin_percent}% leaves no selling price", section="pricing")
        commission = pricing.commission_percent / 100.0

        additional = self._calculate_additional_subtotal(estimation, quantity)
        total_cost = sum(costs.get(name, 0.0) for name in COST_COMPONENTS) + additional
        unit_cost = total_cost / quantity

        rushed = unit_cost * self._turnaround_multiplier(pricing)
        cost_with_commission = rushed * (1 + commission)
        if pricing.pricing_mode == PricingMode.MARKUP:
            price = cost_with_commission * (1 + margin)
        else:
            price = cost_with_commission / (1 - margin)
        discounted = price * (1 - pricing.volume_discount / 100.0)

        tax_rate = self._tax_rate(pricing) / 100.0
        if pricing.includes_tax:
            tax_per_copy = discounted - discounted / (1 + tax_rate)
            final = discounted
        else:
            tax_per_copy = discounted * tax_rate
            final = discounted + tax_per_copy

        fx = self.exchange_rate(pricing)
        logger.debug("Pricing Q=%d: unit %.4f -> price %.4f -> final %.4f (fx %.4f)",
                     quantity, unit_cost, price, final, fx)
        return {
            "additional_cost": round(additional * fx, 2),
            "total_production_cost": round(total_cost * fx, 2),
            "total_cost_per_copy": round(unit_cost * fx, 4),
            "selling_price_per_copy": round(final * fx, 4),
            "total_selling_price": round(discounted * quantity * fx, 2),
            "margin_amount": round((price - cost_with_commission) * quantity * fx, 2),
            "commission_amount": round(rushed * commission * quantity * fx, 2),
            "turnaround_surcharge": round((rushed - unit_cost) * quantity * fx, 2),
            "discount_amount": round((price - discounted) * quantity * fx, 2),
            "tax_amount": round(tax_per_copy * quantity * fx, 2),
            "grand_total": round(final * quantity * fx, 2),
            "currency": pricing.currency or self.rate_card.base_currency,
            "base_currency": self.rate_card.base_currency,
            "exchange_rate": fx,
        }

    def _calculate_additional_subtotal(self, estimation: EstimationInput, quantity: int) -> float:
        """Free-form cost lines: per copy × Q, or a flat total."""
        return sum(
            item.cost_per_copy * quantity if item.is_per_copy else item.total_cost
            for item in estimation.additional_costs
        )

    def _turnaround_multiplier(self, pricing: PricingSpec) -> float:
        multiplier = self.rate_card.turnaround_multipliers.get(pricing.turnaround.value)
        if multiplier is None:
            raise CalculationError(
                f"Unknown turnaround '{pricing.turnaround.value}'", section="pricing")
        return multiplier

    def _tax_rate(self, pricing: PricingSpec) -> float:
        """Job tax rate as given; the named preset only when no rate was given."""
        if pricing.tax_type == NO_TAX:
            return 0.0
        if pricing.tax_rate is not None:
            return pricing.tax_rate
        if pricing.tax_type not in self.rate_card.tax_presets:
            raise CalculationError(
                f"No tax rate given and no preset for tax type '{pricing.tax_type}'",
                section="pricing",
            )
        return self.rate_card.tax_presets[pricing.tax_type]
