"""
Freight & delivery calculator.

Main freight by destination and mode, scaled by the packed shipment:
- sea:     containers × container rate, or pallets × pallet rate
- air:     chargeable kg (max of actual, volumetric) × air rate
- road:    tons × per-ton rate, never below the truck rate
- courier: chargeable kg × courier rate
Overseas shipments add inland haulage to the port. FOB stops at the port;
ex works has no main freight. A fuel surcharge applies to the main freight.

Added on top: per-despatch charges, advance copies (own rate, else air or
courier by weight), customs clearance and insurance on declared value.
"""

import logging
import math

from .base import BaseCalculator
from ..schemas import DeliveryType, EstimationInput, FreightMode

logger = logging.getLogger(__name__)

KG_PER_TON = 1000.0


class FreightCalculator(BaseCalculator):

    SECTION = "freight"

    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        """
        context needs "packing" (PackingCalculator output) and "declared_value"
        (production cost before freight, for insurance).
        """
        delivery = estimation.delivery
        destination = self.rate_card.get_destination(delivery.destination_id)
        if destination is None:
            self.fail(f"Unknown delivery destination '{delivery.destination_id}'")
        shipment = context["packing"]
        rates = self.rate_card.freight

        breakdown = {}
        if delivery.delivery_type != DeliveryType.EX_WORKS:
            inland = 0.0
            if destination.overseas:
                inland = self.inland_haulage(destination, shipment)
                breakdown["inland_haulage"] = inland
            if not (destination.overseas and delivery.delivery_type == DeliveryType.FOB):
                main = self.mode_cost(delivery.freight_mode, destination, shipment)
                breakdown["main_freight"] = main
                breakdown["fuel_surcharge"] = main * rates.fuel_surcharge_percent / 100.0

            breakdown["local_despatch"] = delivery.local_despatches * rates.local_despatch_charge
            if destination.overseas:
                consignments = max(1, int(delivery.overseas_despatches))
                breakdown["overseas_despatch"] = consignments * destination.per_consignment_charges

        if delivery.advance_copies > 0:
            breakdown["advance_copies"] = self.advance_copies_cost(estimation, destination, shipment)

        if delivery.customs_clearance > 0:
            breakdown["customs_clearance"] = delivery.customs_clearance
        elif destination.overseas and delivery.delivery_type == DeliveryType.DDP:
            breakdown["customs_clearance"] = destination.clearance

        if delivery.insurance:
            insurance_rate = delivery.insurance_rate or destination.insurance_percent
            breakdown["insurance"] = context.get("declared_value", 0.0) * insurance_rate / 100.0

        logger.debug("Freight Q=%d to %s (%s/%s): %s", quantity, destination.id,
                     delivery.delivery_type.value, delivery.freight_mode.value, breakdown)
        return self.make_result(breakdown, destination=destination.id)

    def mode_cost(self, mode: FreightMode, destination, shipment: dict) -> float:
        rates = self.rate_card.freight
        weight_kg = shipment["total_weight_kg"]
        volume_cbm = shipment["volume_cbm"]

        # Domestic destinations have no sea lane
        if mode == FreightMode.SEA and not destination.overseas:
            mode = FreightMode.ROAD

        if mode == FreightMode.SEA:
            if shipment["containers"]:
                return shipment["containers"] * destination.sea_per_container
            return shipment["pallets"] * destination.sea_per_pallet
        if mode == FreightMode.AIR:
            chargeable = max(weight_kg, volume_cbm * rates.air_kg_per_cbm)
            air_rate = destination.air_per_kg or rates.default_air_per_kg
            return chargeable * air_rate
        if mode == FreightMode.COURIER:
            chargeable = max(weight_kg, volume_cbm * rates.courier_kg_per_cbm)
            return chargeable * destination.courier_per_kg
        if mode == FreightMode.ROAD:
            chargeable = max(weight_kg, volume_cbm * rates.road_kg_per_cbm)
            by_weight = chargeable / KG_PER_TON * destination.surface_per_ton
            return max(by_weight, destination.surface_per_truck)
        self.fail(f"Unknown freight mode '{mode}'")

    def inland_haulage(self, destination, shipment: dict) -> float:
        if shipment["containers"]:
            return shipment["containers"] * destination.surface_per_container
        return max(1, shipment["pallets"]) * destination.surface_per_pallet

    def advance_copies_cost(self, estimation: EstimationInput, destination, shipment: dict) -> float:
        """Job rate per copy; else whole kg by air, or by courier when not air-freighted."""
        delivery = estimation.delivery
        if delivery.advance_copies_rate > 0:
            return delivery.advance_copies * delivery.advance_copies_rate
        weight_kg = math.ceil(delivery.advance_copies * shipment["weight_per_copy_grams"] / 1000.0)
        if delivery.advance_copies_air_freight:
            return weight_kg * (destination.air_per_kg or self.rate_card.freight.default_air_per_kg)
        if destination.courier_per_kg <= 0:
            self.fail(f"No rate for advance copies to '{destination.id}': set advance_copies_rate "
                      f"or send them by air")
        return weight_kg * destination.courier_per_kg
