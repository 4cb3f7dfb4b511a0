"""
Packing calculator — cartons, pallets and protective add-ons.

Books -> cartons -> pallets:
- per-copy weight: supplied directly, else spine × trim area × book density
- books per carton: fixed override, else max carton weight ÷ copy weight
- carton size follows the book stack; cartons per pallet is bounded by
  footprint × layers under the height limit and by the pallet weight limit
"""

import logging
import math

from .base import BaseCalculator
from ..schemas import EstimationInput

logger = logging.getLogger(__name__)

PER_CARTON = "per_carton"
PER_COPY = "per_copy"
PER_PALLET = "per_pallet"


class PackingCalculator(BaseCalculator):

    SECTION = "packing"

    def weight_per_copy_grams(self, estimation: EstimationInput, spine_mm: float) -> float:
        if estimation.packing.weight_per_copy_grams > 0:
            return estimation.packing.weight_per_copy_grams
        volume_cm3 = (spine_mm * estimation.book_spec.width_mm
                      * estimation.book_spec.height_mm) / 1000.0
        return volume_cm3 * self.rate_card.packing.book_density_g_per_cm3

    def calculate(self, estimation: EstimationInput, quantity: int, context: dict) -> dict:
        """
        context needs "spine_with_board".
        Returns totals plus the shipment: weight, volume, cartons, pallets, containers.
        """
        packing = estimation.packing
        rates = self.rate_card.packing
        book = estimation.book_spec
        spine = context.get("spine_with_board", 0.0)

        copy_grams = self.weight_per_copy_grams(estimation, spine)
        if copy_grams <= 0:
            self.fail("Per-copy weight must be greater than 0 to pack")
        copy_kg = copy_grams / 1000.0

        max_carton_kg = packing.max_carton_weight_kg or rates.max_carton_weight_kg
        books_per_carton = int(packing.custom_books_per_carton) or math.floor(max_carton_kg / copy_kg)
        books_per_carton = max(1, books_per_carton)
        cartons = math.ceil(quantity / books_per_carton)

        # Carton sized to a flat stack of books
        pad, wall = rates.carton_clearance_mm, rates.carton_wall_mm
        outer_w = book.width_mm + pad + 2 * wall
        outer_h = book.height_mm + pad + 2 * wall
        outer_d = books_per_carton * max(spine, 1.0) + pad + 2 * wall
        surface_sqm = 2 * (outer_w * outer_h + outer_w * outer_d + outer_h * outer_d) / 1e6
        carton_tare_kg = surface_sqm * rates.carton_board_kg_per_sqm
        carton_gross_kg = books_per_carton * copy_kg + carton_tare_kg
        carton_cbm = outer_w * outer_h * outer_d / 1e9

        cartons_per_pallet = self.cartons_per_pallet(estimation, outer_w, outer_h, outer_d,
                                                     carton_gross_kg)
        pallets = math.ceil(cartons / cartons_per_pallet)

        breakdown = {}
        if packing.use_cartons:
            carton_rate = packing.carton_rate or self.lookup(
                rates.carton_types, packing.carton_type, "carton type")
            breakdown["cartons"] = cartons * carton_rate
        if packing.use_pallets:
            pallet_rate = packing.pallet_rate or self.lookup(
                rates.pallet_types, packing.pallet_type, "pallet type")
            breakdown["pallets"] = pallets * pallet_rate

        units = {PER_CARTON: cartons, PER_COPY: quantity,
                 PER_PALLET: pallets if packing.use_pallets else 0}
        for add_on_id, add_on in packing.add_ons.items():
            if not add_on.enabled:
                continue
            rate = self.lookup(rates.add_ons, add_on_id, "packing add-on")
            if rate.basis not in units:
                self.fail(f"Unknown packing basis '{rate.basis}' for {add_on_id}")
            breakdown[add_on_id] = units[rate.basis] * (add_on.rate or rate.rate)

        total_weight_kg = (quantity * copy_kg + cartons * carton_tare_kg
                           + (pallets * rates.pallet_tare_kg if packing.use_pallets else 0.0))
        volume_cbm = cartons * carton_cbm
        containers = 0
        if packing.containerization:
            containers = max(1, math.ceil(max(volume_cbm / rates.container_capacity_cbm,
                                              total_weight_kg / rates.container_max_kg)))

        logger.debug("Packing Q=%d: %.1f g/copy, %d/carton, %d cartons, %d/pallet, %d pallets",
                     quantity, copy_grams, books_per_carton, cartons, cartons_per_pallet, pallets)
        return self.make_result(
            breakdown,
            weight_per_copy_grams=round(copy_grams, 2),
            books_per_carton=books_per_carton,
            cartons=cartons,
            cartons_per_pallet=cartons_per_pallet,
            pallets=pallets,
            total_weight_kg=round(total_weight_kg, 2),
            volume_cbm=round(volume_cbm, 3),
            containers=containers,
        )

    def cartons_per_pallet(self, estimation: EstimationInput, outer_w: float, outer_h: float,
                           outer_d: float, carton_gross_kg: float) -> int:
        packing = estimation.packing
        rates = self.rate_card.packing
        max_height = packing.max_pallet_height_mm or rates.max_pallet_height_mm
        max_weight = packing.max_pallet_weight_kg or rates.max_pallet_weight_kg

        per_layer = max(
            math.floor(rates.pallet_length_mm / outer_w) * math.floor(rates.pallet_width_mm / outer_h),
            math.floor(rates.pallet_length_mm / outer_h) * math.floor(rates.pallet_width_mm / outer_w),
        )
        layers = math.floor((max_height - rates.pallet_height_mm) / outer_d)
        by_weight = math.floor(max_weight / carton_gross_kg)
        return max(1, min(per_layer * layers, by_weight))
