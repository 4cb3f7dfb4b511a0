"""
Normalizer and validator for EstimationInput.

normalize() — coerces every numeric field: counts floored and clamped at 0,
rates/GSM/percentages clamped at 0, margin clamped to [0, 99.99].
NaN and infinity become 0. Returns a new input; never mutates its argument.

validate() — checks business preconditions and returns every violation
as a human-readable message. An empty list means the input is safe to
calculate.
"""

import logging
import math

from .schemas import EstimationInput

logger = logging.getLogger(__name__)

MAX_MARGIN_PERCENT = 99.99

SECTION_COUNT_FIELDS = ("pages", "colors_front", "colors_back", "plate_changes")
PACKING_COUNT_FIELDS = ("custom_books_per_carton",)
PACKING_RATE_FIELDS = (
    "carton_rate", "pallet_rate", "weight_per_copy_grams",
    "max_carton_weight_kg", "max_pallet_height_mm", "max_pallet_weight_kg",
)
DELIVERY_COUNT_FIELDS = ("local_despatches", "overseas_despatches", "advance_copies")
DELIVERY_RATE_FIELDS = ("advance_copies_rate", "customs_clearance", "insurance_rate")
PRE_PRESS_COUNT_FIELDS = ("epson_proofs", "wet_proofs")
PRE_PRESS_RATE_FIELDS = (
    "epson_rate_per_page", "wet_proof_rate_per_form", "film_rate_per_plate", "design_charges",
)
PRICING_RATE_FIELDS = ("commission_percent", "exchange_rate", "target_tph")


def _count(value) -> int:
    """Floor a count. Negative, NaN and infinite values become 0."""
    if value is None or not math.isfinite(value) or value < 0:
        return 0
    return int(math.floor(value))


def _non_negative(value) -> float:
    if value is None or not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


def _clamp(value, low: float, high: float) -> float:
    return min(max(_non_negative(value), low), high)


def _apply(record: dict, fields, coerce) -> None:
    for name in fields:
        record[name] = coerce(record.get(name))


def _normalize_section(section: dict) -> None:
    _apply(section, SECTION_COUNT_FIELDS, _count)
    section["gsm"] = _non_negative(section.get("gsm"))


def normalize(estimation: EstimationInput) -> EstimationInput:
    data = estimation.model_dump()

    data["quantities"] = [_count(q) for q in data["quantities"]]

    book = data["book_spec"]
    _apply(book, ("width_mm", "height_mm"), _non_negative)

    for section in data["text_sections"]:
        _normalize_section(section)
    for key in ("cover", "jacket", "endleaves"):
        _normalize_section(data[key])
    jacket = data["jacket"]
    jacket["extra_jackets_percent"] = _non_negative(jacket["extra_jackets_percent"])
    jacket["flap_width_mm"] = _non_negative(jacket["flap_width_mm"])

    binding = data["binding"]
    binding["ribbon_markers"] = _count(binding["ribbon_markers"])
    binding["board_thickness_mm"] = _non_negative(binding["board_thickness_mm"])

    for operation in data["finishing"]["operations"].values():
        operation["count"] = _count(operation["count"])
    for item in data["finishing"]["additional"]:
        _apply(item, ("setup_cost", "cost_per_copy"), _non_negative)

    packing = data["packing"]
    _apply(packing, PACKING_COUNT_FIELDS, _count)
    _apply(packing, PACKING_RATE_FIELDS, _non_negative)
    for add_on in packing["add_ons"].values():
        add_on["rate"] = _non_negative(add_on["rate"])

    _apply(data["delivery"], DELIVERY_COUNT_FIELDS, _count)
    _apply(data["delivery"], DELIVERY_RATE_FIELDS, _non_negative)

    _apply(data["pre_press"], PRE_PRESS_COUNT_FIELDS, _count)
    _apply(data["pre_press"], PRE_PRESS_RATE_FIELDS, _non_negative)

    pricing = data["pricing"]
    pricing["margin_percent"] = _clamp(pricing["margin_percent"], 0.0, MAX_MARGIN_PERCENT)
    pricing["volume_discount"] = _clamp(pricing["volume_discount"], 0.0, 100.0)
    _apply(pricing, PRICING_RATE_FIELDS, _non_negative)
    if pricing["tax_rate"] is not None:
        pricing["tax_rate"] = _non_negative(pricing["tax_rate"])

    for cost in data["additional_costs"]:
        _apply(cost, ("cost_per_copy", "total_cost"), _non_negative)

    return EstimationInput.model_validate(data)


def validate(estimation: EstimationInput) -> list[str]:
    errors = []

    if not estimation.job_title.strip():
        errors.append("Job title is required.")

    if estimation.book_spec.width_mm <= 0 or estimation.book_spec.height_mm <= 0:
        errors.append("Book width and height must be greater than 0.")

    if not any(q > 0 for q in estimation.quantities):
        errors.append("At least one print quantity is required.")

    enabled = [s for s in estimation.text_sections if s.enabled]
    if not enabled:
        errors.append("Enable at least one text section.")
    if any(s.pages <= 0 for s in enabled):
        errors.append("Enabled text sections must have pages greater than 0.")
    if any(s.gsm <= 0 for s in enabled):
        errors.append("Enabled text sections must have GSM greater than 0.")

    cover = estimation.cover
    if cover.enabled and (cover.pages <= 0 or cover.gsm <= 0):
        errors.append("Cover pages and GSM must be greater than 0.")

    if not estimation.delivery.destination_id.strip():
        errors.append("Delivery destination is required.")

    if estimation.pricing.margin_percent >= 100:
        errors.append("Margin percentage must be below 100.")

    if errors:
        logger.debug("Estimation '%s' failed validation: %s", estimation.job_title, errors)
    return errors
