"""
Packing + freight calculator tests.

Tests:
1-8.   Packing (weight, books per carton, cartons, pallets, add-ons, toggles)
9-20.  Freight (road, ex works, FOB, sea, air, DDP, advance copies, insurance)
"""

import pytest

from print_estimator.calculators.freight import FreightCalculator
from print_estimator.calculators.packing import PackingCalculator
from print_estimator.exceptions import CalculationError
from print_estimator.schemas import EstimationInput

SAMPLE_SPINE_MM = 5.12


def _estimation(data):
    return EstimationInput.model_validate(data)


def _packing(rate_card, estimation, quantity=3000):
    return PackingCalculator(rate_card).calculate(
        estimation, quantity, {"spine_with_board": SAMPLE_SPINE_MM})


def _freight(rate_card, estimation, quantity=3000, declared_value=0.0):
    context = {
        "spine_with_board": SAMPLE_SPINE_MM,
        "packing": _packing(rate_card, estimation, quantity),
        "declared_value": declared_value,
    }
    return FreightCalculator(rate_card).calculate(estimation, quantity, context)


# ============================================================
# Packing
# ============================================================

def test_weight_from_spine_and_trim(rate_card, sample_estimation):
    """5.12 × 152 × 229 mm³ at 0.9 g/cm³ ≈ 160.4g."""
    result = _packing(rate_card, sample_estimation)
    assert result["weight_per_copy_grams"] == pytest.approx(5.12 * 152 * 229 / 1000 * 0.9,
                                                            abs=0.01)


def test_supplied_weight_wins(rate_card, sample_data):
    sample_data["packing"] = {"weight_per_copy_grams": 500}
    result = _packing(rate_card, _estimation(sample_data))
    assert result["weight_per_copy_grams"] == 500
    assert result["books_per_carton"] == 28  # 14kg / 0.5kg


def test_sample_cartons_and_pallets(rate_card, sample_estimation):
    """87 books per 14kg carton -> 35 cartons on one pallet."""
    result = _packing(rate_card, sample_estimation)
    assert result["books_per_carton"] == 87
    assert result["cartons"] == 35
    assert result["pallets"] == 1
    assert result["breakdown"]["cartons"] == pytest.approx(35 * 65.0)
    assert result["breakdown"]["pallets"] == pytest.approx(1350.0)


def test_custom_books_per_carton(rate_card, sample_data):
    sample_data["packing"] = {"custom_books_per_carton": 50}
    result = _packing(rate_card, _estimation(sample_data))
    assert result["books_per_carton"] == 50
    assert result["cartons"] == 60


def test_pallet_toggle_drops_charge_not_count(rate_card, sample_data):
    """With pallets off there is no pallet charge and no pallet tare."""
    with_pallets = _packing(rate_card, _estimation(sample_data))
    sample_data["packing"] = {"use_pallets": False}
    without = _packing(rate_card, _estimation(sample_data))
    assert "pallets" not in without["breakdown"]
    assert without["total_weight_kg"] == pytest.approx(with_pallets["total_weight_kg"] - 25.0,
                                                       abs=0.01)


def test_packing_add_ons_by_basis(rate_card, sample_data):
    """Per pallet, per copy and per carton add-ons; a job rate overrides the card."""
    sample_data["packing"] = {"add_ons": {
        "stretch_wrap": {"enabled": True},
        "shrink_wrap": {"enabled": True},
        "inner_partition": {"enabled": True, "rate": 10},
        "polybag": {"enabled": False},
    }}
    breakdown = _packing(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["stretch_wrap"] == pytest.approx(250.0)
    assert breakdown["shrink_wrap"] == pytest.approx(1.20 * 3000)
    assert breakdown["inner_partition"] == pytest.approx(35 * 10)
    assert "polybag" not in breakdown


def test_unknown_carton_type_fails(rate_card, sample_data):
    sample_data["packing"] = {"carton_type": "9_ply"}
    with pytest.raises(CalculationError) as exc:
        _packing(rate_card, _estimation(sample_data))
    assert exc.value.section == "packing"


def test_containerization_counts_containers(rate_card, sample_data):
    sample_data["packing"] = {"containerization": True}
    result = _packing(rate_card, _estimation(sample_data))
    assert result["containers"] == 1
    assert result["volume_cbm"] > 0


# ============================================================
# Freight
# ============================================================

def test_domestic_road_uses_truck_minimum(rate_card, sample_estimation):
    """~0.5 t to Bombay: tonnage rate is below the truck rate."""
    result = _freight(rate_card, sample_estimation)
    assert result["breakdown"]["main_freight"] == pytest.approx(14500.0)
    assert result["breakdown"]["fuel_surcharge"] == pytest.approx(14500.0 * 0.15)
    assert result["total"] == pytest.approx(16675.0)


def test_road_by_weight_above_truck_minimum(rate_card, sample_estimation):
    """50000 copies (~8t) to Bombay: 3000 per ton beats the 14500 truck rate."""
    packing = _packing(rate_card, sample_estimation, 50000)
    result = _freight(rate_card, sample_estimation, 50000)
    expected = packing["total_weight_kg"] / 1000 * 3000
    assert expected > 14500
    assert result["breakdown"]["main_freight"] == pytest.approx(expected, abs=0.01)


def test_ex_works_has_no_main_freight(rate_card, sample_data):
    sample_data["delivery"]["delivery_type"] = "ex_works"
    result = _freight(rate_card, _estimation(sample_data))
    assert result["total"] == 0


def test_fob_stops_at_port(rate_card, sample_data):
    """Overseas FOB: inland haulage and despatch charges, no ocean freight."""
    sample_data["delivery"] = {"destination_id": "felix", "delivery_type": "fob",
                               "freight_mode": "sea"}
    breakdown = _freight(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["inland_haulage"] == pytest.approx(1500.0)
    assert "main_freight" not in breakdown
    assert breakdown["overseas_despatch"] == pytest.approx(3500 + 3000 + 1500 + 2500)


def test_cif_sea_by_pallet_and_container(rate_card, sample_data):
    sample_data["delivery"] = {"destination_id": "felix", "delivery_type": "cif",
                               "freight_mode": "sea"}
    breakdown = _freight(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["main_freight"] == pytest.approx(80 * 90.0)

    sample_data["packing"] = {"containerization": True}
    breakdown = _freight(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["main_freight"] == pytest.approx(1100 * 90.0)
    assert breakdown["inland_haulage"] == pytest.approx(19500.0)


def test_domestic_sea_priced_as_road(rate_card, sample_data):
    road = _freight(rate_card, _estimation(sample_data))
    sample_data["delivery"]["freight_mode"] = "sea"
    sea = _freight(rate_card, _estimation(sample_data))
    assert sea["total"] == road["total"]


def test_air_on_chargeable_weight(rate_card, sample_data):
    sample_data["delivery"] = {"destination_id": "ny", "delivery_type": "cif",
                               "freight_mode": "air"}
    estimation = _estimation(sample_data)
    packing = _packing(rate_card, estimation)
    chargeable = max(packing["total_weight_kg"], packing["volume_cbm"] * 167)
    breakdown = _freight(rate_card, estimation)["breakdown"]
    assert breakdown["main_freight"] == pytest.approx(chargeable * 600, abs=0.01)


def test_ddp_adds_customs_clearance(rate_card, sample_data):
    sample_data["delivery"] = {"destination_id": "ham", "delivery_type": "ddp",
                               "freight_mode": "sea"}
    breakdown = _freight(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["customs_clearance"] == pytest.approx(8500.0)


def test_advance_copies_by_air(rate_card, sample_data):
    """10 copies ≈ 1.6kg -> 2kg at the default air rate."""
    sample_data["delivery"]["advance_copies"] = 10
    breakdown = _freight(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["advance_copies"] == pytest.approx(2 * 700.0)

    sample_data["delivery"]["advance_copies_rate"] = 250
    breakdown = _freight(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["advance_copies"] == pytest.approx(2500.0)


def test_advance_copies_by_courier_when_not_air(rate_card, sample_data):
    """Not air-freighted: 2kg at Bombay's courier rate; no courier rate is a fault, not zero."""
    sample_data["delivery"].update(advance_copies=10, advance_copies_air_freight=False)
    breakdown = _freight(rate_card, _estimation(sample_data))["breakdown"]
    assert breakdown["advance_copies"] == pytest.approx(2 * 15.0)

    rate_card.get_destination("bom").courier_per_kg = 0
    with pytest.raises(CalculationError) as exc:
        _freight(rate_card, _estimation(sample_data))
    assert exc.value.section == "freight"


def test_insurance_on_declared_value(rate_card, sample_data):
    sample_data["delivery"].update(insurance=True, insurance_rate=0.5)
    result = _freight(rate_card, _estimation(sample_data), declared_value=200000.0)
    assert result["breakdown"]["insurance"] == pytest.approx(1000.0)


def test_unknown_destination_fails(rate_card, sample_data):
    sample_data["delivery"]["destination_id"] = "atlantis"
    with pytest.raises(CalculationError) as exc:
        _freight(rate_card, _estimation(sample_data))
    assert exc.value.section == "freight"
