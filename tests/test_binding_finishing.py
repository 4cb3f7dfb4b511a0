"""
Binding, spine and finishing calculator tests.

Tests:
1-4.   Spine (bulk factor, endleaves, boards)
5-11.  Binding cost (rate bands, multipliers, board, options, unknown method)
12-21. Finishing (area basis, copy basis, variants, jacket flags, unprinted sections,
       additional items)
"""

import pytest

from print_estimator.calculators.binding import BindingCalculator
from print_estimator.calculators.finishing import FinishingCalculator
from print_estimator.calculators.paper import PaperCalculator
from print_estimator.exceptions import CalculationError
from print_estimator.schemas import EstimationInput


def _estimation(data):
    return EstimationInput.model_validate(data)


def _finishing(rate_card, estimation, quantity=3000):
    spine = BindingCalculator(rate_card).spine(estimation)["spine_with_board"]
    context = {"spine_with_board": spine}
    context["paper"] = PaperCalculator(rate_card).calculate(estimation, quantity, context)
    return FinishingCalculator(rate_card).calculate(estimation, quantity, context), context


# ============================================================
# Spine
# ============================================================

def test_sample_spine_from_caliper(rate_card, sample_estimation):
    """128pp of 80gsm matt: 64 leaves × 0.08mm = 5.12mm."""
    spine = BindingCalculator(rate_card).spine(sample_estimation)
    assert spine["spine_thickness"] == pytest.approx(5.12)
    assert spine["spine_with_board"] == pytest.approx(5.12)
    assert spine["total_pages"] == 128


def test_bulky_paper_makes_thicker_spine(rate_card, sample_data):
    """Holmen Bulky at 2.3 bulk factor."""
    sample_data["text_sections"][0].update(paper_type="Holmen Bulky", paper_code="HB", gsm=70)
    spine = BindingCalculator(rate_card).spine(_estimation(sample_data))
    assert spine["spine_thickness"] == pytest.approx(64 * 0.07 * 2.3, abs=0.01)


def test_endleaves_add_to_spine(rate_card, sample_data):
    sample_data["endleaves"] = {"enabled": True, "pages": 8, "gsm": 140,
                                "paper_type": "White Uncoated", "paper_code": "map"}
    spine = BindingCalculator(rate_card).spine(_estimation(sample_data))
    assert spine["spine_thickness"] == pytest.approx(5.12 + 4 * 0.14 * 1.3, abs=0.01)
    assert spine["total_pages"] == 136


def test_case_binding_adds_two_boards(rate_card, sample_data):
    """Default board is 2.5mm: spine with board = spine + 5mm."""
    sample_data["binding"]["primary_binding"] = "case_binding"
    spine = BindingCalculator(rate_card).spine(_estimation(sample_data))
    assert spine["board_thickness"] == 2.5
    assert spine["spine_with_board"] == pytest.approx(10.12)


# ============================================================
# Binding cost
# ============================================================

def test_perfect_binding_per_signature(rate_card, sample_estimation):
    """3000 copies: (0.30 + 0.04) per 16pp × 8 signatures × 3000."""
    result = BindingCalculator(rate_card).calculate(sample_estimation, 3000, {})
    assert result["breakdown"]["Perfect Binding"] == pytest.approx(8160.0)
    assert result["total"] == pytest.approx(8160.0)


def test_binding_rate_falls_with_quantity(rate_card, sample_estimation):
    calc = BindingCalculator(rate_card)
    small = calc.calculate(sample_estimation, 3000, {})
    large = calc.calculate(sample_estimation, 5000, {})
    assert large["base_per_copy"] < small["base_per_copy"]


def test_covering_material_multiplier(rate_card, sample_data):
    sample_data["binding"]["covering_material_id"] = "cm_wibalin"
    result = BindingCalculator(rate_card).calculate(_estimation(sample_data), 3000, {})
    assert result["breakdown"]["Perfect Binding"] == pytest.approx(8160.0 * 1.25)


def test_case_binding_charges_board(rate_card, sample_data):
    """155×235mm boards: 20 per 31×41in sheet, 2 per book."""
    sample_data["binding"]["primary_binding"] = "case_binding"
    estimation = _estimation(sample_data)
    calc = BindingCalculator(rate_card)
    assert calc.board_cost_per_copy(estimation) == pytest.approx(2 / 20 * 26.64)
    result = calc.calculate(estimation, 3000, {})
    assert result["breakdown"]["Board"] == pytest.approx(2 / 20 * 26.64 * 3000, abs=0.01)


def test_binding_options_priced(rate_card, sample_data):
    """Per copy × count, setup, and percentage of base binding."""
    sample_data["binding"].update(pur_binding=True, gold_blocking_front=True, ribbon_markers=2)
    breakdown = BindingCalculator(rate_card).calculate(_estimation(sample_data), 3000, {})["breakdown"]
    assert breakdown["pur_binding"] == pytest.approx(8160.0 * 0.40)
    assert breakdown["gold_blocking_front"] == pytest.approx(0.30 * 3000 + 3500)
    assert breakdown["ribbon_markers"] == pytest.approx(0.32 * 3000 * 2)


def test_total_is_sum_of_breakdown(rate_card, sample_data):
    sample_data["binding"].update(primary_binding="case_binding", head_tail_band=True,
                                  case_material="cloth")
    result = BindingCalculator(rate_card).calculate(_estimation(sample_data), 3000, {})
    assert result["total"] == pytest.approx(sum(result["breakdown"].values()), abs=0.02)


def test_unknown_binding_method_fails(rate_card, sample_data):
    sample_data["binding"]["primary_binding"] = "glue_gun"
    with pytest.raises(CalculationError) as exc:
        BindingCalculator(rate_card).calculate(_estimation(sample_data), 3000, {})
    assert exc.value.section == "binding"


# ============================================================
# Finishing
# ============================================================

def test_no_operations_no_cost(rate_card, sample_estimation):
    result, _ = _finishing(rate_card, sample_estimation)
    assert result["total"] == 0
    assert result["breakdown"] == {}


def test_cover_lamination_on_press_sheet_area(rate_card, sample_data):
    """Area basis: gross cover sheets × sheet m² × rate."""
    sample_data["finishing"] = {"operations": {"cover_lamination": {"enabled": True,
                                                                     "variant": "matt"}}}
    result, context = _finishing(rate_card, _estimation(sample_data))
    cover = next(s for s in context["paper"]["sections"] if s["section"] == "cover")
    expected = cover["gross_sheets"] * cover["sheet_area_sqm"] * 5.85
    assert result["breakdown"]["cover_lamination"] == pytest.approx(expected, abs=0.01)


def test_lamination_variant_rate(rate_card, sample_data):
    """Velvet costs more per m² than matt."""
    sample_data["finishing"] = {"operations": {"cover_lamination": {"enabled": True,
                                                                     "variant": "matt"}}}
    matt, _ = _finishing(rate_card, _estimation(sample_data))
    sample_data["finishing"]["operations"]["cover_lamination"]["variant"] = "velvet"
    velvet, _ = _finishing(rate_card, _estimation(sample_data))
    assert velvet["total"] > matt["total"]


def test_die_cutting_variant_setup(rate_card, sample_data):
    """Copy basis with per-variant setup."""
    sample_data["finishing"] = {"operations": {"die_cutting": {"enabled": True,
                                                                "variant": "complex"}}}
    result, _ = _finishing(rate_card, _estimation(sample_data))
    assert result["breakdown"]["die_cutting"] == pytest.approx(15000 + 0.45 * 3000)


def test_disabled_operation_ignored(rate_card, sample_data):
    sample_data["finishing"] = {"operations": {"embossing": {"enabled": False}}}
    result, _ = _finishing(rate_card, _estimation(sample_data))
    assert "embossing" not in result["breakdown"]


def test_jacket_flags_become_operations(rate_card, sample_data):
    """Jacket lamination type and spot UV are priced on the jacket sheets."""
    sample_data["jacket"] = {"enabled": True, "colors_front": 4, "gsm": 130,
                             "paper_type": "Glossy Art Paper", "paper_code": "gloss",
                             "paper_size_label": "28x40", "lamination_type": "gloss",
                             "spot_uv": True}
    result, context = _finishing(rate_card, _estimation(sample_data))
    jacket = next(s for s in context["paper"]["sections"] if s["section"] == "jacket")
    area = jacket["gross_sheets"] * jacket["sheet_area_sqm"]
    assert result["breakdown"]["jacket_lamination"] == pytest.approx(area * 5.85, abs=0.01)
    assert result["breakdown"]["spot_uv_jacket"] == pytest.approx(2500 + area * 9.6, abs=0.01)


def test_area_operation_on_unprinted_section_fails(rate_card, sample_data):
    """Jacket lamination with the jacket switched off is a fault, not a flat-area charge."""
    sample_data["finishing"] = {"operations": {"jacket_lamination": {"enabled": True,
                                                                      "variant": "gloss"}}}
    with pytest.raises(CalculationError) as exc:
        _finishing(rate_card, _estimation(sample_data))
    assert exc.value.section == "jacket_lamination"


def test_jacket_flags_ignored_when_jacket_off(rate_card, sample_data):
    sample_data["jacket"] = {"enabled": False, "lamination_type": "gloss", "spot_uv": True}
    result, _ = _finishing(rate_card, _estimation(sample_data))
    assert result["breakdown"] == {}


def test_additional_finishing_items(rate_card, sample_data):
    sample_data["finishing"] = {"additional": [
        {"description": "Shrink sleeve", "setup_cost": 500, "cost_per_copy": 0.10},
    ]}
    result, _ = _finishing(rate_card, _estimation(sample_data))
    assert result["breakdown"]["Shrink sleeve"] == pytest.approx(800.0)


def test_unknown_finishing_operation_fails(rate_card, sample_data):
    sample_data["finishing"] = {"operations": {"holofoil_3d": {"enabled": True}}}
    with pytest.raises(CalculationError) as exc:
        _finishing(rate_card, _estimation(sample_data))
    assert exc.value.section == "holofoil_3d"
