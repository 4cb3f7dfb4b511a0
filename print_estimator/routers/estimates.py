from fastapi import APIRouter, Depends, HTTPException
from typing import List

from ..estimator import (
    calculate_full_estimation,
    normalize_estimation_for_calculation,
    validate_estimation,
)
from ..exceptions import CalculationError, EstimationValidationError
from ..rate_card import RateCard, get_active_rate_card
from ..schemas import EstimationInput, EstimationResult, ValidationResponse

router = APIRouter(prefix="/estimates", tags=["estimates"])


def _collect_errors(estimation: EstimationInput, normalized: EstimationInput) -> list[str]:
    """
    Errors on the input as submitted (so a 140% margin is reported, not
    clamped away), then on the normalized input (fractional pages floor to 0).
    """
    return validate_estimation(estimation) or validate_estimation(normalized)


@router.post("/normalize", response_model=EstimationInput)
def normalize_estimate(estimation: EstimationInput):
    return normalize_estimation_for_calculation(estimation)


@router.post("/validate", response_model=ValidationResponse)
def validate_estimate(estimation: EstimationInput):
    errors = _collect_errors(estimation, normalize_estimation_for_calculation(estimation))
    return ValidationResponse(valid=not errors, errors=errors)


@router.post("/calculate", response_model=List[EstimationResult])
def calculate_estimate(estimation: EstimationInput,
                       rate_card: RateCard = Depends(get_active_rate_card)):
    """
    Normalize -> validate -> calculate.
    422 with the error list when validation fails; 500 with section and
    quantity context on a calculation fault.
    """
    normalized = normalize_estimation_for_calculation(estimation)
    errors = _collect_errors(estimation, normalized)
    if errors:
        raise HTTPException(status_code=422, detail={"errors": errors})
    try:
        return calculate_full_estimation(normalized, rate_card)
    except EstimationValidationError as e:
        raise HTTPException(status_code=422, detail={"errors": e.errors})
    except CalculationError as e:
        raise HTTPException(status_code=500, detail={"message": e.message, **e.details})
