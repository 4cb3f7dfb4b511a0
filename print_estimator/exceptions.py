"""
Custom exceptions for the estimation engine.

Exception Hierarchy:
    EstimationError (base)
    ├── EstimationValidationError - input failed business validation (user-correctable)
    ├── CalculationError          - fault during calculation (defect, not user error)
    └── RateCardError             - reference data missing or malformed

Usage:
    Validation errors carry the full list of messages from validate_estimation().
    Calculation errors carry the section and quantity tier they occurred in.
    Neither is ever swallowed: a fault surfaces to the caller unchanged.
"""

from typing import Any, Dict, List, Optional


class EstimationError(Exception):
    """
    Base exception for all estimation errors.

    Callers can catch every engine-specific error with a single except clause.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class EstimationValidationError(EstimationError):
    """
    The input did not pass validate_estimation().

    Raised by calculate_full_estimation() instead of computing on a bad input.
    """

    def __init__(self, errors: List[str]):
        message = f"Estimation input is invalid ({len(errors)} error(s))"
        super().__init__(message, {"errors": list(errors)})
        self.errors = list(errors)


class CalculationError(EstimationError):
    """
    Unexpected fault while calculating: missing rate lookup, malformed
    reference data, zero denominator.

    section and quantity say where it happened; the orchestrator fills in
    quantity when a calculator raises without it.
    """

    def __init__(self, message: str, section: Optional[str] = None,
                 quantity: Optional[int] = None):
        self.section = section
        self.quantity = quantity
        details = {}
        if section is not None:
            details["section"] = section
        if quantity is not None:
            details["quantity"] = quantity
        super().__init__(message, details)

    def with_quantity(self, quantity: int) -> "CalculationError":
        """Copy of this error tagged with the quantity tier."""
        return CalculationError(self.message, section=self.section, quantity=quantity)


class RateCardError(EstimationError):
    """Rate card file could not be read or failed validation."""
    pass
