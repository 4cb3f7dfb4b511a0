"""
Shared test fixtures — test client, sample job, rate card.
"""

import pytest
from fastapi.testclient import TestClient

from print_estimator.main import app
from print_estimator.rate_card import build_default_rate_card
from print_estimator.schemas import EstimationInput


def sample_job_data() -> dict:
    """
    The "Sample Book" job: 152×229mm, 3000 copies, 128pp 80gsm matt text
    printed 4/4, 4pp 300gsm card cover printed 4/0, perfect bound,
    road freight to Bombay, 25% margin, no tax.
    """
    return {
        "job_title": "Sample Book",
        "customer_name": "Acme Publishing",
        "book_spec": {"width_mm": 152, "height_mm": 229},
        "quantities": [3000],
        "text_sections": [{
            "enabled": True,
            "pages": 128,
            "colors_front": 4,
            "colors_back": 4,
            "paper_type": "Matt Art Paper",
            "paper_code": "matt",
            "gsm": 80,
            "paper_size_label": "23x36",
        }],
        "cover": {
            "enabled": True,
            "pages": 4,
            "colors_front": 4,
            "colors_back": 0,
            "paper_type": "Art Card",
            "paper_code": "Art card",
            "gsm": 300,
            "paper_size_label": "23x36",
        },
        "binding": {"primary_binding": "perfect_binding"},
        "delivery": {"destination_id": "bom", "freight_mode": "road"},
        "pricing": {"margin_percent": 25, "tax_rate": 0},
    }


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def sample_data():
    """Fresh, mutable copy of the sample job as a request body."""
    return sample_job_data()


@pytest.fixture
def sample_estimation(sample_data):
    return EstimationInput.model_validate(sample_data)


@pytest.fixture
def rate_card():
    """A private rate card that tests may modify freely."""
    return build_default_rate_card().model_copy(deep=True)
