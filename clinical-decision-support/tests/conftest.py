"""Shared fixtures for clinical decision support tests."""

from datetime import date

import pytest

from common.clinical_rules import load_default_rules
from common.formulary import load_default_catalog
from cds_src.models import Gender, PatientContext
from cds_src.recommender import RulesEngine
from cds_src.safety_engine import SafetyEngine

EVALUATION_DATE = date(2025, 6, 15)


def create_test_patient(age: int = 40, **kwargs) -> PatientContext:
    """Create a test patient of the given age at EVALUATION_DATE."""
    kwargs.setdefault("patient_id", "TEST001")
    kwargs.setdefault("gender", Gender.FEMALE)
    return PatientContext(
        birth_date=date(EVALUATION_DATE.year - age, 1, 1),
        evaluation_date=EVALUATION_DATE,
        **kwargs,
    )


@pytest.fixture
def make_patient():
    return create_test_patient


@pytest.fixture
def catalog():
    return load_default_catalog()


@pytest.fixture
def rules():
    return load_default_rules()


@pytest.fixture
def rules_engine(catalog, rules):
    return RulesEngine(catalog, rules, fallback_candidates=5)


@pytest.fixture
def safety_engine(catalog):
    return SafetyEngine(catalog, high_dose_threshold=5000)
