"""Clinical decision support: guideline recommendations and medication safety checks."""

from .errors import (
    ClinicalDecisionSupportError,
    InvalidPatientContextError,
    MedicationNotFoundError,
    NoSuitableMedicationError,
    OverrideJustificationError,
    PatientNotFoundError,
    PrescriptionBlockedError,
)
from .models import (
    AlertSeverity,
    AlertType,
    Allergy,
    AllergySeverity,
    CheckedRecommendation,
    ClinicalContext,
    Condition,
    CultureResults,
    CurrentMedication,
    DrugRecommendation,
    Gender,
    HepaticFunction,
    PatientContext,
    ProposedMedication,
    RecommendationResult,
    SafetyAlert,
    SafetyCheckResult,
)
from .recommender import RulesEngine, recommend_with_safety_check
from .safety_engine import SafetyEngine

__all__ = [
    # Engines
    "RulesEngine",
    "SafetyEngine",
    "recommend_with_safety_check",
    # Models
    "AlertSeverity",
    "AlertType",
    "Allergy",
    "AllergySeverity",
    "CheckedRecommendation",
    "ClinicalContext",
    "Condition",
    "CultureResults",
    "CurrentMedication",
    "DrugRecommendation",
    "Gender",
    "HepaticFunction",
    "PatientContext",
    "ProposedMedication",
    "RecommendationResult",
    "SafetyAlert",
    "SafetyCheckResult",
    # Errors
    "ClinicalDecisionSupportError",
    "InvalidPatientContextError",
    "MedicationNotFoundError",
    "NoSuitableMedicationError",
    "OverrideJustificationError",
    "PatientNotFoundError",
    "PrescriptionBlockedError",
]
