"""Data models for the clinical decision support engines.

Patient and clinical contexts are immutable snapshots built per evaluation.
Recommendations and safety alerts are ephemeral engine output.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from common.formulary import MedicationRecord

from .errors import InvalidPatientContextError

MAX_EGFR = 200


class Gender(str, Enum):
    """Patient sex/gender category."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class AllergySeverity(str, Enum):
    """Recorded severity of a patient allergy."""
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    LIFE_THREATENING = "life_threatening"

    @classmethod
    def display_name(cls, value):
        """Get human-readable display name for an allergy severity."""
        return {
            cls.MILD: "Mild",
            cls.MODERATE: "Moderate",
            cls.SEVERE: "Severe",
            cls.LIFE_THREATENING: "Life-Threatening",
        }.get(value, value)


class HepaticFunction(str, Enum):
    """Ordinal hepatic impairment grade."""
    NORMAL = "normal"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class AlertType(str, Enum):
    """Hazard category of a safety alert."""
    ALLERGY = "allergy"
    DRUG_INTERACTION = "drug_interaction"
    CONTRAINDICATION = "contraindication"
    DUPLICATE_THERAPY = "duplicate_therapy"
    DOSE_RANGE = "dose_range"
    RENAL_ADJUSTMENT = "renal_adjustment"
    HEPATIC_ADJUSTMENT = "hepatic_adjustment"
    PREGNANCY_WARNING = "pregnancy_warning"
    LACTATION_WARNING = "lactation_warning"
    AGE_WARNING = "age_warning"

    @classmethod
    def display_name(cls, value):
        """Get human-readable display name for an alert type."""
        display_map = {
            cls.ALLERGY: "Allergy",
            cls.DRUG_INTERACTION: "Drug Interaction",
            cls.CONTRAINDICATION: "Contraindication",
            cls.DUPLICATE_THERAPY: "Duplicate Therapy",
            cls.DOSE_RANGE: "Dose Range",
            cls.RENAL_ADJUSTMENT: "Renal Adjustment",
            cls.HEPATIC_ADJUSTMENT: "Hepatic Adjustment",
            cls.PREGNANCY_WARNING: "Pregnancy Warning",
            cls.LACTATION_WARNING: "Lactation Warning",
            cls.AGE_WARNING: "Age Warning",
        }
        if value in display_map:
            return display_map[value]
        value = str(value.value if isinstance(value, Enum) else value or "")
        return value.replace("_", " ").title()


class AlertSeverity(str, Enum):
    """Alert severity. Only CRITICAL alerts affect whether therapy is safe."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Allergy:
    allergen: str
    severity: AllergySeverity = AllergySeverity.MODERATE


@dataclass(frozen=True)
class Condition:
    diagnosis_code: str | None
    diagnosis_name: str


@dataclass(frozen=True)
class CurrentMedication:
    medication_id: str
    generic_name: str


@dataclass(frozen=True)
class PatientContext:
    """Snapshot of a patient's clinical state for one evaluation.

    Age is derived from `birth_date` at `evaluation_date` and never stored.
    """
    patient_id: str
    birth_date: date
    gender: Gender = Gender.UNKNOWN
    evaluation_date: date = field(default_factory=date.today)

    weight_kg: float | None = None
    bsa_m2: float | None = None         # Precomputed by the caller

    is_pregnant: bool = False
    is_lactating: bool = False

    egfr: float | None = None           # mL/min
    hepatic_function: HepaticFunction | None = None

    allergies: tuple[Allergy, ...] = ()
    conditions: tuple[Condition, ...] = ()
    current_medications: tuple[CurrentMedication, ...] = ()

    def __post_init__(self):
        if self.birth_date > self.evaluation_date:
            raise InvalidPatientContextError(
                f"Birth date {self.birth_date} is after evaluation date {self.evaluation_date}"
            )
        if self.egfr is not None and not 0 <= self.egfr <= MAX_EGFR:
            raise InvalidPatientContextError(
                f"eGFR must be between 0 and {MAX_EGFR} mL/min, got {self.egfr}"
            )
        # Accept lists from callers but hold tuples
        for name in ("allergies", "conditions", "current_medications"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    @property
    def age(self) -> int:
        """Age in whole years at the evaluation date."""
        birthday_pending = (self.evaluation_date.month, self.evaluation_date.day) < (
            self.birth_date.month,
            self.birth_date.day,
        )
        return self.evaluation_date.year - self.birth_date.year - int(birthday_pending)

    @property
    def is_pediatric(self) -> bool:
        return self.age < 18

    @property
    def is_geriatric(self) -> bool:
        return self.age >= 65

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "patient_id": self.patient_id,
            "birth_date": self.birth_date.isoformat(),
            "evaluation_date": self.evaluation_date.isoformat(),
            "age": self.age,
            "gender": self.gender.value,
            "weight_kg": self.weight_kg,
            "bsa_m2": self.bsa_m2,
            "is_pregnant": self.is_pregnant,
            "is_lactating": self.is_lactating,
            "egfr": self.egfr,
            "hepatic_function": self.hepatic_function.value if self.hepatic_function else None,
            "allergies": [
                {"allergen": a.allergen, "severity": a.severity.value} for a in self.allergies
            ],
            "conditions": [
                {"diagnosis_code": c.diagnosis_code, "diagnosis_name": c.diagnosis_name}
                for c in self.conditions
            ],
            "current_medications": [
                {"medication_id": m.medication_id, "generic_name": m.generic_name}
                for m in self.current_medications
            ],
        }


@dataclass(frozen=True)
class CultureResults:
    organism: str
    sensitivities: tuple[str, ...] = ()
    resistances: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClinicalContext:
    """The diagnosis a recommendation is requested for."""
    diagnosis: str
    diagnosis_code: str | None = None
    severity: str | None = None          # e.g. "mild", "moderate", "severe"
    location: str | None = None          # "community" or "hospital"
    culture_results: CultureResults | None = None

    @property
    def is_severe(self) -> bool:
        return (self.severity or "").lower() == "severe"

    def to_dict(self) -> dict[str, Any]:
        culture = self.culture_results
        return {
            "diagnosis": self.diagnosis,
            "diagnosis_code": self.diagnosis_code,
            "severity": self.severity,
            "location": self.location,
            "culture_results": {
                "organism": culture.organism,
                "sensitivities": list(culture.sensitivities),
                "resistances": list(culture.resistances),
            } if culture else None,
        }


@dataclass(frozen=True)
class ProposedMedication:
    """A medication line item submitted for safety checking."""
    medication_id: str
    dose: str | None = None


@dataclass
class DrugRecommendation:
    """A recommended medication with patient-adjusted dosing."""
    medication: MedicationRecord
    dose: str
    frequency: str
    route: str
    duration: str
    rationale: str
    is_first_line: bool
    confidence: int                     # 0-100, heuristic
    alternative_reason: str | None = None
    guideline_source: str | None = None
    evidence_level: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "medication": self.medication.to_dict(),
            "dose": self.dose,
            "frequency": self.frequency,
            "route": self.route,
            "duration": self.duration,
            "rationale": self.rationale,
            "is_first_line": self.is_first_line,
            "confidence": self.confidence,
            "alternative_reason": self.alternative_reason,
            "guideline_source": self.guideline_source,
            "evidence_level": self.evidence_level,
        }


@dataclass
class RecommendationResult:
    primary: DrugRecommendation
    alternatives: list[DrugRecommendation] = field(default_factory=list)
    rules_applied: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "primary": self.primary.to_dict(),
            "alternatives": [a.to_dict() for a in self.alternatives],
            "rules_applied": list(self.rules_applied),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class SafetyAlert:
    """A single hazard finding.

    Only CRITICAL alerts with can_override=False make therapy non-overridable.
    """
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    can_override: bool = True
    clinical_rationale: str | None = None
    recommendation: str | None = None
    medication_names: tuple[str, ...] = ()

    @property
    def blocks_therapy(self) -> bool:
        return self.severity == AlertSeverity.CRITICAL and not self.can_override

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "can_override": self.can_override,
            "clinical_rationale": self.clinical_rationale,
            "recommendation": self.recommendation,
            "medication_names": list(self.medication_names),
        }


@dataclass
class SafetyCheckResult:
    """Aggregated outcome of all safety checks for one proposed therapy."""
    safe: bool
    alerts: list[SafetyAlert] = field(default_factory=list)
    critical_alerts: list[SafetyAlert] = field(default_factory=list)
    requires_override: bool = False

    @classmethod
    def from_alerts(cls, alerts: list[SafetyAlert]) -> "SafetyCheckResult":
        """Aggregate alerts into a result.

        safe is False when any alert is CRITICAL; requires_override is True
        when any CRITICAL alert cannot be overridden.
        """
        critical = [a for a in alerts if a.severity == AlertSeverity.CRITICAL]
        return cls(
            safe=not critical,
            alerts=list(alerts),
            critical_alerts=critical,
            requires_override=any(not a.can_override for a in critical),
        )

    def alerts_of_type(self, alert_type: AlertType) -> list[SafetyAlert]:
        return [a for a in self.alerts if a.alert_type == alert_type]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "safe": self.safe,
            "requires_override": self.requires_override,
            "alerts": [a.to_dict() for a in self.alerts],
            "critical_alerts": [a.to_dict() for a in self.critical_alerts],
        }


@dataclass
class CheckedRecommendation:
    """A recommendation together with the safety check of its primary choice."""
    recommendation: RecommendationResult
    safety_check: SafetyCheckResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommendation": self.recommendation.to_dict(),
            "safety_check": self.safety_check.to_dict(),
        }
