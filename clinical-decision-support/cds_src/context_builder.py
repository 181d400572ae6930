"""Builds engine contexts from patient and diagnosis records.

Records are plain mappings as loaded from JSON or a data-access layer:

    {
        "id": "patient-001",
        "date_of_birth": "1980-04-12",
        "gender": "FEMALE",
        "weight": 68.0,
        "bsa": 1.75,
        "is_pregnant": false,
        "is_lactating": false,
        "renal_function": 85,
        "hepatic_function": "Normal",
        "allergies": [{"allergen": "Penicillin", "severity": "SEVERE"}],
        "conditions": [{"diagnosis_code": "J45", "diagnosis_name": "Asthma"}],
        "prescriptions": [
            {"status": "ACTIVE",
             "items": [{"medication": {"id": "med-metformin", "generic_name": "Metformin"}}]}
        ]
    }
"""

import logging
from datetime import date, datetime
from typing import Any, Mapping

from .errors import PatientNotFoundError
from .models import (
    Allergy,
    AllergySeverity,
    ClinicalContext,
    Condition,
    CultureResults,
    CurrentMedication,
    Gender,
    HepaticFunction,
    PatientContext,
)

logger = logging.getLogger(__name__)

ACTIVE_PRESCRIPTION_STATUS = "active"


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_enum(enum_cls, value: Any, default=None):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    return enum_cls(str(value).strip().lower().replace("-", "_").replace(" ", "_"))


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _current_medications(record: Mapping[str, Any]) -> list[CurrentMedication]:
    medications = []

    for prescription in record.get("prescriptions", []):
        status = str(prescription.get("status", ACTIVE_PRESCRIPTION_STATUS)).lower()
        if status != ACTIVE_PRESCRIPTION_STATUS:
            continue
        for item in prescription.get("items", []):
            medication = item.get("medication", item)
            medications.append(
                CurrentMedication(
                    medication_id=medication.get("id") or medication["medication_id"],
                    generic_name=medication["generic_name"],
                )
            )

    for medication in record.get("current_medications", []):
        medications.append(
            CurrentMedication(
                medication_id=medication["medication_id"],
                generic_name=medication["generic_name"],
            )
        )

    return medications


def build_patient_context(
    record: Mapping[str, Any] | None,
    evaluation_date: date | None = None,
) -> PatientContext:
    """Build an immutable PatientContext from a patient record.

    Args:
        record: Patient record mapping, or None when the lookup found nothing
        evaluation_date: Date age is computed at (defaults to today)

    Returns:
        PatientContext

    Raises:
        PatientNotFoundError: record is None
        InvalidPatientContextError: record violates a context invariant
    """
    if record is None:
        raise PatientNotFoundError("Patient not found")

    birth_date = record.get("date_of_birth", record.get("birth_date"))
    if birth_date is None:
        raise ValueError(f"Patient {record.get('id')} has no date of birth")

    context = PatientContext(
        patient_id=str(record["id"]),
        birth_date=_parse_date(birth_date),
        evaluation_date=evaluation_date or date.today(),
        gender=_parse_enum(Gender, record.get("gender"), Gender.UNKNOWN),
        weight_kg=_optional_float(record.get("weight", record.get("weight_kg"))),
        bsa_m2=_optional_float(record.get("bsa", record.get("bsa_m2"))),
        is_pregnant=bool(record.get("is_pregnant", False)),
        is_lactating=bool(record.get("is_lactating", False)),
        egfr=_optional_float(record.get("renal_function", record.get("egfr"))),
        hepatic_function=_parse_enum(HepaticFunction, record.get("hepatic_function")),
        allergies=tuple(
            Allergy(
                allergen=a["allergen"],
                severity=_parse_enum(AllergySeverity, a.get("severity"), AllergySeverity.MODERATE),
            )
            for a in record.get("allergies", [])
        ),
        conditions=tuple(
            Condition(
                diagnosis_code=c.get("diagnosis_code"),
                diagnosis_name=c["diagnosis_name"],
            )
            for c in record.get("conditions", [])
        ),
        current_medications=tuple(_current_medications(record)),
    )

    logger.debug(
        f"Built context for patient {context.patient_id}: age {context.age}, "
        f"{len(context.allergies)} allergies, {len(context.current_medications)} current meds"
    )
    return context


def build_clinical_context(data: Mapping[str, Any]) -> ClinicalContext:
    """Build a ClinicalContext from a diagnosis mapping."""
    culture = data.get("culture_results")
    return ClinicalContext(
        diagnosis=data["diagnosis"],
        diagnosis_code=data.get("diagnosis_code"),
        severity=data.get("severity"),
        location=data.get("location"),
        culture_results=CultureResults(
            organism=culture["organism"],
            sensitivities=tuple(culture.get("sensitivities", [])),
            resistances=tuple(culture.get("resistances", [])),
        ) if culture else None,
    )
