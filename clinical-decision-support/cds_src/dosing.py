"""Patient-adjusted dosing for recommended medications.

A dose starts from the medication's nominal strength and passes through an
ordered pipeline of adjustments. Each adjustment returns a new draft; later
adjustments overwrite fields set by earlier ones, so severity escalation wins
over the renal frequency reduction when both apply.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable

from common.formulary import MedicationRecord

from .models import ClinicalContext, PatientContext

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = "BID"
DEFAULT_DURATION = "7 days"
RENAL_FREQUENCY = "QD"
SEVERE_IV_FREQUENCY = "Q6H"
SEVERE_FREQUENCY = "TID"
SEVERE_DURATION = "10-14 days"

PEDIATRIC_AGE = 18
RENAL_DOSING_EGFR = 50


@dataclass(frozen=True)
class DoseDraft:
    dose: str
    frequency: str
    route: str
    duration: str


DoseAdjustment = Callable[[DoseDraft, MedicationRecord, PatientContext, ClinicalContext], DoseDraft]


def base_dose(medication: MedicationRecord) -> DoseDraft:
    """Starting draft: nominal strength, twice daily, for seven days."""
    return DoseDraft(
        dose=medication.strength,
        frequency=DEFAULT_FREQUENCY,
        route=medication.route,
        duration=DEFAULT_DURATION,
    )


def adjust_pediatric(
    draft: DoseDraft,
    medication: MedicationRecord,
    patient: PatientContext,
    clinical: ClinicalContext,
) -> DoseDraft:
    """Weight-scaled placeholder for children with a known weight.

    Callers apply real pediatric dosing tables; this only flags the need.
    """
    if patient.age < PEDIATRIC_AGE and patient.weight_kg is not None:
        return dataclasses.replace(draft, dose=f"Based on {patient.weight_kg:g}kg")
    return draft


def adjust_renal(
    draft: DoseDraft,
    medication: MedicationRecord,
    patient: PatientContext,
    clinical: ClinicalContext,
) -> DoseDraft:
    """Once daily when eGFR is known and below 50 mL/min."""
    if patient.egfr is not None and patient.egfr < RENAL_DOSING_EGFR:
        return dataclasses.replace(draft, frequency=RENAL_FREQUENCY)
    return draft


def adjust_severity(
    draft: DoseDraft,
    medication: MedicationRecord,
    patient: PatientContext,
    clinical: ClinicalContext,
) -> DoseDraft:
    """Escalate frequency and extend duration for severe illness."""
    if not clinical.is_severe:
        return draft
    frequency = SEVERE_IV_FREQUENCY if (draft.route or "").upper() == "IV" else SEVERE_FREQUENCY
    return dataclasses.replace(draft, frequency=frequency, duration=SEVERE_DURATION)


# Applied in order; later adjustments overwrite earlier ones
DOSE_ADJUSTMENTS: tuple[DoseAdjustment, ...] = (
    adjust_pediatric,
    adjust_renal,
    adjust_severity,
)


def calculate_dose(
    medication: MedicationRecord,
    patient: PatientContext,
    clinical: ClinicalContext,
    adjustments: tuple[DoseAdjustment, ...] = DOSE_ADJUSTMENTS,
) -> DoseDraft:
    """Derive the dose for a medication.

    Args:
        medication: Formulary record being dosed
        patient: Patient context
        clinical: Clinical context (severity)
        adjustments: Ordered adjustment pipeline

    Returns:
        Final DoseDraft
    """
    draft = base_dose(medication)
    for adjust in adjustments:
        draft = adjust(draft, medication, patient, clinical)
    logger.debug(
        f"Dose for {medication.generic_name}: {draft.dose} {draft.frequency} "
        f"{draft.route} x {draft.duration}"
    )
    return draft
