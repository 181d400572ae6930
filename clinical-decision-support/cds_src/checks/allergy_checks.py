"""Allergy checks: direct allergen matches and cross-sensitivity.

A direct match and a cross-sensitivity match for the same allergy and drug
produce two separate alerts.
"""

import logging

from common.formulary import MedicationRecord

from ..hazard_tables import (
    CROSS_SENSITIVITY,
    DIRECT_ALLERGY_CRITICAL,
    DIRECT_ALLERGY_LIFE_THREATENING,
    DIRECT_ALLERGY_WARNING,
    AlertTemplate,
    find_match,
)
from ..models import Allergy, AllergySeverity, PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication

logger = logging.getLogger(__name__)


def is_direct_match(allergen: str, medication: MedicationRecord) -> bool:
    """Allergen and medication names contain one another.

    The allergen is also matched against the brand name and therapeutic
    class, so a "Penicillin" allergy matches amoxicillin (class Penicillins).
    """
    allergen = allergen.strip().lower()
    if not allergen:
        return False

    for name in (medication.generic_name, medication.brand_name):
        if name and (allergen in name.lower() or name.lower() in allergen):
            return True

    therapeutic_class = (medication.therapeutic_class or "").lower()
    return bool(therapeutic_class) and allergen in therapeutic_class


def _direct_template(severity: AllergySeverity) -> AlertTemplate:
    if severity == AllergySeverity.LIFE_THREATENING:
        return DIRECT_ALLERGY_LIFE_THREATENING
    if severity == AllergySeverity.SEVERE:
        return DIRECT_ALLERGY_CRITICAL
    return DIRECT_ALLERGY_WARNING


class AllergyCheck(BaseSafetyCheck):
    """Flags proposed medications the patient is, or may be, allergic to."""

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []
        if not patient.allergies:
            return alerts

        for med in medications:
            for allergy in patient.allergies:
                alerts.extend(self._check_allergy(allergy, med))
        return alerts

    def _check_allergy(self, allergy: Allergy, med: ResolvedMedication) -> list[SafetyAlert]:
        alerts = []
        values = {
            "drug": med.name,
            "allergen": allergy.allergen,
            "severity": AllergySeverity.display_name(allergy.severity).lower(),
        }

        if is_direct_match(allergy.allergen, med.record):
            alerts.append(_direct_template(allergy.severity).render([med.name], **values))

        allergen = allergy.allergen.lower()
        for allergen_key, related in CROSS_SENSITIVITY.items():
            if allergen_key not in allergen:
                continue
            match = find_match(med.record, related)
            if match:
                _, template = match
                alerts.append(template.render([med.name], **values))
                break

        return alerts
