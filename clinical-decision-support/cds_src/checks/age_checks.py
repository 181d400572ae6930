"""Age-specific checks for pediatric and geriatric patients.

Aspirin below age 12 is escalated to a non-overridable critical alert
(Reye's syndrome).
"""

from ..hazard_tables import (
    GERIATRIC_CAUTION,
    PEDIATRIC_AGE_OVERRIDES,
    PEDIATRIC_CAUTION,
    find_match,
)
from ..models import PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication


class AgeSpecificCheck(BaseSafetyCheck):
    """Flags drugs not recommended for the patient's age group."""

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []
        age = patient.age

        if patient.is_pediatric:
            for med in medications:
                match = find_match(med.record, PEDIATRIC_CAUTION)
                if not match:
                    continue
                keyword, template = match
                override = PEDIATRIC_AGE_OVERRIDES.get(keyword)
                if override and age < override[0]:
                    template = override[1]
                alerts.append(template.render([med.name], drug=med.name, age=age))

        if patient.is_geriatric:
            for med in medications:
                match = find_match(med.record, GERIATRIC_CAUTION)
                if match:
                    _, template = match
                    alerts.append(template.render([med.name], drug=med.name, age=age))

        return alerts
