"""Pregnancy and lactation checks."""

from ..hazard_tables import (
    LACTATION_CAUTION,
    PREGNANCY_CAUTION,
    PREGNANCY_CONTRAINDICATED,
    find_match,
)
from ..models import PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication


class PregnancyLactationCheck(BaseSafetyCheck):
    """Flags teratogens and cautioned drugs in pregnancy and breastfeeding."""

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []

        if patient.is_pregnant:
            for med in medications:
                # Contraindication takes precedence over caution
                match = (
                    find_match(med.record, PREGNANCY_CONTRAINDICATED)
                    or find_match(med.record, PREGNANCY_CAUTION)
                )
                if match:
                    _, template = match
                    alerts.append(template.render([med.name], drug=med.name))

        if patient.is_lactating:
            for med in medications:
                match = find_match(med.record, LACTATION_CAUTION)
                if match:
                    _, template = match
                    alerts.append(template.render([med.name], drug=med.name))

        return alerts
