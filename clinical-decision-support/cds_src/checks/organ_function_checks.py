"""Renal and hepatic function checks."""

from ..hazard_tables import (
    HEPATIC_IMPAIRMENT,
    RENAL_IMPAIRMENT,
    SEVERE_RENAL_IMPAIRMENT,
    find_match,
)
from ..models import HepaticFunction, PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication

RENAL_IMPAIRMENT_EGFR = 60
SEVERE_RENAL_IMPAIRMENT_EGFR = 30

HEPATIC_IMPAIRMENT_GRADES = (HepaticFunction.MODERATE, HepaticFunction.SEVERE)


class OrganFunctionCheck(BaseSafetyCheck):
    """Flags renally-excreted and hepatically-metabolized drugs in impairment."""

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []

        egfr = patient.egfr
        if egfr is not None and egfr < RENAL_IMPAIRMENT_EGFR:
            table = SEVERE_RENAL_IMPAIRMENT if egfr < SEVERE_RENAL_IMPAIRMENT_EGFR else RENAL_IMPAIRMENT
            for med in medications:
                match = find_match(med.record, table)
                if match:
                    _, template = match
                    alerts.append(template.render([med.name], drug=med.name, egfr=f"{egfr:g}"))

        if patient.hepatic_function in HEPATIC_IMPAIRMENT_GRADES:
            for med in medications:
                match = find_match(med.record, HEPATIC_IMPAIRMENT)
                if match:
                    _, template = match
                    alerts.append(
                        template.render(
                            [med.name], drug=med.name, hepatic=patient.hepatic_function.value
                        )
                    )

        return alerts
