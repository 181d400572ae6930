"""Condition-based contraindications. Always critical and never overridable."""

from ..hazard_tables import CONTRAINDICATIONS, find_match
from ..models import PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication


class ContraindicationCheck(BaseSafetyCheck):
    """Flags medications contraindicated by the patient's active conditions."""

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []

        for condition in patient.conditions:
            condition_name = condition.diagnosis_name.lower()
            for condition_key, table in CONTRAINDICATIONS.items():
                if condition_key not in condition_name:
                    continue
                for med in medications:
                    match = find_match(med.record, table)
                    if match:
                        _, template = match
                        alerts.append(
                            template.render(
                                [med.name], drug=med.name, condition=condition.diagnosis_name
                            )
                        )

        return alerts
