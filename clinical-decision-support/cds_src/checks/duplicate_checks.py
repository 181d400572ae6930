"""Duplicate therapy checks.

Flags a proposed medication the patient already takes, and any therapeutic
class represented by more than one distinct medication across the proposed
and current lists.
"""

import logging

from ..hazard_tables import DUPLICATE_CLASS, DUPLICATE_MEDICATION
from ..models import PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication

logger = logging.getLogger(__name__)


class DuplicateTherapyCheck(BaseSafetyCheck):
    """Flags same-drug and same-class duplication."""

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = self._same_medication(patient, medications)
        alerts.extend(self._same_class(patient, medications))
        return alerts

    def _same_medication(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []
        for med in medications:
            for current in patient.current_medications:
                same_id = med.record.id == current.medication_id
                same_name = med.name.lower() == current.generic_name.lower()
                if same_id or same_name:
                    alerts.append(DUPLICATE_MEDICATION.render([med.name], drug=med.name))
        return alerts

    def _same_class(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        # class (lowercase) -> {medication id: (generic name, class as written)}
        classes: dict[str, dict[str, tuple[str, str]]] = {}

        def add(medication_id: str, generic_name: str, therapeutic_class: str | None):
            if not therapeutic_class:
                return
            members = classes.setdefault(therapeutic_class.lower(), {})
            members.setdefault(medication_id, (generic_name, therapeutic_class))

        for med in medications:
            add(med.record.id, med.name, med.record.therapeutic_class)

        for current in patient.current_medications:
            record = self.catalog.find_medication_by_id(current.medication_id)
            if record is None:
                logger.debug(f"Current medication {current.medication_id} not in formulary")
                continue
            add(record.id, current.generic_name, record.therapeutic_class)

        alerts = []
        for key in sorted(classes):
            members = classes[key]
            if len(members) < 2:
                continue
            ordered = [members[med_id] for med_id in sorted(members)]
            display_class = ordered[0][1]
            alerts.append(
                DUPLICATE_CLASS.render(
                    sorted(name for name, _ in ordered), therapeutic_class=display_class
                )
            )
        return alerts
