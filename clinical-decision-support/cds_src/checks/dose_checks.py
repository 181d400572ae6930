"""Dose range checks."""

import logging
import re

from common.formulary import CatalogLookup

from ..hazard_tables import PEDIATRIC_WEIGHT_REQUIRED, UNUSUALLY_HIGH_DOSE
from ..models import PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication

logger = logging.getLogger(__name__)

LEADING_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")


def leading_dose_value(dose: str | None) -> float | None:
    """First number in a dose string, e.g. "1,000 mg" -> 1000.0."""
    if not dose:
        return None
    match = LEADING_NUMBER.search(dose)
    if not match:
        return None
    return float(match.group(0).replace(",", ""))


class DoseRangeCheck(BaseSafetyCheck):
    """Flags missing pediatric weight and unusually high doses."""

    def __init__(self, catalog: CatalogLookup, high_dose_threshold: float):
        super().__init__(catalog)
        self.high_dose_threshold = high_dose_threshold

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []
        if not medications:
            return alerts

        # One alert per check, not per medication
        if patient.is_pediatric and patient.weight_kg is None:
            alerts.append(
                PEDIATRIC_WEIGHT_REQUIRED.render(sorted({med.name for med in medications}))
            )

        for med in medications:
            value = leading_dose_value(med.proposed.dose)
            if value is not None and value > self.high_dose_threshold:
                alerts.append(
                    UNUSUALLY_HIGH_DOSE.render([med.name], drug=med.name, dose=med.proposed.dose)
                )

        return alerts
