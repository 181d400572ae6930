"""Safety engine: validates proposed medications against a patient.

Runs eight independent hazard checks in fixed order and aggregates their
alerts into a SafetyCheckResult. The engine holds no per-call state, so any
number of checks may run concurrently against the same catalog.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from common.formulary import CatalogLookup, MedicationRecord

from .config import config
from .models import PatientContext, ProposedMedication, SafetyAlert, SafetyCheckResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedMedication:
    """A proposed line item paired with its formulary record."""
    proposed: ProposedMedication
    record: MedicationRecord

    @property
    def name(self) -> str:
        return self.record.generic_name


class BaseSafetyCheck:
    """Base class for hazard checks."""

    def __init__(self, catalog: CatalogLookup):
        self.catalog = catalog

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        """Return safety alerts for the proposed medications.

        Args:
            patient: Patient context
            medications: Proposed medications resolved against the catalog

        Returns:
            List of SafetyAlert objects
        """
        raise NotImplementedError


class SafetyEngine:
    """Evaluates proposed medications against all hazard checks."""

    def __init__(self, catalog: CatalogLookup, high_dose_threshold: float | None = None):
        """Initialize safety engine.

        Args:
            catalog: Formulary lookup used to resolve medications and interactions
            high_dose_threshold: Leading dose value above which a dose is flagged
                as unusually high (defaults to CDS_HIGH_DOSE_THRESHOLD)
        """
        self.catalog = catalog
        self.high_dose_threshold = (
            high_dose_threshold if high_dose_threshold is not None
            else config.HIGH_DOSE_THRESHOLD
        )
        self.checks: list[BaseSafetyCheck] = []

        self._register_checks()

    def _register_checks(self) -> None:
        """Register all hazard checks in reporting order."""
        from .checks.allergy_checks import AllergyCheck
        from .checks.interaction_checks import DrugInteractionCheck
        from .checks.contraindication_checks import ContraindicationCheck
        from .checks.duplicate_checks import DuplicateTherapyCheck
        from .checks.dose_checks import DoseRangeCheck
        from .checks.organ_function_checks import OrganFunctionCheck
        from .checks.pregnancy_checks import PregnancyLactationCheck
        from .checks.age_checks import AgeSpecificCheck

        self.checks = [
            AllergyCheck(self.catalog),
            DrugInteractionCheck(self.catalog),
            ContraindicationCheck(self.catalog),
            DuplicateTherapyCheck(self.catalog),
            DoseRangeCheck(self.catalog, self.high_dose_threshold),
            OrganFunctionCheck(self.catalog),
            PregnancyLactationCheck(self.catalog),
            AgeSpecificCheck(self.catalog),
        ]

    def perform_safety_check(
        self, patient: PatientContext, proposed: Iterable[ProposedMedication]
    ) -> SafetyCheckResult:
        """Run every check and aggregate the alerts.

        Proposed entries whose medication cannot be found are skipped; the
        remaining entries are still checked by all eight checks. Catalog
        lookup failures propagate to the caller.

        Args:
            patient: Patient context
            proposed: Proposed medications with doses

        Returns:
            SafetyCheckResult
        """
        medications = self._resolve(patient, proposed)

        alerts: list[SafetyAlert] = []
        for check in self.checks:
            check_alerts = check.evaluate(patient, medications)
            logger.debug(f"{check.__class__.__name__}: {len(check_alerts)} alert(s)")
            alerts.extend(check_alerts)

        result = SafetyCheckResult.from_alerts(alerts)
        logger.info(
            f"Patient {patient.patient_id}: {len(result.alerts)} alert(s), "
            f"{len(result.critical_alerts)} critical, requires_override={result.requires_override}"
        )
        return result

    def _resolve(
        self, patient: PatientContext, proposed: Iterable[ProposedMedication]
    ) -> list[ResolvedMedication]:
        resolved = []
        for item in proposed:
            record = self.catalog.find_medication_by_id(item.medication_id)
            if record is None:
                logger.warning(
                    f"Patient {patient.patient_id}: proposed medication "
                    f"{item.medication_id} not in formulary, skipping"
                )
                continue
            resolved.append(ResolvedMedication(proposed=item, record=record))
        return resolved
