"""Drug-drug interaction checks.

Looks up every unordered pair of proposed medications exactly once, then
every (proposed, current) pair.
"""

import logging
from itertools import combinations

from common.formulary import DrugInteractionRecord, InteractionSeverity

from ..models import AlertSeverity, AlertType, PatientContext, SafetyAlert
from ..safety_engine import BaseSafetyCheck, ResolvedMedication

logger = logging.getLogger(__name__)


def map_interaction_severity(severity: InteractionSeverity) -> AlertSeverity:
    if severity in (InteractionSeverity.CONTRAINDICATED, InteractionSeverity.MAJOR):
        return AlertSeverity.CRITICAL
    if severity == InteractionSeverity.MODERATE:
        return AlertSeverity.WARNING
    return AlertSeverity.INFO


def _interaction_alert(
    interaction: DrugInteractionRecord,
    message: str,
    medication_names: tuple[str, ...],
    default_recommendation: str,
) -> SafetyAlert:
    return SafetyAlert(
        alert_type=AlertType.DRUG_INTERACTION,
        severity=map_interaction_severity(interaction.severity),
        message=message,
        can_override=interaction.severity != InteractionSeverity.CONTRAINDICATED,
        clinical_rationale=interaction.description,
        recommendation=interaction.management or default_recommendation,
        medication_names=medication_names,
    )


class DrugInteractionCheck(BaseSafetyCheck):
    """Flags known interactions among proposed and current medications."""

    def evaluate(
        self, patient: PatientContext, medications: list[ResolvedMedication]
    ) -> list[SafetyAlert]:
        alerts = []

        # Between proposed medications
        for first, second in combinations(medications, 2):
            interaction = self.catalog.find_interaction(first.record.id, second.record.id)
            if interaction is None:
                continue

            # Name the pair in record order so input order does not matter
            names = {first.record.id: first.name, second.record.id: second.name}
            name_a = names.get(interaction.medication_a_id, first.name)
            name_b = names.get(interaction.medication_b_id, second.name)
            alerts.append(
                _interaction_alert(
                    interaction,
                    message=f"Interaction between {name_a} and {name_b}",
                    medication_names=(name_a, name_b),
                    default_recommendation="Monitor closely",
                )
            )

        # With current medications
        for med in medications:
            for current in patient.current_medications:
                interaction = self.catalog.find_interaction(med.record.id, current.medication_id)
                if interaction is None:
                    continue
                alerts.append(
                    _interaction_alert(
                        interaction,
                        message=(
                            f"Interaction between {med.name} and current medication: "
                            f"{current.generic_name}"
                        ),
                        medication_names=(med.name, current.generic_name),
                        default_recommendation="Consider alternative or adjust dosing",
                    )
                )

        return alerts
