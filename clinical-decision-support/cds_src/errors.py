"""Exceptions raised by the clinical decision support engines."""


class ClinicalDecisionSupportError(Exception):
    """Base class for engine errors."""


class PatientNotFoundError(ClinicalDecisionSupportError):
    """No patient record exists for the requested patient."""


class MedicationNotFoundError(ClinicalDecisionSupportError):
    """A rule references a medication missing from the formulary."""

    def __init__(self, medication_id: str, rule_name: str | None = None):
        self.medication_id = medication_id
        self.rule_name = rule_name
        message = f"Medication not found: {medication_id}"
        if rule_name:
            message += f" (referenced by rule '{rule_name}')"
        super().__init__(message)


class NoSuitableMedicationError(ClinicalDecisionSupportError):
    """Neither a matching rule nor the Access fallback produced a medication."""


class InvalidPatientContextError(ClinicalDecisionSupportError, ValueError):
    """Patient context violates an invariant (negative age, eGFR out of range)."""


class PrescriptionBlockedError(ClinicalDecisionSupportError):
    """Proposed therapy has a critical alert that cannot be overridden."""

    def __init__(self, alerts):
        self.alerts = list(alerts)
        names = ", ".join(a.message for a in self.alerts)
        super().__init__(f"Prescription blocked by non-overridable alert(s): {names}")


class OverrideJustificationError(ClinicalDecisionSupportError):
    """An overridable alert was bypassed without a justification."""

    def __init__(self, alerts):
        self.alerts = list(alerts)
        super().__init__(
            f"Justification required for {len(self.alerts)} alert(s) before proceeding"
        )
