"""Override policy for safety check results.

A result with any non-overridable critical alert is blocked outright. Any
other critical or warning alert may be bypassed only with a written
justification, and every accepted override is written to the audit log.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from .errors import OverrideJustificationError, PrescriptionBlockedError
from .models import AlertSeverity, SafetyAlert, SafetyCheckResult

logger = logging.getLogger(__name__)

# Audit trail of accepted overrides
audit_logger = logging.getLogger('cds_src.audit')

JUSTIFIABLE_SEVERITIES = (AlertSeverity.CRITICAL, AlertSeverity.WARNING)


class OverrideDecision(str, Enum):
    """What the prescriber may do with a checked therapy."""
    PROCEED = "proceed"
    REQUIRES_JUSTIFICATION = "requires_justification"
    BLOCKED = "blocked"

    @classmethod
    def display_name(cls, value):
        return {
            cls.PROCEED: "Proceed",
            cls.REQUIRES_JUSTIFICATION: "Requires Justification",
            cls.BLOCKED: "Blocked",
        }.get(value, value)


@dataclass
class OverrideReview:
    decision: OverrideDecision
    blocking_alerts: list[SafetyAlert] = field(default_factory=list)
    needs_justification: list[SafetyAlert] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.value,
            "blocking_alerts": [a.to_dict() for a in self.blocking_alerts],
            "needs_justification": [a.to_dict() for a in self.needs_justification],
        }


@dataclass
class AlertOverride:
    """A recorded bypass of one alert."""
    alert: SafetyAlert
    justification: str
    overridden_by: str
    overridden_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alert": self.alert.to_dict(),
            "justification": self.justification,
            "overridden_by": self.overridden_by,
            "overridden_at": self.overridden_at.isoformat(),
        }


def review_safety_result(result: SafetyCheckResult) -> OverrideReview:
    """Decide whether a checked therapy can proceed.

    Args:
        result: Aggregated safety check result

    Returns:
        OverrideReview with the decision and the alerts driving it
    """
    blocking = [a for a in result.alerts if a.blocks_therapy]
    justifiable = [
        a for a in result.alerts
        if a.severity in JUSTIFIABLE_SEVERITIES and not a.blocks_therapy
    ]

    if result.requires_override:
        decision = OverrideDecision.BLOCKED
    elif justifiable:
        decision = OverrideDecision.REQUIRES_JUSTIFICATION
    else:
        decision = OverrideDecision.PROCEED

    return OverrideReview(
        decision=decision,
        blocking_alerts=blocking,
        needs_justification=justifiable,
    )


def apply_overrides(
    review: OverrideReview,
    justifications: Mapping[SafetyAlert, str],
    overridden_by: str,
) -> list[AlertOverride]:
    """Record overrides for every alert that needs a justification.

    Args:
        review: Result of review_safety_result
        justifications: Free-text justification per alert
        overridden_by: Identifier of the prescriber taking responsibility

    Returns:
        One AlertOverride per alert needing justification

    Raises:
        PrescriptionBlockedError: The therapy has non-overridable alerts
        OverrideJustificationError: An alert lacks a non-blank justification
    """
    if review.decision == OverrideDecision.BLOCKED:
        raise PrescriptionBlockedError(review.blocking_alerts)

    missing = [
        alert for alert in review.needs_justification
        if not (justifications.get(alert) or "").strip()
    ]
    if missing:
        raise OverrideJustificationError(missing)

    overrides = [
        AlertOverride(
            alert=alert,
            justification=justifications[alert].strip(),
            overridden_by=overridden_by,
        )
        for alert in review.needs_justification
    ]

    for override in overrides:
        audit_logger.info(
            f"OVERRIDE by={override.overridden_by} "
            f"type={override.alert.alert_type.value} "
            f"severity={override.alert.severity.value} "
            f"message={override.alert.message!r} "
            f"justification={override.justification!r}"
        )

    if overrides:
        logger.info(f"Recorded {len(overrides)} alert override(s) by {overridden_by}")
    return overrides
