"""Tests for the alert override policy."""

import logging

import pytest

from cds_src.errors import OverrideJustificationError, PrescriptionBlockedError
from cds_src.models import AlertSeverity, AlertType, SafetyAlert, SafetyCheckResult
from cds_src.override_policy import (
    OverrideDecision,
    apply_overrides,
    review_safety_result,
)

INFO = SafetyAlert(AlertType.AGE_WARNING, AlertSeverity.INFO, "Use Diazepam with caution")
WARNING = SafetyAlert(AlertType.DUPLICATE_THERAPY, AlertSeverity.WARNING, "Duplicate medication")
CRITICAL = SafetyAlert(AlertType.ALLERGY, AlertSeverity.CRITICAL, "Documented severe allergy")
BLOCKING = SafetyAlert(
    AlertType.CONTRAINDICATION, AlertSeverity.CRITICAL, "Contraindicated", can_override=False
)


def review(*alerts):
    return review_safety_result(SafetyCheckResult.from_alerts(list(alerts)))


def test_info_alerts_proceed():
    result = review(INFO)

    assert result.decision == OverrideDecision.PROCEED
    assert result.needs_justification == []
    assert apply_overrides(result, {}, "dr.smith") == []


def test_overridable_alerts_require_justification():
    result = review(INFO, WARNING, CRITICAL)

    assert result.decision == OverrideDecision.REQUIRES_JUSTIFICATION
    assert result.needs_justification == [WARNING, CRITICAL]
    assert result.blocking_alerts == []


def test_non_overridable_alert_blocks():
    """Test one blocking alert blocks therapy regardless of other alerts."""
    result = review(WARNING, BLOCKING)

    assert result.decision == OverrideDecision.BLOCKED
    assert result.blocking_alerts == [BLOCKING]

    with pytest.raises(PrescriptionBlockedError) as exc_info:
        apply_overrides(result, {WARNING: "Reviewed", BLOCKING: "Reviewed"}, "dr.smith")
    assert exc_info.value.alerts == [BLOCKING]


def test_missing_justification_rejected():
    result = review(WARNING, CRITICAL)

    with pytest.raises(OverrideJustificationError) as exc_info:
        apply_overrides(result, {WARNING: "Patient tolerated before", CRITICAL: "   "}, "dr.smith")
    assert exc_info.value.alerts == [CRITICAL]


def test_overrides_recorded_and_audited(caplog):
    """Test each accepted override is returned and written to the audit log."""
    result = review(WARNING, CRITICAL)
    justifications = {
        WARNING: " Intentional dose change ",
        CRITICAL: "Tolerated amoxicillin in 2023 without reaction",
    }

    with caplog.at_level(logging.INFO, logger="cds_src.audit"):
        overrides = apply_overrides(result, justifications, "dr.smith")

    assert [o.alert for o in overrides] == [WARNING, CRITICAL]
    assert overrides[0].justification == "Intentional dose change"
    assert all(o.overridden_by == "dr.smith" for o in overrides)

    audit_records = [r for r in caplog.records if r.name == "cds_src.audit"]
    assert len(audit_records) == 2
    assert "by=dr.smith" in audit_records[1].getMessage()
    assert "type=allergy" in audit_records[1].getMessage()


def test_review_serialization():
    data = review(WARNING, BLOCKING).to_dict()

    assert data["decision"] == "blocked"
    assert data["blocking_alerts"][0]["can_override"] is False
    assert OverrideDecision.display_name(OverrideDecision.BLOCKED) == "Blocked"
