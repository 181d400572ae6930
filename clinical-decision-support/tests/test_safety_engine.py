"""Tests for the safety engine aggregation behaviour."""

import logging

import pytest

from common.formulary import CatalogLookup
from cds_src.models import (
    AlertSeverity,
    AlertType,
    Allergy,
    AllergySeverity,
    CurrentMedication,
    ProposedMedication,
    SafetyAlert,
    SafetyCheckResult,
)
from cds_src.safety_engine import SafetyEngine


class CountingCatalog(CatalogLookup):
    """Delegating catalog that records interaction lookups."""

    def __init__(self, inner: CatalogLookup):
        self.inner = inner
        self.interaction_calls = []

    def find_medication_by_id(self, medication_id):
        return self.inner.find_medication_by_id(medication_id)

    def find_interaction(self, medication_a_id, medication_b_id):
        self.interaction_calls.append((medication_a_id, medication_b_id))
        return self.inner.find_interaction(medication_a_id, medication_b_id)

    def find_active_access_antibiotics(self, limit):
        return self.inner.find_active_access_antibiotics(limit)


class FailingCatalog(CountingCatalog):
    def find_interaction(self, medication_a_id, medication_b_id):
        raise RuntimeError("catalog unavailable")


def propose(*medication_ids, dose="100mg"):
    return [ProposedMedication(medication_id=m, dose=dose) for m in medication_ids]


def test_eight_checks_registered(safety_engine):
    names = [check.__class__.__name__ for check in safety_engine.checks]
    assert names == [
        "AllergyCheck",
        "DrugInteractionCheck",
        "ContraindicationCheck",
        "DuplicateTherapyCheck",
        "DoseRangeCheck",
        "OrganFunctionCheck",
        "PregnancyLactationCheck",
        "AgeSpecificCheck",
    ]


def test_severe_allergy_is_unsafe_but_overridable(safety_engine, make_patient):
    """Test a severe penicillin allergy blocks safety but not override."""
    patient = make_patient(allergies=[Allergy("Penicillin", AllergySeverity.SEVERE)])
    result = safety_engine.perform_safety_check(patient, propose("med-amoxicillin"))

    assert not result.safe
    assert not result.requires_override
    assert len(result.critical_alerts) == 1


def test_reyes_syndrome_requires_override(safety_engine, make_patient):
    result = safety_engine.perform_safety_check(
        make_patient(age=8, weight_kg=25), propose("med-aspirin")
    )

    assert not result.safe
    assert result.requires_override
    assert [a.alert_type for a in result.critical_alerts] == [AlertType.AGE_WARNING]


def test_severe_renal_impairment_requires_override(safety_engine, make_patient):
    result = safety_engine.perform_safety_check(make_patient(egfr=20), propose("med-metformin"))

    assert not result.safe
    assert result.requires_override
    assert result.alerts[0].recommendation == "Avoid or use significantly reduced dose"


def test_clean_therapy_is_safe(safety_engine, make_patient):
    result = safety_engine.perform_safety_check(make_patient(egfr=90), propose("med-amoxicillin"))

    assert result.safe
    assert not result.requires_override
    assert result.alerts == []


def test_empty_proposal(safety_engine, make_patient):
    result = safety_engine.perform_safety_check(make_patient(age=5), [])
    assert result.safe
    assert result.alerts == []


def test_requires_override_only_from_critical_non_overridable(safety_engine, make_patient):
    """Test requires_override matches the presence of a blocking critical alert."""
    scenarios = [
        (make_patient(allergies=[Allergy("Penicillin", AllergySeverity.SEVERE)]), ["med-amoxicillin"]),
        (make_patient(is_pregnant=True), ["med-warfarin", "med-lisinopril"]),
        (make_patient(age=70, egfr=45), ["med-gabapentin", "med-diazepam"]),
        (make_patient(age=6), ["med-aspirin", "med-doxycycline"]),
        (make_patient(), ["med-warfarin", "med-aspirin"]),
    ]

    for patient, medication_ids in scenarios:
        result = safety_engine.perform_safety_check(patient, propose(*medication_ids))
        expected = any(
            a.severity == AlertSeverity.CRITICAL and not a.can_override for a in result.alerts
        )
        assert result.requires_override == expected, medication_ids
        assert result.safe == (not result.critical_alerts), medication_ids


def test_alerts_follow_check_order(safety_engine, make_patient):
    """Test alerts are reported allergy first through age last."""
    patient = make_patient(
        age=8,
        egfr=25,
        is_pregnant=True,
        allergies=[Allergy("Aspirin", AllergySeverity.MILD)],
        current_medications=[CurrentMedication("med-warfarin", "Warfarin")],
    )
    result = safety_engine.perform_safety_check(
        patient, propose("med-aspirin", "med-gabapentin", "med-ibuprofen")
    )

    order = [
        AlertType.ALLERGY,
        AlertType.DRUG_INTERACTION,
        AlertType.CONTRAINDICATION,
        AlertType.DUPLICATE_THERAPY,
        AlertType.DOSE_RANGE,
        AlertType.RENAL_ADJUSTMENT,
        AlertType.HEPATIC_ADJUSTMENT,
        AlertType.PREGNANCY_WARNING,
        AlertType.LACTATION_WARNING,
        AlertType.AGE_WARNING,
    ]
    positions = [order.index(a.alert_type) for a in result.alerts]
    assert positions == sorted(positions)
    assert AlertType.AGE_WARNING in {a.alert_type for a in result.alerts}


def test_result_independent_of_input_order(safety_engine, make_patient):
    """Test the alert set does not depend on proposal order."""
    patient = make_patient(
        age=8,
        current_medications=[
            CurrentMedication("med-phenytoin", "Phenytoin"),
            CurrentMedication("med-methotrexate", "Methotrexate"),
        ],
    )
    ids = ["med-warfarin", "med-aspirin", "med-tmp-smx", "med-gabapentin"]

    forward = safety_engine.perform_safety_check(patient, propose(*ids))
    backward = safety_engine.perform_safety_check(patient, propose(*reversed(ids)))

    assert set(forward.alerts) == set(backward.alerts)
    assert len(forward.alerts) == len(backward.alerts)
    assert forward.safe == backward.safe
    assert forward.requires_override == backward.requires_override


def test_repeated_checks_are_identical(safety_engine, make_patient):
    patient = make_patient(is_pregnant=True, egfr=40)
    proposed = propose("med-warfarin", "med-ciprofloxacin", "med-metformin")

    first = safety_engine.perform_safety_check(patient, proposed)
    second = safety_engine.perform_safety_check(patient, proposed)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_each_pair_looked_up_once(catalog, make_patient):
    """Test four proposed medications yield six interaction lookups."""
    counting = CountingCatalog(catalog)
    engine = SafetyEngine(counting, high_dose_threshold=5000)
    ids = ["med-warfarin", "med-aspirin", "med-tmp-smx", "med-ciprofloxacin"]

    result = engine.perform_safety_check(make_patient(), propose(*ids))

    pairs = [frozenset(call) for call in counting.interaction_calls]
    assert len(pairs) == 6
    assert len(set(pairs)) == 6
    assert len(result.alerts_of_type(AlertType.DRUG_INTERACTION)) == 3


def test_unknown_medications_are_skipped(safety_engine, make_patient, caplog):
    patient = make_patient(is_pregnant=True)

    with caplog.at_level(logging.WARNING, logger="cds_src.safety_engine"):
        result = safety_engine.perform_safety_check(
            patient, propose("med-does-not-exist", "med-warfarin")
        )

    assert [a.medication_names for a in result.alerts] == [("Warfarin",)]
    assert "med-does-not-exist" in caplog.text


def test_lookup_failures_propagate(catalog, make_patient):
    engine = SafetyEngine(FailingCatalog(catalog), high_dose_threshold=5000)

    with pytest.raises(RuntimeError):
        engine.perform_safety_check(make_patient(), propose("med-warfarin", "med-aspirin"))


def test_from_alerts():
    """Test aggregation for empty, overridable and blocking alert lists."""
    empty = SafetyCheckResult.from_alerts([])
    assert empty.safe and not empty.requires_override and empty.critical_alerts == []

    warning = SafetyAlert(AlertType.DOSE_RANGE, AlertSeverity.WARNING, "w")
    overridable = SafetyAlert(AlertType.ALLERGY, AlertSeverity.CRITICAL, "c")
    blocking = SafetyAlert(AlertType.CONTRAINDICATION, AlertSeverity.CRITICAL, "b", can_override=False)
    info_only = SafetyAlert(AlertType.AGE_WARNING, AlertSeverity.INFO, "i", can_override=False)

    result = SafetyCheckResult.from_alerts([warning, overridable])
    assert not result.safe and not result.requires_override
    assert result.critical_alerts == [overridable]

    assert SafetyCheckResult.from_alerts([warning, blocking]).requires_override
    assert not SafetyCheckResult.from_alerts([info_only]).requires_override
    assert SafetyCheckResult.from_alerts([info_only]).safe


def test_result_serialization(safety_engine, make_patient):
    result = safety_engine.perform_safety_check(make_patient(egfr=25), propose("med-metformin"))
    data = result.to_dict()

    assert data["safe"] is False
    assert data["requires_override"] is True
    assert data["alerts"][0]["alert_type"] == "renal_adjustment"
    assert data["alerts"][0]["medication_names"] == ["Metformin"]


def test_alert_type_display_name():
    assert AlertType.display_name(AlertType.DRUG_INTERACTION) == "Drug Interaction"
    assert AlertType.display_name("renal_adjustment") == "Renal Adjustment"
    assert AlertType.display_name("unknown_type") == "Unknown Type"
    assert AlertType.display_name(None) == ""
