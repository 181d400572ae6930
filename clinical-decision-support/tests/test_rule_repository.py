"""Tests for the clinical rule repository."""

import threading
from datetime import datetime, timezone

import pytest

from common.clinical_rules import (
    AgeBetween,
    ClinicalRule,
    InMemoryRuleRepository,
    RuleChoice,
)
from common.formulary import AWaReCategory


def create_test_rule(name="Test Rule", codes=("X01",), **kwargs) -> ClinicalRule:
    return ClinicalRule(
        name=name,
        diagnosis_codes=frozenset(codes),
        first_line=RuleChoice(medication_id="med-amoxicillin"),
        **kwargs,
    )


def test_find_rules_by_diagnosis_code(rules):
    """Test matching by diagnosis code, hiding inactive rules."""
    names = {r.name for r in rules.find_active_rules_by_diagnosis_code("J18.9")}
    assert names == {
        "Community-Acquired Pneumonia (CAP) - Outpatient Adults",
        "Community-Acquired Pneumonia (CAP) - Inpatient",
    }

    # Hypertension rule is seeded inactive
    assert rules.find_active_rules_by_diagnosis_code("I10") == []
    assert rules.find_active_rules_by_diagnosis_code("Z99.9") == []


def test_seeded_rule_fields(rules):
    """Test that seed entries are parsed into typed fields."""
    rule = rules.get_rule("Community-Acquired Pneumonia (CAP) - Outpatient Adults")

    assert rule.first_line.medication_id == "med-amoxicillin"
    assert [a.medication_id for a in rule.alternatives] == ["med-azithromycin", "med-levofloxacin"]
    assert rule.aware_preference == AWaReCategory.ACCESS
    assert rule.evidence_level == "A"
    assert rule.updated_at == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    assert AgeBetween(min_age=18, max_age=65) in rule.criteria


def test_get_all_rules_sorted_and_active(rules):
    all_rules = rules.get_all_rules()
    names = [r.name for r in all_rules]

    assert names == sorted(names)
    assert "Hypertension - Stage 1 (Adults)" not in names
    assert len(all_rules) == 9


def test_create_rule_rejects_duplicates():
    repository = InMemoryRuleRepository([create_test_rule()])

    with pytest.raises(ValueError):
        repository.create_rule(create_test_rule())


def test_deactivate_rule():
    """Test that deactivated rules stop matching."""
    repository = InMemoryRuleRepository([create_test_rule()])
    assert len(repository.find_active_rules_by_diagnosis_code("X01")) == 1

    updated = repository.deactivate_rule("Test Rule")

    assert not updated.is_active
    assert repository.find_active_rules_by_diagnosis_code("X01") == []
    assert repository.get_rule("Test Rule").is_active is False

    with pytest.raises(KeyError):
        repository.deactivate_rule("Unknown Rule")


def test_rule_validation():
    """Test evidence level and name validation."""
    with pytest.raises(ValueError):
        create_test_rule(evidence_level="D")
    with pytest.raises(ValueError):
        create_test_rule(name="")

    assert create_test_rule(evidence_level="B").evidence_level == "B"


def test_rule_round_trip_dict():
    rule = ClinicalRule.from_dict({
        "name": "Round Trip",
        "diagnosis_codes": ["B2", "A1"],
        "patient_criteria": {"ageMin": 1},
        "first_line": {"medication_id": "med-x", "dose": "1g"},
        "aware_preference": "WATCH",
        "updated_at": "2024-01-01T00:00:00",
    })

    data = rule.to_dict()
    assert data["diagnosis_codes"] == ["A1", "B2"]
    assert data["aware_preference"] == "watch"
    assert data["criteria"] == [{"kind": "age_between", "min_age": 1, "max_age": None}]
    assert data["first_line"]["dose"] == "1g"


def test_reads_during_concurrent_writes():
    """Test lookups stay consistent while rules are created and deactivated."""
    repository = InMemoryRuleRepository([create_test_rule(name=f"Seed {i}") for i in range(50)])
    errors = []
    done = threading.Event()

    def read():
        while not done.is_set():
            try:
                repository.find_active_rules_by_diagnosis_code("X01")
                repository.get_all_rules()
            except Exception as e:
                errors.append(e)
                return

    reader = threading.Thread(target=read)
    reader.start()
    try:
        for i in range(500):
            repository.create_rule(create_test_rule(name=f"Created {i}"))
            if i % 10 == 0:
                repository.deactivate_rule(f"Created {i}")
    finally:
        done.set()
        reader.join()

    assert errors == [], f"Reader failed: {errors}"
    assert len(repository.find_active_rules_by_diagnosis_code("X01")) == 50 + 500 - 50


def test_updated_at_normalized_to_utc():
    """Test naive, offset and default timestamps are all UTC-aware."""
    naive = create_test_rule(name="Naive", updated_at=datetime(2024, 3, 1, 9, 0))
    offset = ClinicalRule.from_dict({
        "name": "Offset",
        "diagnosis_codes": ["X01"],
        "first_line": {"medication_id": "med-amoxicillin"},
        "updated_at": "2024-03-01T11:00:00+02:00",
    })
    default = create_test_rule(name="Default")

    assert naive.updated_at == offset.updated_at
    assert offset.updated_at.tzinfo == timezone.utc
    assert default.updated_at.tzinfo is not None
    assert default.updated_at > naive.updated_at

    repository = InMemoryRuleRepository([naive])
    assert repository.deactivate_rule("Naive").updated_at > offset.updated_at
