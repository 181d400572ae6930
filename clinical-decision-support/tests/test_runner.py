"""Tests for the command-line runner."""

import json

import pytest

from cds_src.runner import main

PATIENT = {
    "id": "patient-001",
    "date_of_birth": "1980-04-12",
    "gender": "male",
    "renal_function": 85,
    "allergies": [{"allergen": "Penicillin", "severity": "severe"}],
}


def write_json(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return str(path)


def test_case_json_output(tmp_path, capsys):
    """Test recommending and safety-checking a case with JSON output."""
    case = write_json(tmp_path, "case.json", {
        "evaluation_date": "2025-06-15",
        "patient": PATIENT,
        "clinical": {"diagnosis": "Community-acquired pneumonia", "diagnosis_code": "J18.9"},
    })

    assert main(["--case", case, "--json"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["recommendation"]["primary"]["medication"]["id"] == "med-amoxicillin"
    assert output["safety_check"]["safe"] is False
    assert output["safety_check"]["requires_override"] is False


def test_case_text_output(tmp_path, capsys):
    case = write_json(tmp_path, "case.json", {
        "patient": {"id": "p2", "date_of_birth": "1990-01-01"},
        "clinical": {"diagnosis": "Pyelonephritis", "diagnosis_code": "N10"},
    })

    assert main(["--case", case]) == 0

    out = capsys.readouterr().out
    assert "Primary: Ciprofloxacin" in out
    assert "AWaRe category: Watch" in out
    assert "WARNING:" in out
    assert "No safety alerts" in out


def test_check_json_output(tmp_path, capsys):
    check = write_json(tmp_path, "check.json", {
        "evaluation_date": "2025-06-15",
        "patient": {"id": "child", "date_of_birth": "2017-03-01", "weight": 25},
        "proposed": [{"medication_id": "med-aspirin", "dose": "300mg"}],
    })

    assert main(["--check", check, "--json"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["requires_override"] is True
    assert output["review"]["decision"] == "blocked"


def test_check_text_output(tmp_path, capsys):
    check = write_json(tmp_path, "check.json", {
        "patient": {"id": "adult", "date_of_birth": "1970-01-01"},
        "proposed": [
            {"medication_id": "med-warfarin", "dose": "5mg"},
            {"medication_id": "med-aspirin", "dose": "100mg"},
        ],
    })

    assert main(["--check", check]) == 0

    out = capsys.readouterr().out
    assert "Drug Interaction: Interaction between Warfarin and Aspirin" in out
    assert "Requires Justification" in out


def test_list_rules(capsys):
    assert main(["--list-rules", "--json"]) == 0

    names = [rule["name"] for rule in json.loads(capsys.readouterr().out)]
    assert len(names) == 9
    assert names == sorted(names)


def test_errors_return_nonzero(tmp_path):
    """Test missing files, missing patients and bad contexts exit with 1."""
    assert main(["--case", str(tmp_path / "missing.json")]) == 1

    no_patient = write_json(tmp_path, "no_patient.json", {
        "clinical": {"diagnosis": "Test", "diagnosis_code": "J18.9"},
    })
    assert main(["--case", no_patient]) == 1

    bad_egfr = write_json(tmp_path, "bad.json", {
        "patient": {"id": "x", "date_of_birth": "1980-01-01", "renal_function": -5},
        "proposed": [],
    })
    assert main(["--check", bad_egfr]) == 1


def test_mode_required():
    with pytest.raises(SystemExit):
        main([])
