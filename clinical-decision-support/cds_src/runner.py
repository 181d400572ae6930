#!/usr/bin/env python3
"""CLI entry point for the clinical decision support engines.

Usage:
    # Recommend therapy for a case and safety-check the primary choice
    python -m cds_src.runner --case case.json

    # Safety-check a proposed medication list
    python -m cds_src.runner --check check.json

    # List active clinical rules
    python -m cds_src.runner --list-rules

    # JSON output, custom formulary
    python -m cds_src.runner --case case.json --json --formulary formulary.json

Case file:  {"patient": {...}, "clinical": {"diagnosis": ..., "diagnosis_code": ...}}
Check file: {"patient": {...}, "proposed": [{"medication_id": ..., "dose": ...}]}
Both accept an optional "evaluation_date" (YYYY-MM-DD).
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from common.clinical_rules import load_default_rules
from common.formulary import AWaReCategory, load_default_catalog

from .config import config
from .context_builder import build_clinical_context, build_patient_context
from .errors import ClinicalDecisionSupportError
from .models import AlertType, ProposedMedication, SafetyCheckResult
from .override_policy import OverrideDecision, review_safety_result
from .recommender import RulesEngine, recommend_with_safety_check
from .safety_engine import SafetyEngine


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def setup_sentry():
    """Enable error monitoring when SENTRY_DSN is configured."""
    if not config.SENTRY_DSN:
        return
    import sentry_sdk

    sentry_sdk.init(
        dsn=config.SENTRY_DSN,
        traces_sample_rate=config.SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=False,  # HIPAA - don't send PII to Sentry
        environment=config.ENVIRONMENT,
    )


def _load_json(path: str) -> dict:
    with open(Path(path), "r") as f:
        return json.load(f)


def _evaluation_date(data: dict) -> date | None:
    value = data.get("evaluation_date")
    return date.fromisoformat(value) if value else None


def _print_safety(result: SafetyCheckResult):
    review = review_safety_result(result)
    print(f"\n  Safe: {result.safe}   Requires override: {result.requires_override}")
    print(f"  Decision: {OverrideDecision.display_name(review.decision)}")
    if not result.alerts:
        print("  No safety alerts")
    for alert in result.alerts:
        override = "" if alert.can_override else " [NON-OVERRIDABLE]"
        alert_type = AlertType.display_name(alert.alert_type)
        print(f"    - {alert.severity.value.upper():8} {alert_type}: {alert.message}{override}")


def run_case(args, rules_engine: RulesEngine, safety_engine: SafetyEngine) -> int:
    data = _load_json(args.case)
    patient = build_patient_context(data.get("patient"), _evaluation_date(data))
    clinical = build_clinical_context(data["clinical"])

    checked = recommend_with_safety_check(rules_engine, safety_engine, patient, clinical)

    if args.json:
        print(json.dumps(checked.to_dict(), indent=2))
        return 0

    result = checked.recommendation
    print("\n" + "=" * 60)
    print(f"RECOMMENDATION: {clinical.diagnosis} ({clinical.diagnosis_code or 'no code'})")
    print("=" * 60)
    primary = result.primary
    print(f"  Primary: {primary.medication.generic_name} {primary.dose} {primary.frequency} "
          f"{primary.route} x {primary.duration} (confidence {primary.confidence})")
    if primary.medication.is_antibiotic:
        print(f"  AWaRe category: {AWaReCategory.display_name(primary.medication.aware_category)}")
    print(f"  Rationale: {primary.rationale}")
    for alt in result.alternatives:
        print(f"  Alternative: {alt.medication.generic_name} - {alt.rationale} "
              f"(confidence {alt.confidence})")
    print(f"  Rules applied: {', '.join(result.rules_applied)}")
    for warning in result.warnings:
        print(f"  WARNING: {warning}")
    _print_safety(checked.safety_check)
    return 0


def run_check(args, safety_engine: SafetyEngine) -> int:
    data = _load_json(args.check)
    patient = build_patient_context(data.get("patient"), _evaluation_date(data))
    proposed = [
        ProposedMedication(medication_id=p["medication_id"], dose=p.get("dose"))
        for p in data.get("proposed", [])
    ]

    result = safety_engine.perform_safety_check(patient, proposed)

    if args.json:
        output = result.to_dict()
        output["review"] = review_safety_result(result).to_dict()
        print(json.dumps(output, indent=2))
        return 0

    print("\n" + "=" * 60)
    print(f"SAFETY CHECK: patient {patient.patient_id}")
    print("=" * 60)
    _print_safety(result)
    return 0


def run_list_rules(args, rules) -> int:
    active = rules.get_all_rules()
    if args.json:
        print(json.dumps([r.to_dict() for r in active], indent=2))
        return 0

    print("\n" + "=" * 60)
    print(f"ACTIVE CLINICAL RULES ({len(active)})")
    print("=" * 60)
    for rule in active:
        codes = ", ".join(sorted(rule.diagnosis_codes))
        print(f"  {rule.name:55} [{codes}] evidence {rule.evidence_level or '-'}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Clinical Decision Support",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Mode
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument("--case", metavar="FILE", help="Recommend and safety-check a case")
    mode_group.add_argument("--check", metavar="FILE", help="Safety-check proposed medications")
    mode_group.add_argument("--list-rules", action="store_true", help="List active clinical rules")

    # Options
    parser.add_argument("--formulary", default=config.FORMULARY_PATH, help="Formulary JSON file")
    parser.add_argument("--rules", default=config.RULES_PATH, help="Clinical rules JSON file")
    parser.add_argument("--json", action="store_true", help="Print JSON output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    setup_sentry()
    logger = logging.getLogger(__name__)

    try:
        catalog = load_default_catalog(args.formulary)
        rules = load_default_rules(args.rules)

        if args.list_rules:
            return run_list_rules(args, rules)

        rules_engine = RulesEngine(catalog, rules)
        safety_engine = SafetyEngine(catalog)

        if args.case:
            return run_case(args, rules_engine, safety_engine)
        return run_check(args, safety_engine)

    except ClinicalDecisionSupportError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        return 1
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Invalid input: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
