"""Guideline-based drug recommendation engine.

Matches a diagnosis code to the most recently updated active clinical rule,
resolves its first-line and alternative medications against the formulary,
applies patient-adjusted dosing and emits AWaRe stewardship warnings. When
no rule matches, falls back to Access-category antibiotics.
"""

import logging

from common.clinical_rules import ClinicalRule, RuleChoice, RuleRepository
from common.formulary import AWaReCategory, CatalogLookup, MedicationRecord

from .config import config
from .dosing import calculate_dose
from .errors import MedicationNotFoundError, NoSuitableMedicationError
from .models import (
    CheckedRecommendation,
    ClinicalContext,
    DrugRecommendation,
    PatientContext,
    ProposedMedication,
    RecommendationResult,
)

logger = logging.getLogger(__name__)

# Heuristic confidence scores (0-100)
FIRST_LINE_CONFIDENCE = 90
ALTERNATIVE_CONFIDENCE = 70
FALLBACK_PRIMARY_CONFIDENCE = 60
FALLBACK_ALTERNATIVE_CONFIDENCE = 50

FALLBACK_ALTERNATIVE_COUNT = 2
FALLBACK_RULE_NAME = "General antibiotic stewardship principles"
FALLBACK_GUIDELINE_SOURCE = "WHO AWaRe Classification"
DEFAULT_GUIDELINE_SOURCE = "WHO AWaRe"

RATIONALE_RENAL_EGFR = 60
RATIONALE_PEDIATRIC_AGE = 18

STEWARDSHIP_WARNINGS = {
    AWaReCategory.WATCH: (
        "This is a Watch category antibiotic. "
        "Consider Access alternatives if appropriate."
    ),
    AWaReCategory.RESERVE: (
        "This is a Reserve category antibiotic. "
        "Use only when other options have failed or in critical situations."
    ),
}

FALLBACK_WARNING = (
    "No specific clinical rule found. Recommendation based on general principles. "
    "Consider consulting infectious disease specialist."
)


def select_rule(rules: list[ClinicalRule]) -> ClinicalRule | None:
    """Pick the most recently updated rule.

    Ties on `updated_at` go to the rule whose name sorts first, so the
    winner does not depend on repository ordering.
    """
    if not rules:
        return None
    by_name = sorted(rules, key=lambda r: r.name)
    return sorted(by_name, key=lambda r: r.updated_at, reverse=True)[0]


class RulesEngine:
    """Produces ranked drug recommendations for a diagnosis."""

    def __init__(
        self,
        catalog: CatalogLookup,
        rules: RuleRepository,
        fallback_candidates: int | None = None,
    ):
        """Initialize rules engine.

        Args:
            catalog: Formulary lookup
            rules: Clinical rule repository
            fallback_candidates: Access antibiotics fetched for the fallback
                path (defaults to CDS_FALLBACK_CANDIDATES)
        """
        self.catalog = catalog
        self.rules = rules
        self.fallback_candidates = (
            fallback_candidates if fallback_candidates is not None
            else config.FALLBACK_CANDIDATES
        )

    def get_recommendations(
        self, patient: PatientContext, clinical: ClinicalContext
    ) -> RecommendationResult:
        """Recommend a primary medication and alternatives.

        Args:
            patient: Patient context
            clinical: Diagnosis and severity

        Returns:
            RecommendationResult with a primary recommendation

        Raises:
            MedicationNotFoundError: The matched rule's first-line medication
                is missing or inactive
            NoSuitableMedicationError: No rule matched and the formulary has
                no active Access antibiotics
        """
        rule = self._find_rule(clinical)
        if rule is None:
            return self._general_recommendations(patient, clinical)

        logger.info(
            f"Patient {patient.patient_id}: applying rule '{rule.name}' "
            f"for {clinical.diagnosis_code}"
        )

        primary_med = self._resolve_active(rule.first_line.medication_id)
        if primary_med is None:
            raise MedicationNotFoundError(rule.first_line.medication_id, rule.name)

        primary = self._build_recommendation(
            primary_med,
            patient,
            clinical,
            rationale=self._generate_rationale(primary_med, rule, patient, clinical),
            is_first_line=True,
            confidence=FIRST_LINE_CONFIDENCE,
            guideline_source=rule.guideline_source or DEFAULT_GUIDELINE_SOURCE,
            evidence_level=rule.evidence_level,
        )

        alternatives = []
        for choice in rule.alternatives:
            recommendation = self._build_alternative(choice, rule, patient, clinical)
            if recommendation is not None:
                alternatives.append(recommendation)

        warnings = []
        stewardship = self._stewardship_warning(primary_med)
        if stewardship:
            warnings.append(stewardship)

        return RecommendationResult(
            primary=primary,
            alternatives=alternatives,
            rules_applied=[rule.name],
            warnings=warnings,
        )

    def _find_rule(self, clinical: ClinicalContext) -> ClinicalRule | None:
        """Find the winning rule for the diagnosis code, if any."""
        if not clinical.diagnosis_code:
            return None
        matches = self.rules.find_active_rules_by_diagnosis_code(clinical.diagnosis_code)
        return select_rule(matches)

    def _resolve_active(self, medication_id: str) -> MedicationRecord | None:
        medication = self.catalog.find_medication_by_id(medication_id)
        if medication is None or not medication.is_active:
            return None
        return medication

    def _build_alternative(
        self,
        choice: RuleChoice,
        rule: ClinicalRule,
        patient: PatientContext,
        clinical: ClinicalContext,
    ) -> DrugRecommendation | None:
        medication = self._resolve_active(choice.medication_id)
        if medication is None:
            logger.warning(
                f"Rule '{rule.name}': skipping unavailable alternative {choice.medication_id}"
            )
            return None

        return self._build_recommendation(
            medication,
            patient,
            clinical,
            rationale=choice.reason or "Alternative treatment option",
            is_first_line=False,
            confidence=ALTERNATIVE_CONFIDENCE,
            alternative_reason=choice.reason,
            guideline_source=rule.guideline_source or DEFAULT_GUIDELINE_SOURCE,
            evidence_level=rule.evidence_level,
        )

    def _build_recommendation(
        self,
        medication: MedicationRecord,
        patient: PatientContext,
        clinical: ClinicalContext,
        rationale: str,
        is_first_line: bool,
        confidence: int,
        alternative_reason: str | None = None,
        guideline_source: str | None = None,
        evidence_level: str | None = None,
    ) -> DrugRecommendation:
        dose = calculate_dose(medication, patient, clinical)
        return DrugRecommendation(
            medication=medication,
            dose=dose.dose,
            frequency=dose.frequency,
            route=dose.route,
            duration=dose.duration,
            rationale=rationale,
            is_first_line=is_first_line,
            confidence=confidence,
            alternative_reason=alternative_reason,
            guideline_source=guideline_source,
            evidence_level=evidence_level,
        )

    def _stewardship_warning(self, medication: MedicationRecord) -> str | None:
        return STEWARDSHIP_WARNINGS.get(medication.aware_category)

    def _generate_rationale(
        self,
        medication: MedicationRecord,
        rule: ClinicalRule,
        patient: PatientContext,
        clinical: ClinicalContext,
    ) -> str:
        """Compose the rationale sentences in fixed order."""
        parts = []

        if medication.is_antibiotic:
            if medication.aware_category == AWaReCategory.ACCESS:
                parts.append(
                    f"{medication.generic_name} is an Access antibiotic with low "
                    f"resistance risk and broad availability."
                )
            elif medication.aware_category == AWaReCategory.WATCH:
                parts.append(
                    f"{medication.generic_name} is a Watch antibiotic. It has higher "
                    f"resistance potential and should be used when Access antibiotics "
                    f"are unsuitable."
                )

        parts.append(
            f"Recommended as first-line treatment for {clinical.diagnosis} based on "
            f"{rule.guideline_source or 'clinical guidelines'}."
        )

        if patient.egfr is not None and patient.egfr < RATIONALE_RENAL_EGFR:
            parts.append(f"Dosing adjusted for renal function (eGFR: {patient.egfr:g}).")

        if patient.age < RATIONALE_PEDIATRIC_AGE:
            parts.append("Pediatric dosing applied based on weight and age.")

        if patient.is_pregnant:
            parts.append("Patient is pregnant: verify pregnancy safety before prescribing.")

        return " ".join(parts)

    def _general_recommendations(
        self, patient: PatientContext, clinical: ClinicalContext
    ) -> RecommendationResult:
        """Fallback when no clinical rule matches: prefer Access antibiotics."""
        logger.info(
            f"Patient {patient.patient_id}: no clinical rule for "
            f"{clinical.diagnosis_code or clinical.diagnosis!r}, using Access fallback"
        )
        candidates = self.catalog.find_active_access_antibiotics(self.fallback_candidates)
        if not candidates:
            raise NoSuitableMedicationError(
                f"No clinical rule for {clinical.diagnosis_code or clinical.diagnosis!r} "
                f"and no active Access antibiotics in the formulary"
            )

        primary_med = candidates[0]
        primary = self._build_recommendation(
            primary_med,
            patient,
            clinical,
            rationale=(
                f"{primary_med.generic_name} is an Access antibiotic suitable for "
                f"empiric therapy. Consider adjusting based on culture results."
            ),
            is_first_line=True,
            confidence=FALLBACK_PRIMARY_CONFIDENCE,
            guideline_source=FALLBACK_GUIDELINE_SOURCE,
        )

        alternatives = [
            self._build_recommendation(
                med,
                patient,
                clinical,
                rationale="Alternative Access antibiotic option",
                is_first_line=False,
                confidence=FALLBACK_ALTERNATIVE_CONFIDENCE,
                guideline_source=FALLBACK_GUIDELINE_SOURCE,
            )
            for med in candidates[1:1 + FALLBACK_ALTERNATIVE_COUNT]
        ]

        return RecommendationResult(
            primary=primary,
            alternatives=alternatives,
            rules_applied=[FALLBACK_RULE_NAME],
            warnings=[FALLBACK_WARNING],
        )


def recommend_with_safety_check(
    rules_engine: RulesEngine,
    safety_engine,
    patient: PatientContext,
    clinical: ClinicalContext,
) -> CheckedRecommendation:
    """Recommend therapy, then safety-check the primary recommendation.

    Args:
        rules_engine: Engine producing the recommendation
        safety_engine: SafetyEngine validating the primary medication
        patient: Patient context shared by both engines
        clinical: Diagnosis and severity

    Returns:
        CheckedRecommendation with both results
    """
    recommendation = rules_engine.get_recommendations(patient, clinical)
    primary = recommendation.primary
    proposed = [ProposedMedication(medication_id=primary.medication.id, dose=primary.dose)]
    safety_check = safety_engine.perform_safety_check(patient, proposed)
    return CheckedRecommendation(recommendation=recommendation, safety_check=safety_check)
