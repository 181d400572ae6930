"""Keyword tables for the safety checks.

Each table maps a lowercase keyword to the alert template raised when a
proposed medication matches it. A keyword matches when it appears in the
medication's generic name or therapeutic class (case-insensitive). Tables are
illustrative, not clinically exhaustive; a terminology service can replace
them without touching the checks.

Template text is formatted with: {drug}, {allergen}, {condition}, {age},
{egfr}, {hepatic}.
"""

from dataclasses import dataclass
from typing import Iterable

from common.formulary import MedicationRecord

from .models import AlertSeverity, AlertType, SafetyAlert


@dataclass(frozen=True)
class AlertTemplate:
    alert_type: AlertType
    severity: AlertSeverity
    can_override: bool
    message: str
    clinical_rationale: str | None = None
    recommendation: str | None = None

    def render(self, medication_names: Iterable[str] = (), **values) -> SafetyAlert:
        """Build a SafetyAlert, filling placeholders from `values`."""
        return SafetyAlert(
            alert_type=self.alert_type,
            severity=self.severity,
            message=self.message.format(**values),
            can_override=self.can_override,
            clinical_rationale=(
                self.clinical_rationale.format(**values) if self.clinical_rationale else None
            ),
            recommendation=self.recommendation.format(**values) if self.recommendation else None,
            medication_names=tuple(medication_names),
        )


HazardTable = dict[str, AlertTemplate]


def _keyword_table(keywords: Iterable[str], template: AlertTemplate) -> HazardTable:
    return {keyword: template for keyword in keywords}


def matches_keyword(medication: MedicationRecord, keyword: str) -> bool:
    """Case-insensitive substring match on generic name or therapeutic class."""
    keyword = keyword.lower()
    if keyword in medication.generic_name.lower():
        return True
    return bool(medication.therapeutic_class) and keyword in medication.therapeutic_class.lower()


def find_match(
    medication: MedicationRecord, table: HazardTable
) -> tuple[str, AlertTemplate] | None:
    """First (keyword, template) in table order that matches the medication."""
    for keyword, template in table.items():
        if matches_keyword(medication, keyword):
            return keyword, template
    return None


# =============================================================================
# 1. Allergy
# =============================================================================

DIRECT_ALLERGY_CRITICAL = AlertTemplate(
    alert_type=AlertType.ALLERGY,
    severity=AlertSeverity.CRITICAL,
    can_override=True,
    message="Patient has documented {severity} allergy to {allergen}",
    clinical_rationale="This medication contains or is related to the allergen {allergen}.",
    recommendation="Avoid {drug}. Consider alternative medication class.",
)

DIRECT_ALLERGY_LIFE_THREATENING = AlertTemplate(
    alert_type=AlertType.ALLERGY,
    severity=AlertSeverity.CRITICAL,
    can_override=False,
    message=DIRECT_ALLERGY_CRITICAL.message,
    clinical_rationale=DIRECT_ALLERGY_CRITICAL.clinical_rationale,
    recommendation=DIRECT_ALLERGY_CRITICAL.recommendation,
)

DIRECT_ALLERGY_WARNING = AlertTemplate(
    alert_type=AlertType.ALLERGY,
    severity=AlertSeverity.WARNING,
    can_override=True,
    message=DIRECT_ALLERGY_CRITICAL.message,
    clinical_rationale=DIRECT_ALLERGY_CRITICAL.clinical_rationale,
    recommendation=DIRECT_ALLERGY_CRITICAL.recommendation,
)

_CROSS_SENSITIVITY = AlertTemplate(
    alert_type=AlertType.ALLERGY,
    severity=AlertSeverity.WARNING,
    can_override=True,
    message="Possible cross-sensitivity: Patient allergic to {allergen}",
    clinical_rationale="{drug} may have cross-sensitivity with {allergen}",
    recommendation="Monitor closely or consider alternative.",
)

# Allergen keyword -> related drug keywords
CROSS_SENSITIVITY: dict[str, HazardTable] = {
    "penicillin": _keyword_table(
        ["amoxicillin", "ampicillin", "cephalosporin", "ceftriaxone", "cefalexin", "cephalexin"],
        _CROSS_SENSITIVITY,
    ),
    "sulfa": _keyword_table(["sulfamethoxazole", "trimethoprim"], _CROSS_SENSITIVITY),
    "aspirin": _keyword_table(["ibuprofen", "naproxen", "diclofenac", "nsaid"], _CROSS_SENSITIVITY),
}


# =============================================================================
# 3. Contraindications
# =============================================================================

_CONTRAINDICATED = AlertTemplate(
    alert_type=AlertType.CONTRAINDICATION,
    severity=AlertSeverity.CRITICAL,
    can_override=False,
    message="{drug} is contraindicated in {condition}",
    clinical_rationale="Patient has {condition} which is a contraindication for {drug}",
    recommendation="Use alternative medication",
)

# Condition keyword (matched against diagnosis names) -> drug keywords
CONTRAINDICATIONS: dict[str, HazardTable] = {
    "peptic ulcer": _keyword_table(
        ["aspirin", "ibuprofen", "naproxen", "diclofenac", "nsaid"], _CONTRAINDICATED
    ),
    "heart failure": _keyword_table(["nsaid", "ibuprofen"], _CONTRAINDICATED),
    "asthma": _keyword_table(["aspirin", "beta-blocker"], _CONTRAINDICATED),
    "renal failure": _keyword_table(["metformin", "nsaid"], _CONTRAINDICATED),
}


# =============================================================================
# 4. Duplicate therapy
# =============================================================================

DUPLICATE_MEDICATION = AlertTemplate(
    alert_type=AlertType.DUPLICATE_THERAPY,
    severity=AlertSeverity.WARNING,
    can_override=True,
    message="Duplicate medication: {drug} is already prescribed",
    clinical_rationale="Patient is already taking this medication",
    recommendation="Review current medications before prescribing",
)

DUPLICATE_CLASS = AlertTemplate(
    alert_type=AlertType.DUPLICATE_THERAPY,
    severity=AlertSeverity.WARNING,
    can_override=True,
    message="Multiple medications from same class: {therapeutic_class}",
    clinical_rationale="Prescribing multiple {therapeutic_class} may not be appropriate",
    recommendation="Review therapeutic duplication",
)


# =============================================================================
# 5. Dose range
# =============================================================================

PEDIATRIC_WEIGHT_REQUIRED = AlertTemplate(
    alert_type=AlertType.DOSE_RANGE,
    severity=AlertSeverity.WARNING,
    can_override=True,
    message="Pediatric patient: weight required for dose calculation",
    clinical_rationale="Weight-based dosing is recommended for pediatric patients",
    recommendation="Enter patient weight for accurate dosing",
)

UNUSUALLY_HIGH_DOSE = AlertTemplate(
    alert_type=AlertType.DOSE_RANGE,
    severity=AlertSeverity.CRITICAL,
    can_override=True,
    message="Dose appears unusually high: {dose}",
    clinical_rationale="Dose exceeds typical maximum",
    recommendation="Verify dose calculation",
)


# =============================================================================
# 6. Organ function
# =============================================================================

RENALLY_EXCRETED_DRUGS = ["metformin", "gabapentin", "enoxaparin", "digoxin"]
HEPATICALLY_METABOLIZED_DRUGS = ["warfarin", "phenytoin", "carbamazepine"]

RENAL_IMPAIRMENT: HazardTable = _keyword_table(
    RENALLY_EXCRETED_DRUGS,
    AlertTemplate(
        alert_type=AlertType.RENAL_ADJUSTMENT,
        severity=AlertSeverity.WARNING,
        can_override=True,
        message="Renal dose adjustment required for {drug}",
        clinical_rationale=(
            "Patient eGFR: {egfr} mL/min. {drug} requires dose adjustment in renal impairment."
        ),
        recommendation="Reduce dose based on renal function",
    ),
)

SEVERE_RENAL_IMPAIRMENT: HazardTable = _keyword_table(
    RENALLY_EXCRETED_DRUGS,
    AlertTemplate(
        alert_type=AlertType.RENAL_ADJUSTMENT,
        severity=AlertSeverity.CRITICAL,
        can_override=False,
        message="Renal dose adjustment required for {drug}",
        clinical_rationale=(
            "Patient eGFR: {egfr} mL/min. {drug} requires dose adjustment in renal impairment."
        ),
        recommendation="Avoid or use significantly reduced dose",
    ),
)

HEPATIC_IMPAIRMENT: HazardTable = _keyword_table(
    HEPATICALLY_METABOLIZED_DRUGS,
    AlertTemplate(
        alert_type=AlertType.HEPATIC_ADJUSTMENT,
        severity=AlertSeverity.WARNING,
        can_override=True,
        message="Hepatic dose adjustment may be needed for {drug}",
        clinical_rationale="Patient has {hepatic} hepatic impairment.",
        recommendation="Monitor closely and adjust dose as needed",
    ),
)


# =============================================================================
# 7. Pregnancy / lactation
# =============================================================================

PREGNANCY_CONTRAINDICATED: HazardTable = _keyword_table(
    ["warfarin", "methotrexate", "isotretinoin", "finasteride"],
    AlertTemplate(
        alert_type=AlertType.PREGNANCY_WARNING,
        severity=AlertSeverity.CRITICAL,
        can_override=False,
        message="{drug} is contraindicated in pregnancy",
        clinical_rationale="Known teratogenic effects or fetal harm",
        recommendation="Use alternative medication safe for pregnancy",
    ),
)

# "arb" alone would match carbamazepine and carbapenems
PREGNANCY_CAUTION: HazardTable = _keyword_table(
    ["ace inhibitor", "angiotensin receptor blocker", "sartan", "nsaid"],
    AlertTemplate(
        alert_type=AlertType.PREGNANCY_WARNING,
        severity=AlertSeverity.WARNING,
        can_override=True,
        message="Use {drug} with caution in pregnancy",
        clinical_rationale="Potential risks to fetus",
        recommendation="Consider safer alternatives or use only if benefit outweighs risk",
    ),
)

LACTATION_CAUTION: HazardTable = _keyword_table(
    ["codeine", "aspirin", "lithium"],
    AlertTemplate(
        alert_type=AlertType.LACTATION_WARNING,
        severity=AlertSeverity.WARNING,
        can_override=True,
        message="{drug} may not be safe during breastfeeding",
        clinical_rationale="Drug passes into breast milk",
        recommendation="Consider alternative or monitor infant closely",
    ),
)


# =============================================================================
# 8. Age-specific
# =============================================================================

PEDIATRIC_CAUTION: HazardTable = _keyword_table(
    ["tetracycline", "fluoroquinolone", "aspirin"],
    AlertTemplate(
        alert_type=AlertType.AGE_WARNING,
        severity=AlertSeverity.WARNING,
        can_override=True,
        message="{drug} not recommended for age {age}",
        clinical_rationale="Generally not recommended in pediatric patients",
        recommendation="Use age-appropriate alternative",
    ),
)

# Keyword -> (age below which the template replaces the pediatric caution)
PEDIATRIC_AGE_OVERRIDES: dict[str, tuple[int, AlertTemplate]] = {
    "aspirin": (
        12,
        AlertTemplate(
            alert_type=AlertType.AGE_WARNING,
            severity=AlertSeverity.CRITICAL,
            can_override=False,
            message="{drug} not recommended for age {age}",
            clinical_rationale="Risk of Reye's syndrome in children",
            recommendation="Use age-appropriate alternative",
        ),
    ),
}

GERIATRIC_CAUTION: HazardTable = _keyword_table(
    ["benzodiazepine", "anticholinergic", "opioid"],
    AlertTemplate(
        alert_type=AlertType.AGE_WARNING,
        severity=AlertSeverity.INFO,
        can_override=True,
        message="Use {drug} with caution in elderly patients",
        clinical_rationale="Increased risk of falls, cognitive impairment, or adverse effects",
        recommendation="Start with low dose and monitor closely",
    ),
)
