"""Patient-applicability criteria for clinical rules.

Guideline rules carry applicability criteria (age range, excluded
comorbidities, gender, illness severity, free-text notes). Each criterion is
a small tagged predicate evaluated by `evaluate_criterion`. Rule selection in
the recommender matches on diagnosis code only; callers that want criteria to
gate selection run `filter_applicable_rules` over the candidate rules first.

Predicates read patient/clinical attributes by name (`age`, `gender`,
`conditions`, `is_pregnant`, `severity`) so they work with any context
object exposing them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgeBetween:
    """Patient age (years) within [min_age, max_age]; either bound optional."""
    min_age: float | None = None
    max_age: float | None = None
    kind: str = field(default="age_between", init=False)


@dataclass(frozen=True)
class ExcludesCondition:
    """Patient must NOT have the named condition."""
    condition: str
    kind: str = field(default="excludes_condition", init=False)


@dataclass(frozen=True)
class GenderIs:
    """Patient gender must equal `gender` (case-insensitive)."""
    gender: str
    kind: str = field(default="gender_is", init=False)


@dataclass(frozen=True)
class SeverityIs:
    """Clinical severity must be one of `severities`."""
    severities: tuple[str, ...]
    kind: str = field(default="severity_is", init=False)


@dataclass(frozen=True)
class Descriptive:
    """Free-text guidance with no machine-checkable meaning. Always satisfied."""
    key: str
    text: str
    kind: str = field(default="descriptive", init=False)


Criterion = Union[AgeBetween, ExcludesCondition, GenderIs, SeverityIs, Descriptive]


@dataclass
class CriteriaEvaluation:
    """Outcome of evaluating a rule's criteria against one patient."""
    applicable: bool
    unmet: list[Criterion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "applicable": self.applicable,
            "unmet": [criterion_to_dict(c) for c in self.unmet],
        }


def _age_between(criterion: AgeBetween, patient: Any, clinical: Any) -> bool:
    age = patient.age
    if criterion.min_age is not None and age < criterion.min_age:
        return False
    if criterion.max_age is not None and age > criterion.max_age:
        return False
    return True


def _excludes_condition(criterion: ExcludesCondition, patient: Any, clinical: Any) -> bool:
    excluded = criterion.condition.lower()

    if excluded == "pregnancy" and getattr(patient, "is_pregnant", False):
        return False

    for condition in getattr(patient, "conditions", ()):
        name = (condition.diagnosis_name or "").lower()
        code = (condition.diagnosis_code or "").lower()
        if excluded in name or excluded == code:
            return False
    return True


def _gender_is(criterion: GenderIs, patient: Any, clinical: Any) -> bool:
    gender = getattr(patient.gender, "value", patient.gender)
    return str(gender).lower() == criterion.gender.lower()


def _severity_is(criterion: SeverityIs, patient: Any, clinical: Any) -> bool:
    severity = getattr(clinical, "severity", None) if clinical is not None else None
    if not severity:
        # Unknown severity cannot confirm the criterion
        return False
    return severity.lower() in criterion.severities


def _descriptive(criterion: Descriptive, patient: Any, clinical: Any) -> bool:
    return True


_EVALUATORS = {
    AgeBetween: _age_between,
    ExcludesCondition: _excludes_condition,
    GenderIs: _gender_is,
    SeverityIs: _severity_is,
    Descriptive: _descriptive,
}


def evaluate_criterion(criterion: Criterion, patient: Any, clinical: Any = None) -> bool:
    """Evaluate a single criterion against a patient and clinical context."""
    evaluator = _EVALUATORS.get(type(criterion))
    if evaluator is None:
        raise TypeError(f"Unsupported criterion: {criterion!r}")
    return evaluator(criterion, patient, clinical)


def evaluate_criteria(
    criteria: Iterable[Criterion], patient: Any, clinical: Any = None
) -> CriteriaEvaluation:
    """Evaluate every criterion and report which were not met."""
    unmet = [c for c in criteria if not evaluate_criterion(c, patient, clinical)]
    return CriteriaEvaluation(applicable=not unmet, unmet=unmet)


def filter_applicable_rules(rules: Iterable[Any], patient: Any, clinical: Any = None) -> list[Any]:
    """Keep only rules whose criteria all hold for the patient.

    Order of `rules` is preserved.
    """
    applicable = []
    for rule in rules:
        evaluation = evaluate_criteria(rule.criteria, patient, clinical)
        if evaluation.applicable:
            applicable.append(rule)
        else:
            logger.debug(
                f"Rule '{rule.name}' not applicable: "
                f"{[c.kind for c in evaluation.unmet]}"
            )
    return applicable


def parse_criteria(raw: dict[str, Any] | None) -> tuple[Criterion, ...]:
    """Convert a loosely-typed criteria bag into typed criteria.

    Recognised keys: ageMin/age_min, ageMax/age_max, excludeComorbidities/
    exclude_comorbidities, gender, severity (e.g. "moderate-severe").
    Any other key becomes a Descriptive criterion.
    """
    if not raw:
        return ()

    criteria: list[Criterion] = []
    remaining = dict(raw)

    age_min = remaining.pop("ageMin", remaining.pop("age_min", None))
    age_max = remaining.pop("ageMax", remaining.pop("age_max", None))
    if age_min is not None or age_max is not None:
        criteria.append(AgeBetween(min_age=age_min, max_age=age_max))

    excluded = remaining.pop(
        "excludeComorbidities", remaining.pop("exclude_comorbidities", None)
    )
    if isinstance(excluded, str):
        excluded = [excluded]
    for condition in excluded or []:
        criteria.append(ExcludesCondition(condition=condition))

    gender = remaining.pop("gender", None)
    if gender:
        criteria.append(GenderIs(gender=gender))

    severity = remaining.pop("severity", None)
    if severity:
        levels = tuple(s.strip().lower() for s in severity.split("-") if s.strip())
        criteria.append(SeverityIs(severities=levels))

    for key, value in remaining.items():
        criteria.append(Descriptive(key=key, text=str(value)))

    return tuple(criteria)


def criterion_to_dict(criterion: Criterion) -> dict[str, Any]:
    """Convert a criterion to a tagged dictionary."""
    if isinstance(criterion, AgeBetween):
        return {"kind": criterion.kind, "min_age": criterion.min_age, "max_age": criterion.max_age}
    if isinstance(criterion, ExcludesCondition):
        return {"kind": criterion.kind, "condition": criterion.condition}
    if isinstance(criterion, GenderIs):
        return {"kind": criterion.kind, "gender": criterion.gender}
    if isinstance(criterion, SeverityIs):
        return {"kind": criterion.kind, "severities": list(criterion.severities)}
    return {"kind": criterion.kind, "key": criterion.key, "text": criterion.text}
