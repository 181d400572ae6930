"""Guideline-derived clinical rules and their applicability criteria."""

from .criteria import (
    AgeBetween,
    CriteriaEvaluation,
    Criterion,
    Descriptive,
    ExcludesCondition,
    GenderIs,
    SeverityIs,
    evaluate_criteria,
    evaluate_criterion,
    filter_applicable_rules,
    parse_criteria,
)
from .models import ClinicalRule, RuleChoice
from .repository import (
    DEFAULT_RULES_PATH,
    InMemoryRuleRepository,
    RuleRepository,
    load_default_rules,
)

__all__ = [
    # Models
    "ClinicalRule",
    "RuleChoice",
    # Criteria
    "AgeBetween",
    "CriteriaEvaluation",
    "Criterion",
    "Descriptive",
    "ExcludesCondition",
    "GenderIs",
    "SeverityIs",
    "evaluate_criteria",
    "evaluate_criterion",
    "filter_applicable_rules",
    "parse_criteria",
    # Repository
    "DEFAULT_RULES_PATH",
    "InMemoryRuleRepository",
    "RuleRepository",
    "load_default_rules",
]
