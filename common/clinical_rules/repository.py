"""Clinical rule repository interface and in-memory implementation."""

import dataclasses
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from .models import ClinicalRule

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "clinical_rules.json"


class RuleRepository(ABC):
    """Read access to clinical rules. Must be safe for concurrent reads."""

    @abstractmethod
    def find_active_rules_by_diagnosis_code(self, diagnosis_code: str) -> list[ClinicalRule]:
        """Get active rules whose diagnosis codes contain `diagnosis_code`."""
        pass


class InMemoryRuleRepository(RuleRepository):
    """Rule repository held in a dictionary keyed by rule name.

    Writers build a new dictionary under the lock and swap it in, so readers
    iterate an unchanging snapshot without locking.
    """

    def __init__(self, rules: Iterable[ClinicalRule] = ()):
        self._rules: dict[str, ClinicalRule] = {}
        self._write_lock = threading.Lock()

        for rule in rules:
            self.create_rule(rule)

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryRuleRepository":
        """Load rules from a seed file holding {"rules": [...]}."""
        path = Path(path)
        with open(path, "r") as f:
            data = json.load(f)

        repository = cls(ClinicalRule.from_dict(r) for r in data.get("rules", []))
        logger.info(f"Loaded {len(repository._rules)} clinical rules from {path}")
        return repository

    def find_active_rules_by_diagnosis_code(self, diagnosis_code: str) -> list[ClinicalRule]:
        return [
            rule
            for rule in self._rules.values()
            if rule.is_active and rule.matches_diagnosis(diagnosis_code)
        ]

    def create_rule(self, rule: ClinicalRule) -> ClinicalRule:
        """Add a rule. Rule names are unique."""
        with self._write_lock:
            if rule.name in self._rules:
                raise ValueError(f"Clinical rule already exists: {rule.name}")
            rules = dict(self._rules)
            rules[rule.name] = rule
            self._rules = rules
        logger.debug(f"Created clinical rule '{rule.name}'")
        return rule

    def get_rule(self, name: str) -> ClinicalRule | None:
        return self._rules.get(name)

    def get_all_rules(self) -> list[ClinicalRule]:
        """Get all active rules ordered by name."""
        return sorted(
            (rule for rule in self._rules.values() if rule.is_active),
            key=lambda r: r.name,
        )

    def deactivate_rule(self, name: str) -> ClinicalRule:
        """Hide a rule from matching. Raises KeyError for unknown names."""
        with self._write_lock:
            rule = self._rules[name]
            updated = dataclasses.replace(
                rule, is_active=False, updated_at=datetime.now(timezone.utc)
            )
            rules = dict(self._rules)
            rules[name] = updated
            self._rules = rules
        logger.info(f"Deactivated clinical rule '{name}'")
        return updated


def load_default_rules(path: str | Path | None = None) -> InMemoryRuleRepository:
    """Load the packaged illustrative rule set, or the file at `path`."""
    return InMemoryRuleRepository.from_json(path or DEFAULT_RULES_PATH)
