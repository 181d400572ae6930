"""Data models for guideline-derived clinical rules."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from common.formulary import AWaReCategory

from .criteria import Criterion, criterion_to_dict, parse_criteria

EVIDENCE_LEVELS = ("A", "B", "C")


@dataclass(frozen=True)
class RuleChoice:
    """A medication choice on a rule, with its authored dose template.

    dose, frequency, duration and route are descriptive guideline text. They
    are loaded and serialized but never applied: recommended doses always
    come from the dosing pipeline (cds_src.dosing).
    """
    medication_id: str
    dose: str | None = None
    frequency: str | None = None
    duration: str | None = None
    route: str | None = None
    reason: str | None = None  # Alternatives only: when to prefer this choice

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleChoice":
        return cls(
            medication_id=data["medication_id"],
            dose=data.get("dose"),
            frequency=data.get("frequency"),
            duration=data.get("duration"),
            route=data.get("route"),
            reason=data.get("reason"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "medication_id": self.medication_id,
            "dose": self.dose,
            "frequency": self.frequency,
            "duration": self.duration,
            "route": self.route,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ClinicalRule:
    """A treatment rule matched by diagnosis code."""
    name: str
    diagnosis_codes: frozenset[str]
    first_line: RuleChoice
    alternatives: tuple[RuleChoice, ...] = ()
    criteria: tuple[Criterion, ...] = ()
    description: str = ""
    aware_preference: AWaReCategory | None = None
    guideline_source: str | None = None
    evidence_level: str | None = None
    is_active: bool = True
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not self.name:
            raise ValueError("Clinical rule requires a name")
        if self.evidence_level is not None and self.evidence_level not in EVIDENCE_LEVELS:
            raise ValueError(
                f"Invalid evidence level {self.evidence_level!r} for rule '{self.name}'"
            )
        # Naive timestamps are UTC; keeps updated_at comparable across sources
        if self.updated_at.tzinfo is None:
            object.__setattr__(self, "updated_at", self.updated_at.replace(tzinfo=timezone.utc))
        else:
            object.__setattr__(self, "updated_at", self.updated_at.astimezone(timezone.utc))

    def matches_diagnosis(self, diagnosis_code: str | None) -> bool:
        return diagnosis_code is not None and diagnosis_code in self.diagnosis_codes

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClinicalRule":
        """Create from a rule seed entry."""
        aware = data.get("aware_preference")
        updated_at = data.get("updated_at")
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            diagnosis_codes=frozenset(data.get("diagnosis_codes", [])),
            criteria=parse_criteria(data.get("patient_criteria")),
            first_line=RuleChoice.from_dict(data["first_line"]),
            alternatives=tuple(RuleChoice.from_dict(a) for a in data.get("alternatives", [])),
            aware_preference=AWaReCategory(aware.lower()) if aware else None,
            guideline_source=data.get("guideline_source"),
            evidence_level=data.get("evidence_level"),
            is_active=bool(data.get("is_active", True)),
            updated_at=(
                datetime.fromisoformat(updated_at) if updated_at else datetime.now(timezone.utc)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "diagnosis_codes": sorted(self.diagnosis_codes),
            "criteria": [criterion_to_dict(c) for c in self.criteria],
            "first_line": self.first_line.to_dict(),
            "alternatives": [a.to_dict() for a in self.alternatives],
            "aware_preference": self.aware_preference.value if self.aware_preference else None,
            "guideline_source": self.guideline_source,
            "evidence_level": self.evidence_level,
            "is_active": self.is_active,
            "updated_at": self.updated_at.isoformat(),
        }
