"""Data models for the formulary catalog."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class AWaReCategory(str, Enum):
    """WHO AWaRe antibiotic stewardship category."""
    ACCESS = "access"
    WATCH = "watch"
    RESERVE = "reserve"
    NOT_APPLICABLE = "not_applicable"

    @classmethod
    def display_name(cls, value: "AWaReCategory | str") -> str:
        """Get human-readable display name for a category."""
        display_names = {
            cls.ACCESS: "Access",
            cls.WATCH: "Watch",
            cls.RESERVE: "Reserve",
            cls.NOT_APPLICABLE: "Not Applicable",
        }
        if isinstance(value, str) and not isinstance(value, cls):
            try:
                value = cls(value.lower())
            except ValueError:
                return value.replace("_", " ").title()
        return display_names.get(value, value.value)


class InteractionSeverity(str, Enum):
    """Severity of a known drug-drug interaction."""
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CONTRAINDICATED = "contraindicated"


@dataclass(frozen=True)
class MedicationRecord:
    """A single formulary medication."""
    id: str
    generic_name: str
    brand_name: str | None = None
    atc_code: str | None = None
    aware_category: AWaReCategory = AWaReCategory.NOT_APPLICABLE
    is_antibiotic: bool = False
    therapeutic_class: str | None = None
    dosage_form: str | None = None
    strength: str = ""
    route: str = "oral"
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MedicationRecord":
        """Create from a formulary seed entry."""
        return cls(
            id=data["id"],
            generic_name=data["generic_name"],
            brand_name=data.get("brand_name"),
            atc_code=data.get("atc_code"),
            aware_category=AWaReCategory(
                (data.get("aware_category") or AWaReCategory.NOT_APPLICABLE.value).lower()
            ),
            is_antibiotic=bool(data.get("is_antibiotic", False)),
            therapeutic_class=data.get("therapeutic_class"),
            dosage_form=data.get("dosage_form"),
            strength=data.get("strength") or "",
            route=data.get("route") or "oral",
            is_active=bool(data.get("is_active", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "generic_name": self.generic_name,
            "brand_name": self.brand_name,
            "atc_code": self.atc_code,
            "aware_category": self.aware_category.value,
            "is_antibiotic": self.is_antibiotic,
            "therapeutic_class": self.therapeutic_class,
            "dosage_form": self.dosage_form,
            "strength": self.strength,
            "route": self.route,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class DrugInteractionRecord:
    """A known interaction between two medications.

    The pair is unordered: (medication_a_id, medication_b_id) describes the
    same interaction as (medication_b_id, medication_a_id).
    """
    medication_a_id: str
    medication_b_id: str
    severity: InteractionSeverity
    description: str
    management: str | None = None

    @property
    def pair(self) -> frozenset[str]:
        return frozenset((self.medication_a_id, self.medication_b_id))

    def involves(self, medication_id: str) -> bool:
        return medication_id in (self.medication_a_id, self.medication_b_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DrugInteractionRecord":
        """Create from a formulary seed entry."""
        return cls(
            medication_a_id=data["medication_a_id"],
            medication_b_id=data["medication_b_id"],
            severity=InteractionSeverity(data["severity"].lower()),
            description=data.get("description") or "",
            management=data.get("management"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "medication_a_id": self.medication_a_id,
            "medication_b_id": self.medication_b_id,
            "severity": self.severity.value,
            "description": self.description,
            "management": self.management,
        }
