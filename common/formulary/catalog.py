"""Formulary catalog lookup interface and in-memory implementation."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from .models import AWaReCategory, DrugInteractionRecord, MedicationRecord

logger = logging.getLogger(__name__)

DEFAULT_FORMULARY_PATH = Path(__file__).parent / "data" / "formulary.json"


class CatalogLookup(ABC):
    """Read-only access to formulary medications and interactions.

    Implementations must be safe for concurrent reads.
    """

    @abstractmethod
    def find_medication_by_id(self, medication_id: str) -> MedicationRecord | None:
        """Get a medication by ID, or None if the catalog has no such record."""
        pass

    @abstractmethod
    def find_interaction(
        self, medication_a_id: str, medication_b_id: str
    ) -> DrugInteractionRecord | None:
        """Get the interaction for a pair of medications in either order."""
        pass

    @abstractmethod
    def find_active_access_antibiotics(self, limit: int) -> list[MedicationRecord]:
        """Get up to `limit` active Access antibiotics ordered by generic name."""
        pass


class InMemoryFormularyCatalog(CatalogLookup):
    """Catalog backed by dictionaries loaded once at construction."""

    def __init__(
        self,
        medications: Iterable[MedicationRecord] = (),
        interactions: Iterable[DrugInteractionRecord] = (),
    ):
        self._medications: dict[str, MedicationRecord] = {}
        self._interactions: dict[frozenset[str], DrugInteractionRecord] = {}

        for medication in medications:
            self._medications[medication.id] = medication
        for interaction in interactions:
            self._interactions[interaction.pair] = interaction

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryFormularyCatalog":
        """Load a catalog from a formulary seed file.

        The file holds {"medications": [...], "interactions": [...]}.
        """
        path = Path(path)
        with open(path, "r") as f:
            data = json.load(f)

        catalog = cls(
            medications=[MedicationRecord.from_dict(m) for m in data.get("medications", [])],
            interactions=[
                DrugInteractionRecord.from_dict(i) for i in data.get("interactions", [])
            ],
        )
        logger.info(
            f"Loaded formulary from {path}: {len(catalog._medications)} medications, "
            f"{len(catalog._interactions)} interactions"
        )
        return catalog

    def find_medication_by_id(self, medication_id: str) -> MedicationRecord | None:
        return self._medications.get(medication_id)

    def find_interaction(
        self, medication_a_id: str, medication_b_id: str
    ) -> DrugInteractionRecord | None:
        return self._interactions.get(frozenset((medication_a_id, medication_b_id)))

    def find_active_access_antibiotics(self, limit: int) -> list[MedicationRecord]:
        candidates = [
            med
            for med in self._medications.values()
            if med.is_active
            and med.is_antibiotic
            and med.aware_category == AWaReCategory.ACCESS
        ]
        candidates.sort(key=lambda m: (m.generic_name.lower(), m.id))
        return candidates[:limit]


def load_default_catalog(path: str | Path | None = None) -> InMemoryFormularyCatalog:
    """Load the packaged illustrative formulary, or the file at `path`."""
    return InMemoryFormularyCatalog.from_json(path or DEFAULT_FORMULARY_PATH)
