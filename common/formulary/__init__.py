"""Formulary catalog: medication records and drug interactions."""

from .catalog import (
    DEFAULT_FORMULARY_PATH,
    CatalogLookup,
    InMemoryFormularyCatalog,
    load_default_catalog,
)
from .models import (
    AWaReCategory,
    DrugInteractionRecord,
    InteractionSeverity,
    MedicationRecord,
)

__all__ = [
    "AWaReCategory",
    "CatalogLookup",
    "DEFAULT_FORMULARY_PATH",
    "DrugInteractionRecord",
    "InMemoryFormularyCatalog",
    "InteractionSeverity",
    "MedicationRecord",
    "load_default_catalog",
]
