"""Safety check modules."""

from .age_checks import AgeSpecificCheck
from .allergy_checks import AllergyCheck
from .contraindication_checks import ContraindicationCheck
from .dose_checks import DoseRangeCheck
from .duplicate_checks import DuplicateTherapyCheck
from .interaction_checks import DrugInteractionCheck
from .organ_function_checks import OrganFunctionCheck
from .pregnancy_checks import PregnancyLactationCheck

__all__ = [
    "AgeSpecificCheck",
    "AllergyCheck",
    "ContraindicationCheck",
    "DoseRangeCheck",
    "DrugInteractionCheck",
    "DuplicateTherapyCheck",
    "OrganFunctionCheck",
    "PregnancyLactationCheck",
]
