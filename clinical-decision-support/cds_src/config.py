"""Configuration for the clinical decision support engines.

Values come from environment variables or a .env file via python-decouple.
Engines also accept explicit overrides in their constructors.
"""

from decouple import config as env

from common.clinical_rules import DEFAULT_RULES_PATH
from common.formulary import DEFAULT_FORMULARY_PATH


class Config:
    """Settings read once at import time."""

    FORMULARY_PATH = env('CDS_FORMULARY_PATH', default=str(DEFAULT_FORMULARY_PATH))
    RULES_PATH = env('CDS_RULES_PATH', default=str(DEFAULT_RULES_PATH))

    # Rules engine
    FALLBACK_CANDIDATES = env('CDS_FALLBACK_CANDIDATES', default=5, cast=int)

    # Safety engine
    HIGH_DOSE_THRESHOLD = env('CDS_HIGH_DOSE_THRESHOLD', default=5000, cast=float)

    # Logging
    LOG_LEVEL = env('LOG_LEVEL', default='INFO')

    # Error monitoring - Sentry
    SENTRY_DSN = env('SENTRY_DSN', default='')
    SENTRY_TRACES_SAMPLE_RATE = env('SENTRY_TRACES_SAMPLE_RATE', default=0.1, cast=float)
    ENVIRONMENT = env('ENVIRONMENT', default='development')


config = Config()
