"""Centralized constants for reviewkit.

All magic numbers and policy defaults live here so every layer
imports from a single source of truth.
"""

VERSION = "0.1.0"

# ---------- Time ----------
SECONDS_PER_DAY = 86400
MS_PER_SECOND = 1000

# ---------- Grades ----------
MIN_GRADE = 1
MAX_GRADE = 4

# ---------- Deck Defaults ----------
DEFAULT_NEW_CARDS_PER_DAY = 20
DEFAULT_MAX_REVIEWS_PER_DAY = 200
DEFAULT_REQUESTED_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL_DAYS = 36500  # 100 years
DEFAULT_LEARNING_STEPS_MINUTES = (1, 10)
DEFAULT_RELEARNING_STEPS_MINUTES = (10,)
DEFAULT_LEECH_THRESHOLD = 8  # reporting only, never suspends

# ---------- Statistics ----------
MATURITY_THRESHOLD_DAYS = 21
SECONDS_PER_CARD = 30  # assumed when no timing history is used
FORECAST_HORIZON_DAYS = 7
WORKLOAD_DAYS = 30
PERFORMANCE_DAYS = 30
ACCURACY_BUCKET_DAYS = 7

# ---------- Ids ----------
CARD_ID_PREFIX = "card_"
REVIEW_ID_PREFIX = "rev_"
SESSION_ID_PREFIX = "ses_"
