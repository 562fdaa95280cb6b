"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LECTURE_SLOT = 1
MAX_LECTURE_SLOTS = 7

# Attendance percentage below this is flagged "at risk".
AT_RISK_THRESHOLD = 75

KEY_SEPARATOR = "|"

# Literal used for the "all batches in branch" selector at storage/HTTP boundaries.
ALL_BATCHES_TOKEN = "ALL"

DEFAULT_STORE_TIMEOUT_SECONDS = 10
STORE_RETRY_AFTER_SECONDS = 2
