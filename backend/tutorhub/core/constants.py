"""Shared constants for the tutorhub backend."""

BRAND_NAME = "Tutorhub"

DEFAULT_TIMEZONE = "America/New_York"

# dayOfWeek convention for recurring slots: 0 = Sunday ... 6 = Saturday
SUNDAY = 0
SATURDAY = 6

# Weekday template handed to teachers the first time their availability is read
DEFAULT_RECURRING_WINDOWS = (
    ("09:00", "10:00"),
    ("10:30", "11:30"),
    ("13:00", "14:00"),
    ("14:30", "15:30"),
    ("16:00", "17:00"),
)
DEFAULT_RECURRING_DAYS = (1, 2, 3, 4, 5)
