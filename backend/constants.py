# backend/constants.py
"""Application constants - single source of truth for scheduling values."""

# Water breaks: one 5 minute break per full 45 minutes of drill time
WATER_BREAK_INTERVAL = 45
WATER_BREAK_DURATION = 5
WATER_BREAK_LABEL = "Water Break"

# Group names run A..H, then fall back to numbers
GROUP_LETTERS = ["A", "B", "C", "D", "E", "F", "G", "H"]
GROUP_TYPES = ["group", "partner"]

# Ideal group size band used when suggesting a group count
MIN_GROUP_SIZE = 3
MAX_GROUP_SIZE = 5
TARGET_GROUP_SIZE = 4

# Time status thresholds (percent of practice remaining)
TIME_CRITICAL_PERCENT = 10
TIME_WARNING_PERCENT = 25

DRILL_CATEGORIES = ["warmup", "hitting", "fielding", "pitching", "catching", "iq", "games"]
SKILL_LEVELS = ["beginner", "intermediate", "advanced"]
PLAYER_STATUSES = ["active", "injured"]
PRACTICE_STATUSES = ["draft", "active", "completed"]

# Document collections exposed by the API
COLLECTIONS = ["players", "drills", "coaches", "equipment", "practices"]

PLAYER_NAME_MAX_LENGTH = 50
GROUP_NAME_MAX_LENGTH = 30
DRILL_TITLE_MAX_LENGTH = 100
PRACTICE_MINUTES_MAX = 600
