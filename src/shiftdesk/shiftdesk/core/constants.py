"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LOG_LIMIT = 50
DEFAULT_RECENT_ACTIVITY_LIMIT = 20
DEFAULT_PENDING_LIMIT = 200

# Check-in is refused once lateness (minutes past shift start + grace) exceeds
# grace + this value, i.e. after shift start + 2 * grace + cutoff.
DEFAULT_CHECKIN_CUTOFF_MINUTES = 60

DEFAULT_MAX_BREAKS_PER_DAY = 2
DEFAULT_MIN_BREAK_MINUTES = 10
DEFAULT_MAX_BREAK_MINUTES = 30
DEFAULT_COOLDOWN_MINUTES = 90

MINUTES_PER_DAY = 24 * 60
