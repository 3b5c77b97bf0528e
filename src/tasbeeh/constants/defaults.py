"""
Seed data and storage keys shared by the stores and the controller.
"""

# Counters created when a user (or a fresh local store) has none.
DEFAULT_COUNTERS = [
    {"name": "سبحان الله", "color": "green", "icon": "leaf"},
    {"name": "الحمد لله", "color": "teal", "icon": "heart"},
    {"name": "الله أكبر", "color": "gold", "icon": "star"},
]

# Local key/value store keys
COUNTERS_KEY = "tasbeeh_counters"
SESSIONS_KEY = "tasbeeh_sessions"
STATS_KEY = "tasbeeh_stats"
ACTIVE_SESSION_KEY = "tasbeeh_active_session"
SELECTED_COUNTER_KEY = "tasbeeh_selected_counter"

# Presentation preference; the controller never reads it.
DARK_MODE_KEY = "tasbeeh_dark_mode"

# Reserved for gamification data written by other clients; never read or written here.
POINTS_KEY = "tasbeeh_points"
ACHIEVEMENTS_KEY = "tasbeeh_achievements"

# Remote sync read limits
SESSION_SYNC_LIMIT = 100
STATS_SYNC_LIMIT = 90
