"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import date

ATTENDANCE_CONFIG_KEY = "attendance_config"

# First-run attendance schedule: Tuesday 15:20-15:25 and 16:35-16:40.
DEFAULT_DAY_OF_WEEK = 2
DEFAULT_SESSION1_START = (15, 20)
DEFAULT_SESSION1_DURATION = 5
DEFAULT_SESSION2_START = (16, 35)
DEFAULT_SESSION2_DURATION = 5
DEFAULT_WEEK_START_DATE = date(2026, 1, 6)

MAX_SESSION_DURATION_MINUTES = 24 * 60
DEFAULT_LIST_LIMIT = 500
DEBUG_CHECKIN_NOTE = "[DEBUG] 调试模式点名"

DAY_NAMES = ("周日", "周一", "周二", "周三", "周四", "周五", "周六")
