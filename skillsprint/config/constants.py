"""
Application constants
"""

# Backing store REST API
REST_API_PATH = "/rest/v1"
AUTH_API_PATH = "/auth/v1"

# Tables
TABLE_PROJECTS = "projects"
TABLE_TASKS = "tasks"
TABLE_CATEGORIES = "categories"
TABLE_SKILLS = "skills"
TABLE_TASK_SKILLS = "task_skills"
TABLE_CAREER_GOALS = "career_goals"
TABLE_REVIEW_CADENCE = "review_cadence"
TABLE_REVIEW_SESSIONS = "review_sessions"

# Sort ranks (lower sorts first)
STATUS_RANK = {"todo": 0, "in_progress": 1, "done": 2}
PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}  # unset sorts after all of these

# Views
CALENDAR_MAX_TASKS_PER_DAY = 3
TIMELINE_SCALE_TICKS = 10

# Category palette, first entry is the default
CATEGORY_COLORS = [
    "#3b82f6",  # blue
    "#10b981",  # green
    "#f59e0b",  # amber
    "#ef4444",  # red
    "#8b5cf6",  # violet
    "#ec4899",  # pink
    "#14b8a6",  # teal
    "#6b7280",  # gray
]

# Reviews
ONE_ON_ONE_SESSIONS_AHEAD = 4
UPCOMING_SESSIONS_LIMIT = 5
RECENT_COMPLETED_DAYS = 30

# Retry configuration (reads only, mutations are never retried)
MAX_RETRIES = 3
RETRY_DELAY = 1  # seconds

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
