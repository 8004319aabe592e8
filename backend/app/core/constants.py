"""
Application constants for the report triage service.

Centralizes time windows, limits and cache lifetimes used across intake,
review and the admin surface. Scoring weights live in TriageConfig
(app/models/triage.py), not here.
"""

# Abuse prevention: one report per reporter per target within this window
DEDUP_WINDOW_HOURS = 24

# Corroboration: independent reports on the same target inside this window
# raise the new report's score. Same value as the dedup window today, but a
# separate business rule.
CORROBORATION_WINDOW_HOURS = 24

# History lookups
PREVIOUS_REPORTS_LIMIT = 10  # Prior reports on the same target fed to triage
RELATED_REPORTS_LIMIT = 10  # Shown on the admin detail view

# Cache lifetimes (seconds)
HISTORY_CACHE_TTL_SECONDS = 600  # Reporter / target aggregates
RECENT_REPORTS_CACHE_TTL_SECONDS = 300
STATS_CACHE_TTL_SECONDS = 300

# Admin stats
TREND_DAYS = 7

# Content length limits
REPORT_DESCRIPTION_MAX_LENGTH = 2000
REPORT_CATEGORY_MAX_LENGTH = 50
RESOLUTION_NOTES_MAX_LENGTH = 2000

# Pagination defaults
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

# Sort columns accepted by the admin list endpoint
REPORT_SORT_FIELDS = ("created_at", "updated_at", "priority_score", "status", "category")

# Auto-action marker written on hidden content
AUTO_HIDE_REASON = "auto_report"

# Priorities that page a moderator by email
NOTIFY_PRIORITIES = ("critical", "high")
