"""
FILE: daylist/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - VALID_CATEGORIES: All valid category values
  - CATEGORY_TODAY / CATEGORY_BACKLOG
  - VALID_PRIORITIES, PRIORITY_VALUES, PRIORITY_CYCLE
  - UNGROUPED: Display name for the empty stored group
  - PURGE_AFTER_DAYS, DELETED_WINDOW_DAYS, NEXT_UP_LIMIT
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Centralized constants to avoid magic strings
  - Single source of truth for category and priority values
"""

# Category constants
CATEGORY_TODAY = "today"
CATEGORY_BACKLOG = "backlog"
VALID_CATEGORIES = (CATEGORY_TODAY, CATEGORY_BACKLOG)
DEFAULT_CATEGORY = CATEGORY_TODAY

# Priority constants, lowest first
VALID_PRIORITIES = ("", "!", "!!", "!!!")
PRIORITY_VALUES = {"!!!": 3, "!!": 2, "!": 1, "": 0}
PRIORITY_CYCLE = VALID_PRIORITIES

# Stored as "" but shown as "Ungrouped"
UNGROUPED = "Ungrouped"

# Retention windows
PURGE_AFTER_DAYS = 365
DELETED_WINDOW_DAYS = 30

# Today view
NEXT_UP_LIMIT = 3
