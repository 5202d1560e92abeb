"""
FILE: daylist/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - DaylistError (base exception)
  - TodoNotFoundError
  - InvalidInputError
  - PersistenceError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from DaylistError for easy catching
  - Repository implementations raise PersistenceError for storage failures
  - The coordinator turns PersistenceError into a field-level rollback
"""

from typing import Optional


class DaylistError(Exception):
    """Base exception for all daylist errors."""
    pass


class TodoNotFoundError(DaylistError):
    """Todo with given ID doesn't exist."""

    def __init__(self, todo_id: str):
        self.todo_id = todo_id
        super().__init__(f"Todo {todo_id} not found")


class InvalidInputError(DaylistError):
    """Input validation failed."""

    def __init__(self, message: str):
        super().__init__(message)


class PersistenceError(DaylistError):
    """A repository call failed; nothing from that call was stored."""

    def __init__(self, message: str, todo_id: Optional[str] = None):
        self.todo_id = todo_id
        super().__init__(message)
