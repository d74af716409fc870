"""Input validation — checked before anything is persisted."""

from __future__ import annotations

MIN_GOAL_MINUTES = 1
MAX_GOAL_MINUTES = 1440  # a full day


class ValidationError(ValueError):
    """Raised when user input is rejected before reaching the store."""


def validate_task_text(text: str) -> str:
    """Return the stripped task text, rejecting blanks."""
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError("Task text cannot be empty.")
    return cleaned


def validate_goal_minutes(minutes: int) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValidationError(f"Goal must be a whole number of minutes, got {minutes!r}.")
    if not MIN_GOAL_MINUTES <= minutes <= MAX_GOAL_MINUTES:
        raise ValidationError(
            f"Goal must be between {MIN_GOAL_MINUTES} and {MAX_GOAL_MINUTES} minutes."
        )
    return minutes


NOTE_COLORS = ("yellow", "pink", "blue", "green", "purple", "orange")
DEFAULT_NOTE_COLOR = NOTE_COLORS[0]


def validate_note(
    content: str, title: str | None = None, color: str = DEFAULT_NOTE_COLOR,
) -> tuple[str, str | None, str]:
    """Return cleaned (content, title, color) for a sticky note.

    Blank titles become None. Unknown colors are rejected.
    """
    cleaned = (content or "").strip()
    if not cleaned:
        raise ValidationError("Note cannot be empty.")
    if color not in NOTE_COLORS:
        raise ValidationError(f"Color must be one of: {', '.join(NOTE_COLORS)}.")
    return cleaned, (title or "").strip() or None, color
