"""Conversion between site run intervals (minutes) and stored intervals (seconds)."""

SECONDS_PER_MINUTE = 60


def minutes_to_interval_seconds(minutes: int) -> int:
    """Convert a run interval in whole minutes to stored seconds.

    The caller validates that minutes is positive; values are not clamped.

    Examples:
        >>> minutes_to_interval_seconds(2)
        120
    """
    return minutes * SECONDS_PER_MINUTE


def interval_seconds_to_minutes(seconds: int) -> int:
    """Convert stored interval seconds back to whole minutes.

    Examples:
        >>> interval_seconds_to_minutes(900)
        15
    """
    return seconds // SECONDS_PER_MINUTE
