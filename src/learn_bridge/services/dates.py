"""Date helpers for rendering Learn timestamps."""

from datetime import UTC, datetime, timedelta

from learn_bridge.domain.outcomes import ErrorKind, Outcome

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
CALENDAR_DATE_FORMAT = "%m/%d/%Y"


def to_calendar_date(epoch_seconds: int | None) -> Outcome[str]:
    """Convert epoch seconds into an MM/DD/YYYY date in UTC."""
    if epoch_seconds is None:
        return Outcome.failure(ErrorKind.MISSING_VALUE, "No date value")
    try:
        moment = _EPOCH + timedelta(seconds=epoch_seconds)
    except (OverflowError, ValueError):
        return Outcome.failure(
            ErrorKind.INVALID_VALUE, f"Date value {epoch_seconds} is out of range"
        )
    return Outcome.success(moment.strftime(CALENDAR_DATE_FORMAT))
