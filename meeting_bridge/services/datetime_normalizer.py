import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

from meeting_bridge.schemas.meeting import ScheduleMeetingRequest, ScheduledTime

logger = logging.getLogger(__name__)

MAX_SCHEDULING_WINDOW = timedelta(days=30)

# Tried in order; the first pattern that parses wins.
LOCAL_DATETIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M%z",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%MZ",
)

UTC_DATETIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
)


class DateTimeNormalizationError(Exception):
    pass


def utc_now() -> datetime:
    return datetime.now(UTC)


class DateTimeNormalizer:
    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self.clock = clock

    def normalize(self, schedule_request: ScheduleMeetingRequest) -> ScheduledTime:
        raw_local = schedule_request.start_at_local.strip()
        raw_utc = schedule_request.start_at.strip()

        if raw_local:
            parsed = _parse_with_formats(raw_local, LOCAL_DATETIME_FORMATS)
            if parsed is None:
                logger.error("Failed to parse start_at_local value=%s", raw_local)
                raise DateTimeNormalizationError(
                    f"Invalid local time format: {raw_local} (expected YYYY-MM-DDTHH:mm:ss+03:00)",
                )
            scheduled = ScheduledTime(
                scheduled_at=parsed.astimezone(UTC),
                scheduled_at_local=parsed,
                raw_local=raw_local,
            )
        elif raw_utc:
            parsed = _parse_with_formats(raw_utc, UTC_DATETIME_FORMATS)
            if parsed is None:
                logger.error("Failed to parse start_at value=%s", raw_utc)
                raise DateTimeNormalizationError(
                    f"Invalid date and time format: {raw_utc} (expected ISO 8601)",
                )
            scheduled = ScheduledTime(scheduled_at=parsed.astimezone(UTC))
        else:
            raise DateTimeNormalizationError(
                "Date and time are required (set start_at_local or start_at)",
            )

        self._validate_window(scheduled.scheduled_at)
        return scheduled

    def _validate_window(self, scheduled_at: datetime) -> None:
        now = self.clock()
        max_date = now + MAX_SCHEDULING_WINDOW
        if scheduled_at < now:
            logger.error(
                "Scheduled time in the past scheduled_at=%s now=%s",
                scheduled_at.isoformat(),
                now.isoformat(),
            )
            raise DateTimeNormalizationError("Date and time cannot be in the past")
        if scheduled_at > max_date:
            logger.error(
                "Scheduled time too far in future scheduled_at=%s max_date=%s",
                scheduled_at.isoformat(),
                max_date.isoformat(),
            )
            raise DateTimeNormalizationError("Date cannot be more than 30 days in the future")


def _parse_with_formats(raw_value: str, formats: Sequence[str]) -> datetime | None:
    for fmt in formats:
        try:
            parsed = datetime.strptime(raw_value, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        logger.debug("Parsed datetime input=%s format=%s", raw_value, fmt)
        return parsed
    return None
