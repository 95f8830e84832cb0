import json
import logging
from typing import Any, TypeVar

from fastapi import status
from pydantic import BaseModel, ValidationError

from meeting_bridge.core.errors import GENERAL_FIELD, MeetingRequestError
from meeting_bridge.schemas.meeting import (
    MAX_DURATION_MINUTES,
    MAX_TITLE_LENGTH,
    MIN_DURATION_MINUTES,
    FieldError,
    InstantCallRequest,
    ScheduleMeetingRequest,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_RULE_MESSAGES: dict[tuple[str, str], str] = {
    ("channel_id", "string_too_short"): "channel_id is required",
    ("user_id", "string_too_short"): "user_id is required",
    ("duration_minutes", "greater_than_equal"): (
        f"Duration must be at least {MIN_DURATION_MINUTES} minutes"
    ),
    ("duration_minutes", "less_than_equal"): (
        f"Duration cannot exceed {MAX_DURATION_MINUTES} minutes (8 hours)"
    ),
    ("title", "string_too_long"): (
        f"Title cannot be longer than {MAX_TITLE_LENGTH} characters"
    ),
}


def validate_schedule_request(raw_body: bytes) -> ScheduleMeetingRequest:
    payload = _load_json_object(raw_body)
    participant_ids = payload.get("participant_ids")
    logger.info(
        "Schedule request received channel_id=%s user_id=%s start_at_local=%s "
        "duration_minutes=%s participant_count=%s",
        payload.get("channel_id"),
        payload.get("user_id"),
        payload.get("start_at_local"),
        payload.get("duration_minutes"),
        len(participant_ids) if isinstance(participant_ids, list) else 0,
    )
    return _validate_model(ScheduleMeetingRequest, payload)


def validate_instant_call_request(raw_body: bytes) -> InstantCallRequest:
    payload = _load_json_object(raw_body)
    logger.info(
        "Instant call request received channel_id=%s user_id=%s has_root_id=%s",
        payload.get("channel_id"),
        payload.get("user_id"),
        bool(payload.get("root_id")),
    )
    return _validate_model(InstantCallRequest, payload)


def _load_json_object(raw_body: bytes) -> dict[str, Any]:
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error("Failed to parse request JSON error=%s", exc)
        raise MeetingRequestError.single(
            status.HTTP_400_BAD_REQUEST,
            GENERAL_FIELD,
            f"Invalid JSON format: {exc}",
        ) from exc

    if not isinstance(payload, dict):
        raise MeetingRequestError.single(
            status.HTTP_400_BAD_REQUEST,
            GENERAL_FIELD,
            "Invalid JSON format: request body must be a JSON object",
        )
    return payload


def _validate_model(model_cls: type[ModelT], payload: dict[str, Any]) -> ModelT:
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        errors = _field_errors_from_validation(exc)
        logger.error("Validation failed error_count=%s", len(errors))
        raise MeetingRequestError(status.HTTP_400_BAD_REQUEST, errors) from exc


def _field_errors_from_validation(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    seen_fields: set[str] = set()
    for raw_error in exc.errors(include_url=False):
        location = raw_error.get("loc") or ()
        field = str(location[0]) if location else GENERAL_FIELD
        # One message per field keeps the list readable for list-typed inputs.
        if field in seen_fields:
            continue
        seen_fields.add(field)
        message = _RULE_MESSAGES.get((field, raw_error["type"]))
        if message is None:
            message = f"{field} is invalid: {raw_error['msg']}"
        errors.append(FieldError(field=field, message=message))
    return errors
