from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from meeting_bridge.schemas.meeting import ErrorResponse, FieldError

GENERAL_FIELD = "general"


class MeetingRequestError(HTTPException):
    """HTTP error whose body is a list of field-scoped messages."""

    def __init__(
        self,
        status_code: int,
        errors: list[FieldError],
        *,
        execution_id: str | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=[error.model_dump() for error in errors])
        self.errors = errors
        self.execution_id = execution_id

    @classmethod
    def single(
        cls,
        status_code: int,
        field: str,
        message: str,
        *,
        execution_id: str | None = None,
    ) -> "MeetingRequestError":
        return cls(
            status_code,
            [FieldError(field=field, message=message)],
            execution_id=execution_id,
        )

    @classmethod
    def internal(cls, message: str = "Internal server error") -> "MeetingRequestError":
        return cls.single(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERAL_FIELD, message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(errors=self.errors, execution_id=self.execution_id)


async def meeting_request_error_handler(request: Request, exc: MeetingRequestError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )
