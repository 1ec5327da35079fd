"""Shared response models and the error envelope."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseResponse(BaseModel):
    """Response built straight from ORM rows."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )


class ErrorDetail(BaseModel):
    """One failed field of a request validation error."""

    field: str | None = None
    message: str
    type: str | None = None


class ErrorBody(BaseModel):
    code: int
    message: Any
    correlation_id: str | None = None
    details: list[ErrorDetail] | None = None


class ErrorResponse(BaseModel):
    """``{"error": {...}}`` envelope returned for every non-2xx response."""

    error: ErrorBody

    @classmethod
    def create(
        cls,
        code: int,
        message: Any,
        correlation_id: str | None = None,
        details: list[ErrorDetail] | None = None,
    ) -> "ErrorResponse":
        return cls(
            error=ErrorBody(
                code=code,
                message=message,
                correlation_id=correlation_id,
                details=details or None,
            )
        )

    def to_content(self) -> dict[str, Any]:
        """JSON body; ``details`` is left out when there are none."""
        exclude = None if self.error.details else {"error": {"details"}}
        return self.model_dump(mode="json", exclude=exclude)
