"""Caller input validation

Inputs are checked here before any remote or model call is made.
"""

from datetime import date, datetime
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from chat_digest.core.errors import ValidationError

ProviderName = Literal["ollama", "claude"]

_DATE_FORMAT = "%Y-%m-%d"

RequestT = TypeVar("RequestT", bound=BaseModel)


def _parse_day(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.strptime(value, _DATE_FORMAT).date()
        except ValueError as exc:
            raise ValueError("Date must be in YYYY-MM-DD format") from exc
    return value


class RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class ConversationSelection(RequestModel):
    chat_id: str = Field(..., min_length=1)
    chat_name: str | None = None
    chat_type: Literal["oneOnOne", "group", "meeting"] | None = None
    status: Literal["active", "ignored"] = "active"


class MessageFetchRequest(RequestModel):
    chat_id: str = Field(..., min_length=1)


class SummaryRequest(RequestModel):
    chat_id: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    provider: ProviderName | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _strict_day(cls, value: Any) -> Any:
        return _parse_day(value)

    @model_validator(mode="after")
    def _ordered(self) -> "SummaryRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @property
    def period_label(self) -> str:
        if self.start_date == self.end_date:
            return self.start_date.isoformat()
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"


def parse_request(model: type[RequestT], payload: dict[str, Any]) -> RequestT:
    """Validate ``payload`` against ``model``, raising our ValidationError with field detail."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "__root__",
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        fields = ", ".join(d["field"] for d in details)
        raise ValidationError(f"Invalid input: {fields}", details=details) from exc
