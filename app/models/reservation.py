import re
from datetime import date, datetime
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.core.exceptions import ValidationError

TIME_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{2}))?$")


class ReservationCreate(BaseModel):
    """Body of POST /reservations. Required fields are checked by the booking service."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    fullname: Optional[str] = None
    date: Optional[str] = None
    time: Optional[Union[str, int]] = None
    # The first frontend posted the label as "services"
    service: Optional[str] = Field(default=None, validation_alias=AliasChoices("service", "services"))
    message: Optional[str] = None
    mobile: Optional[str] = None


class Reservation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    fullname: str
    date: str
    time: str
    service: str
    message: Optional[str] = None
    mobile: str
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
    )

    @field_validator("time", mode="before")
    @classmethod
    def stored_hour(cls, value):
        # Older rows were saved as "HH:MM"; keep only the hour
        match = TIME_PATTERN.match(str(value).strip())
        if not match:
            raise ValueError(f"Unreadable stored time {value!r}")
        return str(int(match.group(1)))

    @property
    def hour(self) -> int:
        return int(self.time)


def normalize_time(value: Union[str, int, None]) -> str:
    """
    Canonical stored form of a start time: the hour as a string, "0".."23".
    Accepts "9", "09", "9:00" and "09:00"; minutes other than 00 are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("Time is required.")

    if isinstance(value, int):
        hour, minutes = value, 0
    else:
        match = TIME_PATTERN.match(str(value).strip())
        if not match:
            raise ValidationError(f"Invalid time '{value}'. Use a whole hour between 0 and 23.")
        hour = int(match.group(1))
        minutes = int(match.group(2) or 0)

    if minutes != 0:
        raise ValidationError(f"Invalid time '{value}'. Reservations start on the hour.")
    if not 0 <= hour <= 23:
        raise ValidationError(f"Invalid time '{value}'. Use a whole hour between 0 and 23.")

    return str(hour)


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError):
        raise ValidationError(f"Invalid date '{value}'. Use the YYYY-MM-DD format.")
