"""Holiday data model."""

from datetime import date as Date
from typing import Any

from pydantic import BaseModel, Field, field_validator

from shop_scheduler.utils.dates import parse_calendar_date, to_date_string


class Holiday(BaseModel):
    """
    A shop-wide non-working day.

    Attributes:
        date: Calendar date of the holiday
        name: Holiday name
    """
    date: Date = Field(..., description="Holiday date")
    name: str = Field(default="", description="Holiday name")

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Date:
        return parse_calendar_date(value)

    @property
    def key(self) -> str:
        """``YYYY-MM-DD`` lookup key."""
        return to_date_string(self.date)

    def __str__(self) -> str:
        return f"{self.name} ({self.key})" if self.name else self.key
