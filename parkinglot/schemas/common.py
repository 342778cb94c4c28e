from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, field_validator

from parkinglot.utils.time import ensure_utc


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="after")
    @classmethod
    def _datetimes_in_utc(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v


class RecordSchema(BaseSchema):
    """Immutable domain record; transitions return a new, re-validated instance."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    def evolve(self, **changes: Any) -> Self:
        return type(self).model_validate({**self.model_dump(), **changes})
