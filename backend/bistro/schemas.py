from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_serializer

from .usecases.availability import CLOSED, FULL, AvailabilityResult


class AvailabilityCheck(BaseModel):
    # Naive values are read as restaurant local time.
    requested_at: datetime
    party_size: int = Field(ge=1)


class AvailabilityRead(BaseModel):
    accepted: bool
    alternatives: list[datetime]

    @field_serializer("alternatives")
    def _ser_alternatives(self, values: list[datetime]) -> list[str]:
        return [value.isoformat() for value in values]

    @classmethod
    def from_result(cls, result: AvailabilityResult) -> "AvailabilityRead":
        return cls(accepted=result.accepted, alternatives=list(result.alternatives))


class DaySlotsRead(BaseModel):
    day: date
    party_size: int
    status: Literal["open", "closed", "full"]
    slots: list[str]

    @classmethod
    def from_slots(cls, *, day: date, party_size: int, slots: list[str]) -> "DaySlotsRead":
        if slots == [CLOSED]:
            return cls(day=day, party_size=party_size, status="closed", slots=[])
        if slots == [FULL]:
            return cls(day=day, party_size=party_size, status="full", slots=[])
        return cls(day=day, party_size=party_size, status="open", slots=slots)
