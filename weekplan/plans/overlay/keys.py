"""Composite overlay key: (week_number, day, slot_index).

The key is value-typed in memory and only rendered to the
"{week}-{day}-{slotIndex}" string at the storage boundary.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from weekplan.plans.calendar.anchor import canonical_day, day_offset

_STORAGE_KEY_RE = re.compile(r"^(\d+)-([A-Za-z]+)-(\d+)$")


class OverlayKey(BaseModel):
    """Join key across the base plan, modified overlay and completion overlay."""

    model_config = ConfigDict(frozen=True)

    week_number: int = Field(ge=1)
    day: str
    slot_index: int = Field(default=0, ge=0)

    @field_validator("day")
    @classmethod
    def normalize_day(cls, value: str) -> str:
        return canonical_day(value)

    def storage_key(self) -> str:
        return f"{self.week_number}-{self.day}-{self.slot_index}"

    def with_slot(self, slot_index: int) -> "OverlayKey":
        return OverlayKey(week_number=self.week_number, day=self.day, slot_index=slot_index)

    def same_day(self, other: "OverlayKey") -> bool:
        return self.week_number == other.week_number and self.day == other.day

    @property
    def sort_key(self) -> tuple[int, int, int]:
        offset = day_offset(self.day)
        return (self.week_number, 7 if offset is None else offset, self.slot_index)

    @classmethod
    def parse(cls, storage_key: str) -> "OverlayKey":
        """Parse a "{week}-{day}-{slotIndex}" storage key.

        Raises:
            ValueError: If the key is not in storage format
        """
        match = _STORAGE_KEY_RE.match(storage_key.strip())
        if match is None:
            raise ValueError(f"Invalid overlay key: {storage_key!r}")
        week_number, day, slot_index = match.groups()
        return cls(week_number=int(week_number), day=day, slot_index=int(slot_index))

    def __str__(self) -> str:
        return self.storage_key()


def day_keys(overlay: dict[OverlayKey, object], week_number: int, day: str) -> list[OverlayKey]:
    """Return the keys of one week/day in slot order."""
    day_name = canonical_day(day)
    keys = [key for key in overlay if key.week_number == week_number and key.day == day_name]
    return sorted(keys, key=lambda key: key.slot_index)
