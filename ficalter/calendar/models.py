"""Data models for the calendar block tree."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ROOT_BLOCK_TYPE = "VCALENDAR"
DEFAULT_SELECTOR = "SUMMARY"


def normalize_key(text: str) -> str:
    """Case-fold text for key, type and filter token comparisons."""
    return text.upper()


class Property(BaseModel):
    """A single ``key:value`` line attached to a block.

    The key keeps its original casing for output; comparisons go through
    ``normalize_key``.
    """

    key: str
    value: str

    model_config = ConfigDict(frozen=True)

    def to_line(self) -> str:
        return f"{self.key}:{self.value}"


class Block(BaseModel):
    """One ``BEGIN:<type>`` ... ``END:<type>`` region.

    Properties and children keep insertion order, which matters for
    round-tripping and for diffing input against output. Instances are
    immutable once built.
    """

    type: str = Field(..., description="Upper-cased block type, e.g. VEVENT")
    properties: tuple[Property, ...] = Field(default_factory=tuple)
    children: tuple["Block", ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    @field_validator("type")
    @classmethod
    def _upper_case_type(cls, value: str) -> str:
        if not value:
            raise ValueError("block type must not be empty")
        return normalize_key(value)

    def get(self, key: str) -> Optional[str]:
        """Return the value of the first property named ``key``, or None.

        Only the first match is returned even when the key is repeated.
        """
        wanted = normalize_key(key)
        for prop in self.properties:
            if normalize_key(prop.key) == wanted:
                return prop.value
        return None

    def count_child_types(self) -> dict[str, int]:
        """Count direct children per block type."""
        counts: dict[str, int] = {}
        for child in self.children:
            counts[child.type] = counts.get(child.type, 0) + 1
        return counts


Block.model_rebuild()
