# v6intake/core/models.py
import datetime
from ipaddress import IPv6Address
from typing import List, Optional

from pydantic import BaseModel, Field

NYBBLE_COUNT = 32
NYBBLE_VALUES = 16


class AddressSet(BaseModel):
    """
    A named, ordered list of IPv6 addresses.
    This is the input/output format passed between the intake stages.
    """
    name: str
    description: Optional[str] = None
    addresses: List[IPv6Address] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.addresses)

    def derive(self, addresses: List[IPv6Address], description: Optional[str] = None) -> "AddressSet":
        """Returns a new set with the same name holding `addresses`."""
        return AddressSet.model_construct(
            name=self.name,
            description=description or self.description,
            addresses=addresses,
        )


def _empty_counts() -> List[List[int]]:
    return [[0] * NYBBLE_VALUES for _ in range(NYBBLE_COUNT)]


class StatisticalModel(BaseModel):
    """
    The address model that later phases train and sample from.
    Intake only ever creates an empty one; the fields are opaque here.
    """
    name: str
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    digest_count: int = 0
    nybble_counts: List[List[int]] = Field(default_factory=_empty_counts)


class IntakeSummary(BaseModel):
    """What a completed intake run did to the workspace."""
    input_path: str
    input_encoding: str
    loaded: int
    unique: int
    surviving: int
    files_deleted: int
    model_path: str
    results_path: str
    output_path: str
    previous_phase: str
    phase: str
