"""Deal Pydantic schemas for the aggregate API response."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DealResponse(BaseModel):
    """Wire shape of a single normalized deal."""

    model_config = ConfigDict(from_attributes=True)

    vendor: str
    title: str
    price_str: str
    price_val: float
    link: str
    image: str


class FailureDescriptor(BaseModel):
    """A vendor that could not be fetched during an aggregation cycle."""

    vendor: str
    error: str
    url: str


class AggregateResponse(BaseModel):
    """Merged result of one fan-out across all vendors.

    Serialized with aliases so the wire format uses ``searchQuery``.
    """

    model_config = ConfigDict(populate_by_name=True)

    deals: List[DealResponse] = []
    failed: List[FailureDescriptor] = []
    cached: bool = False
    timestamp: int  # Milliseconds since the Unix epoch, taken before the fan-out
    search_query: Optional[str] = Field(default=None, alias="searchQuery")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(BaseModel):
    """Body returned when aggregation fails as a whole."""

    error: str
    deals: List[DealResponse] = []
    failed: List[FailureDescriptor] = []
