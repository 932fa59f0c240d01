from __future__ import annotations

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RentEntry(BaseModel):
    account: str
    cost: float
    description: Optional[str] = None


class Receipt(BaseModel):
    """One externally observable action taken during a stage (e.g. a transaction)."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    tx: str
    description: Optional[str] = None
    rent: Optional[List[RentEntry]] = None
    sb_fee: Optional[float] = Field(default=None, alias="sbFee")

    @field_validator("rent", mode="before")
    @classmethod
    def _drop_empty_rent(cls, v: Any) -> Any:
        # stray empty slots in a cost breakdown are dropped, not kept as nulls
        if v is None:
            return None
        return [entry for entry in v if entry]
