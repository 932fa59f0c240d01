from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import DisplayConfig
from .stage import StageRecord


class MeterReport(BaseModel):
    """Document written by finalize(); exactly one of cluster / rpc_url is set."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    cluster: Optional[str] = None
    rpc_url: Optional[str] = Field(default=None, alias="rpcUrl")
    config: DisplayConfig
    stages: List[StageRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _one_location(self) -> "MeterReport":
        if (self.cluster is None) == (self.rpc_url is None):
            raise ValueError("report needs exactly one of cluster or rpcUrl")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
