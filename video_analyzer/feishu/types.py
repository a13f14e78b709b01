from typing import Dict, Union

from pydantic import BaseModel, ConfigDict, Field

FieldValue = Union[str, int, float]

# logical field name ("report", "error") -> value, in insertion order
FieldUpdate = Dict[str, FieldValue]


class CachedToken(BaseModel):
    """tenant_access_token plus the time it stops being served"""
    model_config = ConfigDict(frozen=True)

    value: str
    expires_at: float = Field(..., description="Epoch seconds, safety margin already subtracted")


class DeliveryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    delivered: bool = Field(..., description="The record was updated")
    skipped: bool = Field(False, description="Nothing was sent because preconditions were unmet")
    message: str = ""
