"""
Schema baselines.

Responses are read straight off ORM rows and service dataclasses. Requests
reject unknown keys and accept either the field name or its wire alias.
"""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Response DTO base, populated from attributes."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that forbids unexpected fields and trims strings."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )
