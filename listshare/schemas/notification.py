"""Change-event webhook schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChangeEvent(BaseModel):
    """Row change event posted by the database webhook."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["INSERT", "UPDATE", "DELETE"]
    table: str
    record: dict[str, Any]
    old_record: dict[str, Any] | None = None
    db_schema: str = Field("public", alias="schema")


class ChangeEventAccepted(BaseModel):
    queued: bool
    skipped: bool = False
