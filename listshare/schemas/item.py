"""Item, vote, rating and comment schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ItemResponse(BaseModel):
    """Item with read-time aggregates for the requesting user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    list_id: int
    user_id: int
    title: str
    description: str | None
    url: str | None
    status: str | None
    tags: list[str]
    completed: bool
    position: int
    upvotes: int
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="item_metadata")
    created_at: datetime
    updated_at: datetime
    my_vote: Literal[1, -1] | None = None
    my_rating: int | None = None
    average_rating: float | None = None
    rating_count: int = 0
    comment_count: int = 0


class VoteRequest(BaseModel):
    """Cast (1 / -1) or clear (null) a vote."""

    vote_type: Literal[1, -1] | None


class VoteResponse(BaseModel):
    item_id: int
    vote_type: Literal[1, -1] | None
    delta: int
    upvotes: int


class RatingRequest(BaseModel):
    """Range is checked by the vote service so the error matches other callers."""

    rating: int


class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    list_item_id: int
    user_id: int
    rating: int


class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    list_item_id: int
    user_id: int
    comment: str
    created_at: datetime
    updated_at: datetime
